"""Scmd base classes and shared validators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Union

if TYPE_CHECKING:  # pragma: no cover
    from ..dispatch import ScmdRequest
    from ..simulation import Simulation

ValidatorResult = Optional[Union[BaseException, str]]
Handler = Callable[["Simulation", "ScmdRequest"], None]
Validator = Callable[["Simulation", "ScmdRequest"], ValidatorResult]

NO_SYNOPSIS = "no synopsis available"


@dataclass
class Scmd:
    """Abstract scmd description.

    ``validate`` returns None when the request is acceptable, otherwise an
    error (or message) that becomes the command's usage error; ``run`` is
    only called for requests that validate.
    """

    name: str
    synopsis: str = NO_SYNOPSIS
    aliases: Sequence[str] = field(default_factory=tuple)
    hidden: bool = False

    def names(self) -> List[str]:
        return [self.name, *self.aliases]

    def validate(self, sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
        return None

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        raise NotImplementedError("Scmd must implement run()")

    def format_help(self, name: Optional[str] = None) -> str:
        return f"{name or self.name}\t\t- {self.synopsis}"


class FunctionScmd(Scmd):
    """Scmd backed by plain functions, for run-time registration."""

    def __init__(
        self,
        name: str,
        handler: Handler,
        *,
        synopsis: Optional[str] = None,
        aliases: Sequence[str] = (),
        hidden: bool = False,
        validator: Optional[Validator] = None,
    ) -> None:
        super().__init__(name, synopsis or NO_SYNOPSIS, aliases=tuple(aliases), hidden=hidden)
        self._handler = handler
        self._validator = validator

    def validate(self, sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
        if self._validator is None:
            return None
        return self._validator(sim, req)

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        self._handler(sim, req)


def noargs_validator(sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
    if req.args:
        return f'scmd "{req.name}" accepts no arguments'
    if req.addr is not None:
        return f'scmd "{req.name}" accepts no address'
    return None


def single_operand(req: "ScmdRequest") -> Optional[str]:
    """Return the one operand given either as an address or as an argument."""
    if req.addr is not None and not req.args:
        return req.addr
    if req.addr is None and len(req.args) == 1:
        return req.args[0]
    return None


def single_operand_validator(sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
    if single_operand(req) is None:
        return f'scmd "{req.name}" requires exactly one address or argument'
    return None


class NoArgsScmd(Scmd):
    def validate(self, sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
        return noargs_validator(sim, req)
