"""Scmd registry and the built-in scmd set."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..errors import ScmdRegistrationError
from .attach import AttachScmd
from .base import FunctionScmd, NoArgsScmd, Scmd, noargs_validator, single_operand
from .breakpoints import BreakpointScmd, DeleteScmd, EventsScmd
from .control import ContinueScmd, RunScmd, StepScmd, StopScmd
from .info import AdbScmd, ScmdsScmd, StatusScmd


class ScmdRegistry:
    """Maps scmd names and aliases to their descriptors.

    Names are global and case-sensitive.  A registration whose name or any
    alias is already taken is rejected as a whole.
    """

    def __init__(self) -> None:
        self._commands: Dict[str, Scmd] = {}
        self._ordered: List[Scmd] = []

    def register(self, scmd: Scmd) -> None:
        names = scmd.names()
        for name in names:
            if name in self._commands or names.count(name) > 1:
                raise ScmdRegistrationError(name)
        self._ordered.append(scmd)
        for name in names:
            self._commands[name] = scmd

    def get(self, name: str) -> Optional[Scmd]:
        return self._commands.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def list_commands(self) -> Iterable[Scmd]:
        return list(self._ordered)

    def listing(self, *, include_hidden: bool = False) -> List[str]:
        """Help lines for every registered name, sorted by name."""
        lines = []
        for name in sorted(self._commands):
            scmd = self._commands[name]
            if scmd.hidden and not include_hidden:
                continue
            lines.append(scmd.format_help(name))
        return lines


def builtin_scmds() -> List[Scmd]:
    return [
        AdbScmd(),
        AttachScmd(),
        ContinueScmd(),
        RunScmd(),
        StepScmd(),
        StopScmd(),
        BreakpointScmd(),
        DeleteScmd(),
        EventsScmd(),
        StatusScmd(),
        ScmdsScmd(),
    ]


def build_registry() -> ScmdRegistry:
    registry = ScmdRegistry()
    for scmd in builtin_scmds():
        registry.register(scmd)
    return registry


__all__ = [
    "ScmdRegistry",
    "Scmd",
    "FunctionScmd",
    "NoArgsScmd",
    "builtin_scmds",
    "build_registry",
    "noargs_validator",
    "single_operand",
]
