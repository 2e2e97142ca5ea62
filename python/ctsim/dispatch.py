"""Scmd dispatch.

A command record is validated against the wire schema, looked up in the
registry, checked by the scmd's validator and finally handed to its
handler together with a :class:`ScmdRequest`.  The handler answers through
the request: any number of partial responses, then exactly one terminal
response carrying ``done`` or ``err``.

Only one command may be in flight.  Submitting another before the terminal
response is a caller bug; whoever feeds commands in (see
:mod:`ctsim.channel`) is responsible for serialising them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from .errors import ScmdError, ScmdUnknownError, ScmdUsageError, SimulationInvariantError
from .events import CTL_RESPONSE
from .schema import ErrorRecord, ScmdRecord, ScmdResultRecord

if TYPE_CHECKING:  # pragma: no cover
    from .scmds import ScmdRegistry
    from .simulation import Simulation

logger = logging.getLogger(__name__)

CommandLike = Union[ScmdRecord, Mapping[str, Any]]


@dataclass
class ScmdResult:
    err: Optional[BaseException] = None
    done: bool = False
    data: Optional[List[Any]] = None
    messages: Optional[List[str]] = None
    tag: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return self.done or self.err is not None

    def to_record(self) -> ScmdResultRecord:
        err = None
        if self.err is not None:
            err = ErrorRecord(message=str(self.err) or type(self.err).__name__)
        return ScmdResultRecord(
            err=err,
            done=True if self.done else None,
            tag=self.tag,
            data=self.data,
            messages=self.messages,
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.to_record().model_dump(exclude_none=True)


ResponseCallback = Callable[[ScmdResult], None]


class ScmdRequest:
    """The command in flight, as seen by its handler."""

    def __init__(self, dispatcher: "Dispatcher", raw: CommandLike, callback: Optional[ResponseCallback]) -> None:
        self._dispatcher = dispatcher
        self.raw = raw
        self.cmd: Optional[ScmdRecord] = None
        self._callback = callback
        self.finished = False
        self.terminal_queued = False
        self.responses: List[ScmdResult] = []

    @property
    def name(self) -> str:
        if self.cmd is not None:
            return self.cmd.scmd
        if isinstance(self.raw, Mapping):
            return str(self.raw.get("scmd"))
        return "?"

    @property
    def addr(self) -> Optional[str]:
        return self.cmd.addr if self.cmd is not None else None

    @property
    def args(self) -> List[str]:
        return self.cmd.argv() if self.cmd is not None else []

    @property
    def tag(self) -> Optional[str]:
        if self.cmd is not None:
            return self.cmd.tag
        if isinstance(self.raw, Mapping) and isinstance(self.raw.get("tag"), str):
            return self.raw["tag"]
        return None

    def respond(self, result: Optional[ScmdResult] = None, **fields: Any) -> None:
        if result is None:
            result = ScmdResult(**fields)
        if self.finished:
            raise SimulationInvariantError(f'response to scmd "{self.name}" after its terminal response')
        if self.tag is not None:
            result.tag = self.tag
        if result.terminal:
            self.finished = True
        self.responses.append(result)
        self._dispatcher._deliver(self, result)

    def respond_soon(self, result: Optional[ScmdResult] = None, **fields: Any) -> None:
        if result is None:
            result = ScmdResult(**fields)
        if result.terminal:
            if self.finished or self.terminal_queued:
                raise SimulationInvariantError(f'second terminal response queued for scmd "{self.name}"')
            self.terminal_queued = True
        self._dispatcher.simulation.loop.call_soon(self._respond_later, result)

    def _respond_later(self, result: ScmdResult) -> None:
        try:
            self.respond(result)
        except SimulationInvariantError as exc:
            self._dispatcher.simulation._internal_error(exc)

    def done(self, *messages: str, data: Optional[List[Any]] = None) -> None:
        self.respond_soon(ScmdResult(done=True, messages=list(messages) or None, data=data))

    def fail(self, message: Union[str, BaseException], *, cause: Optional[BaseException] = None) -> None:
        self.respond(ScmdResult(err=_as_error(message, cause)))

    def fail_soon(self, message: Union[str, BaseException], *, cause: Optional[BaseException] = None) -> None:
        self.respond_soon(ScmdResult(err=_as_error(message, cause)))

    def __repr__(self) -> str:
        return f"<ScmdRequest {self.name!r} finished={self.finished}>"


def _as_error(message: Union[str, BaseException], cause: Optional[BaseException]) -> BaseException:
    if isinstance(message, BaseException):
        return message
    return ScmdError(message, cause=cause)


class Dispatcher:
    def __init__(self, simulation: "Simulation", registry: "ScmdRegistry") -> None:
        self.simulation = simulation
        self.registry = registry
        self._pending: Optional[ScmdRequest] = None

    @property
    def pending(self) -> Optional[ScmdRequest]:
        return self._pending

    def submit(self, cmd: CommandLike, callback: Optional[ResponseCallback] = None) -> ScmdRequest:
        if self._pending is not None:
            raise SimulationInvariantError(
                f'scmd "{_peek_name(cmd)}" submitted while "{self._pending.name}" is still pending'
            )
        req = ScmdRequest(self, cmd, callback)
        self._pending = req

        try:
            record = cmd if isinstance(cmd, ScmdRecord) else ScmdRecord.model_validate(dict(cmd))
        except (ValidationError, TypeError, ValueError) as exc:
            req.fail_soon(ScmdError(f"internal error: malformed scmd {cmd!r}", cause=exc))
            return req
        req.cmd = record

        entry = self.registry.get(record.scmd)
        if entry is None:
            req.fail_soon(ScmdUnknownError(f'scmd "{record.scmd}" is unknown'))
            return req

        problem = entry.validate(self.simulation, req)
        if problem:
            if not isinstance(problem, BaseException):
                problem = ScmdUsageError(str(problem))
            req.fail_soon(ScmdUsageError(f'syntax error invoking scmd "{record.scmd}"', cause=problem))
            return req

        logger.debug("dispatching scmd %s addr=%s args=%s", record.scmd, record.addr, record.args)
        try:
            entry.run(self.simulation, req)
        except SimulationInvariantError:
            raise
        except Exception as exc:
            logger.exception('scmd "%s" handler failed', record.scmd)
            if not (req.finished or req.terminal_queued):
                req.fail_soon(ScmdError(f'scmd "{record.scmd}" failed', cause=exc))
        return req

    def _deliver(self, req: ScmdRequest, result: ScmdResult) -> None:
        if req is not self._pending:
            raise SimulationInvariantError(f'response for scmd "{req.name}" which is not the pending scmd')
        if result.terminal:
            self._pending = None
        self.simulation.events.publish(CTL_RESPONSE, response=result)
        if req._callback is not None:
            try:
                req._callback(result)
            except Exception:
                logger.exception('response callback for scmd "%s" failed', req.name)


def _peek_name(cmd: CommandLike) -> str:
    if isinstance(cmd, ScmdRecord):
        return cmd.scmd
    if isinstance(cmd, Mapping):
        return str(cmd.get("scmd"))
    return "?"


__all__ = ["CommandLike", "Dispatcher", "ResponseCallback", "ScmdRequest", "ScmdResult"]
