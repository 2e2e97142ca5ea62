"""Instruction fetch and execution plumbing.

The engine pulls one instruction at a time from the model's source and hands
it to the simulation, which decides whether it executes or traps.  At most
one fetch is ever outstanding; the next one is only started once the
previous instruction has left the executing slot.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from .errors import InputError, SimulationInvariantError
from .model import ExecResult, Ictx
from .source import InstructionSource

if TYPE_CHECKING:  # pragma: no cover
    from .simulation import Simulation

logger = logging.getLogger(__name__)

_EMPTY = object()


class Engine:
    def __init__(self, simulation: "Simulation", source: InstructionSource, model: Any) -> None:
        self._sim = simulation
        self.source = source
        self._model = model
        self._held: Any = _EMPTY
        self._next_addr = 0
        self._task: Optional[asyncio.Task] = None
        self.closed = False
        self.fetched = 0

    @property
    def fetching(self) -> bool:
        return self._task is not None

    def fetch_next(self) -> None:
        if self.closed:
            return
        if self._task is not None:
            raise SimulationInvariantError("instruction fetch requested while another fetch is outstanding")
        task = self._sim.loop.create_task(self._fetch())
        task.add_done_callback(self._fetch_done)
        self._task = task

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
        closer = self._sim.loop.create_task(self.source.aclose())
        closer.add_done_callback(_log_close_failure)

    async def _next_insn(self) -> Any:
        # The model's filter may skip an instruction (None) or put another
        # one in front of it; in that case the original is checked again on
        # the following fetch.
        check = getattr(self._model, "check_insn", None)
        while True:
            if self._held is _EMPTY:
                self._held = await self.source.__anext__()
            raw = self._held
            insn = check(raw) if check is not None else raw
            if insn is None:
                logger.debug("model skipped instruction %r", raw)
                self._held = _EMPTY
                continue
            if insn is raw:
                self._held = _EMPTY
            return insn

    async def _fetch(self) -> None:
        try:
            insn = await self._next_insn()
        except StopAsyncIteration:
            if self._finish_fetch():
                self._sim._on_end_of_input()
            return
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if self._finish_fetch():
                self._sim._on_input_error(exc)
            return
        if self._finish_fetch():
            self._sim._on_fetch(self._wrap(insn))

    def _finish_fetch(self) -> bool:
        self._task = None
        return not self.closed

    def _fetch_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._sim._internal_error(exc)

    def _wrap(self, insn: Any) -> Ictx:
        self.fetched += 1
        if isinstance(insn, Ictx):
            self._next_addr = insn.addr + 1
            return insn
        ictx = Ictx(insn=insn, addr=self._next_addr)
        self._next_addr += 1
        return ictx


class ExecCompletion:
    """Callback handed to ``Model.exec`` for one instruction.

    Accepts either an :class:`ExecResult` or its fields as keyword arguments:
    ``cb(data=step, done=True)``.
    """

    def __init__(self, simulation: "Simulation", engine: Engine, ictx: Ictx) -> None:
        self._sim = simulation
        self.engine = engine
        self.ictx = ictx
        self.finished = False
        self.last_data: Any = None

    def __call__(self, result: Optional[ExecResult] = None, **fields: Any) -> None:
        if result is None:
            result = ExecResult(**fields)
        elif fields:
            raise TypeError("pass either an ExecResult or keyword fields, not both")
        if self._sim._in_exec and self._sim.config.strict_async:
            self._violation("invoked synchronously")
        if self.finished:
            self._violation("invoked after its terminal result")
        if result.terminal:
            self.finished = True
        self._sim._on_exec_result(self, result)

    def _violation(self, what: str) -> None:
        err = SimulationInvariantError(f"exec callback for instruction {self.ictx.addr} {what}")
        self._sim._internal_error(err)
        raise err

    def __repr__(self) -> str:
        return f"<ExecCompletion addr={self.ictx.addr} finished={self.finished}>"


def _log_close_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("instruction source close failed: %s", exc)


def wrap_input_error(exc: BaseException) -> InputError:
    if isinstance(exc, InputError):
        return exc
    return InputError("instruction source failed", cause=exc)


__all__ = ["Engine", "ExecCompletion", "wrap_input_error"]
