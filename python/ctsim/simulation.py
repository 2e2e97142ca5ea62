"""Simulation controller.

The controller owns the run state, the breakpoint table and the two
instruction slots (pending and executing).  It sits between the engine,
which fetches instructions, and the dispatcher, which delivers control
commands; both call back into it from the event loop, never concurrently.

State transitions::

    inactive --run--> running <--resume/suspend--> stopped
        ^                |                            |
        +---terminate----+----------------------------+

A stop requested while an instruction is executing is deferred: the
instruction runs to completion, the next one is fetched and left pending,
and only then does the simulation suspend.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from .breakpoints import Breakpoint, BreakpointTable
from .channel import ControlChannel
from .dispatch import CommandLike, Dispatcher, ResponseCallback, ScmdRequest
from .engine import Engine, ExecCompletion, wrap_input_error
from .errors import ControlChannelError, ModelError, ScmdError, SimulationInvariantError
from .events import (
    CTL_ERROR,
    INSN_DONE,
    INSN_ERROR,
    INSN_TRAP,
    MODEL_DATA,
    MODEL_ERROR,
    RESUME,
    SUSPEND,
    EventBus,
    SuspendReason,
)
from .model import ExecResult, Ictx
from .scmds import FunctionScmd, ScmdRegistry, build_registry
from .source import SourceLike, as_source

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    INACTIVE = "inactive"
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class SimulationConfig:
    default_input: Optional[SourceLike] = None
    strict_async: bool = True


class Simulation:
    def __init__(
        self,
        *,
        model: Any = None,
        config: Optional[SimulationConfig] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        event_bus: Optional[EventBus] = None,
        registry: Optional[ScmdRegistry] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self._loop = loop
        self.events = event_bus or EventBus()
        self.breakpoints = BreakpointTable()
        self.registry = registry or build_registry()
        self.dispatcher = Dispatcher(self, self.registry)
        self._channel: Optional[ControlChannel] = None
        self._model: Any = None
        self._engine: Optional[Engine] = None
        self._pending: Optional[Ictx] = None
        self._executing: Optional[ExecCompletion] = None
        self._running = False
        self._stop = False
        self._stepping = False
        self._done = False
        self._in_exec = False
        self._dead = False
        self._default_input = self.config.default_input
        if model is not None:
            self.attach(model)

    # ------------------------------------------------------------------
    # Introspection

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def model(self) -> Any:
        return self._model

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    @property
    def active(self) -> bool:
        return self._engine is not None

    @property
    def state(self) -> RunState:
        if self._running:
            return RunState.RUNNING
        if self._engine is not None:
            return RunState.STOPPED
        return RunState.INACTIVE

    @property
    def done(self) -> bool:
        """True once the last run consumed all of its input."""
        return self._done

    @property
    def dead(self) -> bool:
        return self._dead

    @property
    def pending(self) -> Optional[Ictx]:
        return self._pending

    @property
    def executing(self) -> Optional[Ictx]:
        return self._executing.ictx if self._executing is not None else None

    @property
    def stop_requested(self) -> bool:
        return self._stop

    def running(self) -> bool:
        return self._running

    def addr(self) -> Optional[int]:
        return self._pending.addr if self._pending is not None else None

    # ------------------------------------------------------------------
    # Control channel

    @property
    def channel(self) -> ControlChannel:
        if self._channel is None:
            self._channel = ControlChannel(self)
        return self._channel

    def submit(self, cmd: CommandLike, callback: Optional[ResponseCallback] = None) -> ScmdRequest:
        if self._dead:
            raise ControlChannelError("the control channel failed; the simulation cannot be used")
        return self.dispatcher.submit(cmd, callback)

    def inject_ctl(self, cmd: CommandLike) -> None:
        self.channel.inject(cmd)

    def register_scmd(
        self,
        name: str,
        handler: Callable[["Simulation", ScmdRequest], None],
        *,
        aliases: Sequence[str] = (),
        synopsis: Optional[str] = None,
        hidden: bool = False,
        validator: Optional[Callable[["Simulation", ScmdRequest], Any]] = None,
    ) -> FunctionScmd:
        scmd = FunctionScmd(
            name,
            handler,
            synopsis=synopsis,
            aliases=aliases,
            hidden=hidden,
            validator=validator,
        )
        self.registry.register(scmd)
        return scmd

    # ------------------------------------------------------------------
    # Model and input

    def attach(self, model: Any) -> None:
        if self._running:
            raise ScmdError("a simulation model is running")
        if self._model is not None:
            self.terminate()
        self._model = model
        self._done = False
        logger.debug("attached model %s", getattr(model, "name", type(model).__name__))

    def attach_standalone(self, model: Any, cb: Optional[Callable[[Optional[BaseException]], None]] = None) -> None:
        """Attach an in-process *model*; *cb* is told the outcome on the next loop turn."""
        try:
            self.attach(model)
        except ScmdError as exc:
            if cb is None:
                raise
            self.loop.call_soon(cb, exc)
            return
        if cb is not None:
            self.loop.call_soon(cb, None)

    def set_default_input(self, source: Optional[SourceLike]) -> None:
        self._default_input = source

    @property
    def default_input(self) -> Optional[SourceLike]:
        return self._default_input

    def start(self, source: SourceLike) -> None:
        """Begin running *source* from its first instruction."""
        if self._model is None:
            raise ScmdError("no simulation model is attached")
        if self._running:
            raise ScmdError("simulation model is already running")
        wrapped = as_source(source)
        if self._engine is not None:
            self.terminate()
        self._engine = Engine(self, wrapped, self._model)
        self._done = False
        self.resume()
        self._engine.fetch_next()

    def set_input_error(self, err: BaseException) -> None:
        """Report an instruction source failure detected outside of a fetch."""
        if self._engine is None:
            logger.debug("input error with no active simulation: %s", err)
            return
        self._on_input_error(err)

    # ------------------------------------------------------------------
    # Breakpoints

    def insert_breakpoint(self, addr: int) -> Breakpoint:
        bp = self.breakpoints.insert(addr)
        pending = self._pending
        if pending is not None and pending.addr == bp.addr and not pending.trap:
            pending.mark_trap(breakpoint=True)
        logger.debug("breakpoint %d at %d", bp.id, bp.addr)
        return bp

    def delete_breakpoint(self, bp: Breakpoint) -> None:
        self.breakpoints.remove(bp)
        pending = self._pending
        if pending is not None and pending.addr == bp.addr and pending.breakpoint:
            pending.trap = False
            pending.breakpoint = False
        logger.debug("deleted breakpoint %d at %d", bp.id, bp.addr)

    def delete_all_breakpoints(self) -> List[Breakpoint]:
        removed = self.breakpoints.clear()
        pending = self._pending
        if pending is not None and pending.breakpoint:
            pending.trap = False
            pending.breakpoint = False
        logger.debug("deleted %d breakpoint(s)", len(removed))
        return removed

    # ------------------------------------------------------------------
    # Run state

    def resume(self, *, step: bool = False) -> None:
        if self._running:
            return
        if self._stop:
            self._stop = False
            return
        self._running = True
        self._stepping = step
        logger.debug("resume at %s%s", self.addr(), " (step)" if step else "")
        self.events.publish(RESUME, addr=self.addr())
        self._try_execute()

    def suspend(self, reason: SuspendReason = SuspendReason.CTL) -> None:
        if not self._running:
            return
        if self._executing is not None:
            # Applied once the next instruction is pending.
            logger.debug("deferring suspend (%s)", reason.value)
            self._stop = True
            return
        self._halt(reason)

    def terminate(self) -> None:
        engine = self._engine
        if engine is None:
            return
        self._pending = None
        self._executing = None
        self._running = False
        self._stop = False
        self._stepping = False
        self._engine = None
        engine.close()
        logger.debug("simulation terminated (done=%s)", self._done)
        self.events.publish(SUSPEND, reason=SuspendReason.TERMINATE.value, addr=None)

    def _halt(self, reason: SuspendReason) -> None:
        self._running = False
        self._stop = False
        self._stepping = False
        logger.debug("suspend at %s (%s)", self.addr(), reason.value)
        self.events.publish(SUSPEND, reason=reason.value, addr=self.addr())

    # ------------------------------------------------------------------
    # Engine callbacks

    def _on_fetch(self, ictx: Ictx) -> None:
        if self._pending is not None or self._executing is not None:
            raise SimulationInvariantError(
                f"instruction {ictx.addr} fetched while another instruction is pending or executing"
            )
        if ictx.addr in self.breakpoints and not ictx.trap:
            ictx.mark_trap(breakpoint=True)
        logger.debug("fetched instruction %d%s", ictx.addr, " (trap)" if ictx.trap else "")
        self._pending = ictx
        if self._stop:
            self._halt(SuspendReason.CTL)
            return
        self._try_execute()

    def _try_execute(self) -> None:
        ictx = self._pending
        if not self._running or ictx is None or self._executing is not None or self._engine is None:
            return
        if ictx.trap and not ictx.reported:
            ictx.reported = True
            self._halt(SuspendReason.BREAKPOINT if ictx.breakpoint else SuspendReason.MODEL_TRAP)
            return
        self._pending = None
        if self._stepping:
            self._stepping = False
            self._stop = True
        completion = ExecCompletion(self, self._engine, ictx)
        self._executing = completion
        self._in_exec = True
        try:
            self._model.exec(ictx, completion)
        except SimulationInvariantError:
            raise
        except Exception as exc:
            logger.warning("model exec raised on instruction %d: %s", ictx.addr, exc)
            self.loop.call_soon(self._exec_raised, completion, exc)
        finally:
            self._in_exec = False

    def _exec_raised(self, completion: ExecCompletion, exc: Exception) -> None:
        if completion.finished:
            # The model completed the instruction before raising.
            logger.debug("ignoring exec exception for completed instruction %d", completion.ictx.addr)
            return
        completion(ExecResult(err=ModelError("model exec failed", cause=exc)))

    def _on_exec_result(self, completion: ExecCompletion, result: ExecResult) -> None:
        if completion is not self._executing:
            logger.debug("ignoring stale exec result for instruction %d", completion.ictx.addr)
            return
        ictx = completion.ictx

        if result.err is not None:
            self._executing = None
            logger.warning("instruction %d failed: %s", ictx.addr, result.err)
            self.events.publish(INSN_ERROR, err=result.err, ictx=ictx)
            self.events.publish(MODEL_ERROR, err=result.err)
            self.terminate()
            return

        if result.data is not None:
            completion.last_data = result.data
            if self.events.publish(MODEL_DATA, payload=result.data, ictx=ictx) is None:
                logger.debug("dropped model data for instruction %d", ictx.addr)

        if result.trap:
            self._executing = None
            ictx.mark_trap(breakpoint=False)
            ictx.reported = True
            self._pending = ictx
            self._halt(SuspendReason.MODEL_TRAP)
            self.events.publish(INSN_TRAP, ictx=ictx)
            return

        if result.done:
            self._executing = None
            self.events.publish(INSN_DONE, ictx=ictx, data=completion.last_data)
            # An observer may have terminated the run.
            if self._engine is completion.engine:
                self._engine.fetch_next()

    def _on_end_of_input(self) -> None:
        logger.debug("end of input")
        self._done = True
        self.terminate()

    def _on_input_error(self, exc: BaseException) -> None:
        err = wrap_input_error(exc)
        logger.warning("instruction source failed: %s", err)
        self.events.publish(MODEL_ERROR, err=err)
        self.terminate()

    # ------------------------------------------------------------------
    # Fatal errors

    def _ctl_error(self, err: BaseException) -> None:
        self._dead = True
        logger.error("control channel failure: %s", err)
        self.events.publish(CTL_ERROR, err=err)

    def _internal_error(self, exc: BaseException) -> None:
        if self._dead:
            logger.debug("internal error after control failure: %s", exc)
            return
        logger.critical("internal error", exc_info=exc)
        self._ctl_error(exc)

    def __repr__(self) -> str:
        return f"<Simulation state={self.state.value} addr={self.addr()}>"


__all__ = ["RunState", "Simulation", "SimulationConfig", "SuspendReason"]
