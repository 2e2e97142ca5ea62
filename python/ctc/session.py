"""Glue between a Simulation and the ctc front end.

Emulates the synchronous target mode of mdb: a command line is submitted,
its responses are rendered, and the next line is only read once the
simulation is no longer running.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ctsim.dispatch import ScmdRequest, ScmdResult
from ctsim.errors import ControlChannelError
from ctsim.events import CTL_ERROR, CTL_RESPONSE, MODEL_DATA, MODEL_ERROR, RESUME, SUSPEND, EventSubscription
from ctsim.scmds.base import noargs_validator
from ctsim.simulation import Simulation

from .context import SessionContext
from .output import emit_error, emit_fatal, emit_model_data, emit_model_error, emit_response, emit_suspend
from .parser import ParseError, parse_line

LOGGER = logging.getLogger("ctc.session")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2


class DebugSession:
    def __init__(self, sim: Simulation, ctx: Optional[SessionContext] = None) -> None:
        self.sim = sim
        self.ctx = ctx or SessionContext()
        self.quitting = False
        self.fatal: Optional[BaseException] = None
        self._idle: Optional[asyncio.Event] = None
        self._tokens: List[int] = []
        self._tokens.append(
            sim.events.subscribe(
                EventSubscription(
                    categories=[RESUME, SUSPEND, MODEL_DATA, MODEL_ERROR, CTL_RESPONSE, CTL_ERROR],
                    handler=self._on_event,
                )
            )
        )
        if "quit" not in sim.registry:
            sim.register_scmd(
                "quit",
                self._quit,
                aliases=("$q",),
                synopsis="exit the debugger",
                validator=noargs_validator,
            )

    def close(self) -> None:
        for token in self._tokens:
            self.sim.events.unsubscribe(token)
        self._tokens.clear()

    def _quit(self, sim: Simulation, req: ScmdRequest) -> None:
        self.quitting = True
        req.done()

    def _get_idle(self) -> asyncio.Event:
        if self._idle is None:
            self._idle = asyncio.Event()
        return self._idle

    def _on_event(self, event) -> None:
        kind = event.type
        if kind == CTL_RESPONSE:
            emit_response(self.ctx, event.response)
        elif kind == MODEL_DATA:
            emit_model_data(self.ctx, event.payload)
        elif kind == MODEL_ERROR:
            emit_model_error(self.ctx, event.err)
        elif kind == SUSPEND:
            emit_suspend(self.ctx, event.reason, event.addr)
            self._get_idle().set()
        elif kind == RESUME:
            self._get_idle().clear()
        elif kind == CTL_ERROR:
            self.fatal = event.err
            emit_fatal(self.ctx, event.err)
            self._get_idle().set()

    async def execute(self, line: str) -> int:
        """Run one command line; returns an exit status for that line."""
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return EXIT_OK
        try:
            cmd = parse_line(stripped)
        except ParseError as exc:
            emit_error(self.ctx, message=str(exc))
            return EXIT_FAILED
        LOGGER.debug("submitting %s", cmd)
        try:
            responses: List[ScmdResult] = await self.sim.channel.submit(cmd)
        except ControlChannelError as exc:
            if self.fatal is None:
                self.fatal = exc
                emit_fatal(self.ctx, exc)
            return EXIT_FATAL
        await self.wait_idle()
        if self.fatal is not None:
            return EXIT_FATAL
        return EXIT_FAILED if responses and responses[-1].err is not None else EXIT_OK

    async def wait_idle(self) -> None:
        """Wait until the simulation is stopped, terminated or dead."""
        idle = self._get_idle()
        while self.sim.running() and self.fatal is None:
            idle.clear()
            await idle.wait()

    def interrupt(self) -> None:
        """^C: act as if the operator had typed the hidden stop scmd."""
        if self.sim.running() and not self.sim.dead:
            LOGGER.debug("interrupt; injecting stop")
            self.sim.inject_ctl({"scmd": "stop"})


__all__ = ["DebugSession", "EXIT_OK", "EXIT_FAILED", "EXIT_FATAL"]
