"""Control channel: feeds commands into the dispatcher one at a time.

The dispatcher accepts a single command in flight; this module is the
transport that honours that, queueing injected commands and waiting for
each terminal response before submitting the next.  Raw text arriving from
a stream is decoded here, and anything that is not a JSON object is a
transport failure (``ctl-error``) after which the simulation refuses
further commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, AsyncIterable, List, Optional, Union

from .dispatch import CommandLike, ScmdResult
from .errors import ControlChannelError

if TYPE_CHECKING:  # pragma: no cover
    from .simulation import Simulation

logger = logging.getLogger(__name__)

RawCommand = Union[CommandLike, str, bytes]


def decode_command(raw: RawCommand) -> Any:
    """Decode a raw control line; records that are already objects pass through."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ControlChannelError("control input is not UTF-8", cause=exc) from exc
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ControlChannelError("malformed control input", cause=exc) from exc
        if not isinstance(value, dict):
            raise ControlChannelError(f"control input is not an object: {raw.strip()}")
        return value
    return raw


class ControlChannel:
    def __init__(self, simulation: "Simulation") -> None:
        self._sim = simulation
        self._lock: Optional[asyncio.Lock] = None
        self._queue: Optional[asyncio.Queue] = None
        self._pump: Optional[asyncio.Task] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def submit(self, cmd: CommandLike) -> List[ScmdResult]:
        """Submit *cmd* once the channel is free and return its full response stream."""
        async with self._get_lock():
            loop = self._sim.loop
            finished: asyncio.Future = loop.create_future()
            responses: List[ScmdResult] = []

            def on_response(result: ScmdResult) -> None:
                responses.append(result)
                if result.terminal and not finished.done():
                    finished.set_result(responses)

            self._sim.submit(cmd, on_response)
            return await finished

    def inject(self, cmd: CommandLike) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._queue.put_nowait(cmd)
        if self._pump is None or self._pump.done():
            self._pump = self._sim.loop.create_task(self._run_queue())

    async def drain(self) -> None:
        """Wait until every injected command has been answered."""
        if self._queue is not None:
            await self._queue.join()

    async def _run_queue(self) -> None:
        assert self._queue is not None
        while True:
            cmd = await self._queue.get()
            try:
                await self.submit(cmd)
            except ControlChannelError as exc:
                logger.warning("dropping injected scmd: %s", exc)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._sim._internal_error(exc)
            finally:
                self._queue.task_done()

    async def plumb(self, stream: AsyncIterable[RawCommand]) -> None:
        """Submit every command read from *stream*, in order."""
        async for raw in stream:
            if isinstance(raw, (str, bytes)) and not raw.strip():
                continue
            try:
                cmd = decode_command(raw)
            except ControlChannelError as exc:
                self._sim._ctl_error(exc)
                return
            if self._sim.dead:
                return
            await self.submit(cmd)

    def close(self) -> None:
        if self._pump is not None:
            self._pump.cancel()
            self._pump = None


__all__ = ["ControlChannel", "RawCommand", "decode_command"]
