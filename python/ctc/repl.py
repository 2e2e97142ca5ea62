"""Interactive REPL for ctc."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import History, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .completion import ScmdCompleter
from .session import EXIT_FATAL, EXIT_OK, DebugSession

LOGGER = logging.getLogger("ctc.repl")


class DebuggerREPL:
    """prompt_toolkit loop around a :class:`DebugSession`."""

    def __init__(self, session: DebugSession, *, history: Optional[History] = None) -> None:
        self.session = session
        self.history = history if history is not None else InMemoryHistory()

    def _build_prompt(self) -> PromptSession:
        completer = ScmdCompleter(self.session.sim.registry)
        return PromptSession("> ", history=self.history, completer=completer, complete_while_typing=False)

    async def run(self) -> int:
        prompt = self._build_prompt()
        loop = asyncio.get_running_loop()
        handles_sigint = self._install_sigint(loop)
        buffer: List[str] = []
        try:
            while not self.session.quitting:
                try:
                    with patch_stdout():
                        line = await prompt.prompt_async()
                except KeyboardInterrupt:
                    buffer.clear()
                    continue
                except EOFError:
                    print()
                    return EXIT_OK
                if self._handle_multiline(buffer, line):
                    continue
                payload = " ".join(buffer) if buffer else line
                buffer.clear()
                rc = await self.session.execute(payload)
                if rc == EXIT_FATAL:
                    return rc
            return EXIT_OK
        finally:
            if handles_sigint:
                loop.remove_signal_handler(signal.SIGINT)

    def _install_sigint(self, loop: asyncio.AbstractEventLoop) -> bool:
        # While the prompt is up prompt_toolkit owns ^C; this handler only
        # sees it while a command is running.
        try:
            loop.add_signal_handler(signal.SIGINT, self.session.interrupt)
        except (NotImplementedError, RuntimeError) as exc:
            LOGGER.debug("SIGINT handler unavailable: %s", exc)
            return False
        return True

    def _handle_multiline(self, buffer: List[str], line: str) -> bool:
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            buffer.append(stripped[:-1])
            return True
        if buffer:
            buffer.append(stripped)
        return False


__all__ = ["DebuggerREPL"]
