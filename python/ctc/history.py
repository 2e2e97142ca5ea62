"""Command history backed by prompt_toolkit's file history."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from prompt_toolkit.history import FileHistory, History, InMemoryHistory

LOGGER = logging.getLogger("ctc.history")


class ScmdHistory(FileHistory):
    """File history that drops blank lines and immediate repeats.

    Write failures are logged and the session keeps its in-memory history.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path).expanduser()
        super().__init__(str(self.path))
        self._last: Optional[str] = next(iter(self.load_history_strings()), None)

    def load_history_strings(self) -> Iterable[str]:
        try:
            return list(super().load_history_strings())
        except OSError as exc:
            LOGGER.debug("unable to read history %s: %s", self.path, exc)
            return []

    def append_string(self, string: str) -> None:
        text = string.strip()
        if not text or text == self._last:
            return
        self._last = text
        super().append_string(text)

    def store_string(self, string: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            super().store_string(string)
        except OSError as exc:
            LOGGER.debug("unable to write history %s: %s", self.path, exc)


def open_history(path: Optional[str]) -> History:
    if not path:
        return InMemoryHistory()
    return ScmdHistory(path)


__all__ = ["ScmdHistory", "open_history"]
