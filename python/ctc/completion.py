"""prompt_toolkit completer for ctc."""

from __future__ import annotations

from typing import Iterable, List

from prompt_toolkit.completion import Completer, Completion, PathCompleter
from prompt_toolkit.document import Document

from ctsim.scmds import ScmdRegistry

# scmds whose arguments are usually file names.
PATH_SCMDS = {"run", ":r"}


class ScmdCompleter(Completer):
    """Completes scmd names after ``::`` and file names for ``run``."""

    def __init__(self, registry: ScmdRegistry) -> None:
        self.registry = registry
        self._path = PathCompleter(expanduser=True)

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text = document.text_before_cursor
        head, sep, rest = text.partition("::")
        if not sep or " " in head:
            return
        if " " not in rest:
            for name in self._scmd_names(rest):
                yield Completion(name, start_position=-len(rest))
            return
        scmd = rest.split(" ", 1)[0]
        if scmd in PATH_SCMDS or self._looks_like_path(rest.rsplit(" ", 1)[-1]):
            word = rest.rsplit(" ", 1)[-1]
            yield from self._path.get_completions(Document(word, len(word)), complete_event)

    def _scmd_names(self, prefix: str) -> List[str]:
        names = set()
        for scmd in self.registry.list_commands():
            if scmd.hidden:
                continue
            names.update(name for name in scmd.names() if name.startswith(prefix) and name[0] not in ":$")
        return sorted(names)

    @staticmethod
    def _looks_like_path(prefix: str) -> bool:
        return prefix.startswith((".", "/", "~"))


__all__ = ["ScmdCompleter"]
