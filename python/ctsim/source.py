"""Instruction sources.

An instruction source is an ordered, pull-based sequence of instructions
consumed exactly once by the engine.  Models may hand back any iterable or
async iterable; :class:`InstructionSource` gives both the same awaitable
interface and makes every fetch a point where other work (control commands)
may run.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional, TextIO, Union

from .errors import InputError

SourceLike = Union["InstructionSource", Iterable[Any], AsyncIterable[Any]]


class InstructionSource:
    """Awaitable wrapper around a sync or async iterable."""

    def __init__(self, items: Union[Iterable[Any], AsyncIterable[Any]]) -> None:
        self._aiter: Optional[AsyncIterator[Any]] = None
        self._iter: Optional[Iterator[Any]] = None
        if hasattr(items, "__aiter__"):
            self._aiter = items.__aiter__()  # type: ignore[union-attr]
        else:
            self._iter = iter(items)  # type: ignore[arg-type]
        self.exhausted = False

    def __aiter__(self) -> "InstructionSource":
        return self

    async def __anext__(self) -> Any:
        if self.exhausted:
            raise StopAsyncIteration
        if self._aiter is not None:
            try:
                return await self._aiter.__anext__()
            except StopAsyncIteration:
                self.exhausted = True
                raise
        await asyncio.sleep(0)
        assert self._iter is not None
        try:
            return next(self._iter)
        except StopIteration:
            self.exhausted = True
            raise StopAsyncIteration from None

    async def aclose(self) -> None:
        self.exhausted = True
        if self._aiter is not None:
            closer = getattr(self._aiter, "aclose", None)
            if closer is not None:
                await closer()
        elif self._iter is not None:
            closer = getattr(self._iter, "close", None)
            if closer is not None:
                closer()


def as_source(items: SourceLike) -> InstructionSource:
    if isinstance(items, InstructionSource):
        return items
    if isinstance(items, (str, bytes)) or not (hasattr(items, "__iter__") or hasattr(items, "__aiter__")):
        raise InputError(f"not an instruction source: {type(items).__name__}")
    return InstructionSource(items)


class _JsonAccumulator:
    """Lines are accumulated until the accumulated text parses.

    Whatever is left over when the input ends must parse too, otherwise the
    input is malformed.
    """

    def __init__(self) -> None:
        self.accum = ""

    def feed(self, raw: str) -> List[Any]:
        line = raw.strip()
        if not line:
            return []
        candidate = f"{self.accum}\n{line}" if self.accum else line
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            self.accum = candidate
            return []
        self.accum = ""
        return [value]

    def finish(self) -> List[Any]:
        if not self.accum:
            return []
        try:
            return [json.loads(self.accum)]
        except json.JSONDecodeError as exc:
            raise InputError("malformed JSON input", cause=exc) from exc


def iter_json_objects(lines: Iterable[str]) -> Iterator[Any]:
    """Yield JSON values from *lines*; a value may span several lines."""
    parser = _JsonAccumulator()
    for raw in lines:
        yield from parser.feed(raw)
    yield from parser.finish()


async def read_json_lines(stream: TextIO) -> AsyncIterator[Any]:
    """Like :func:`iter_json_objects`, for a stream such as stdin.

    Each line is read on the default executor; the event loop never blocks
    on *stream*.
    """
    loop = asyncio.get_running_loop()
    parser = _JsonAccumulator()
    while True:
        raw = await loop.run_in_executor(None, stream.readline)
        if not raw:
            break
        for value in parser.feed(raw):
            yield value
    for value in parser.finish():
        yield value


def read_json_stream(path: Union[str, Path]) -> Iterator[Any]:
    """Open *path* now and return a lazy iterator over its JSON values.

    Opening eagerly means a missing file is reported to the caller at once
    (at ``run`` time) rather than on the first fetch.
    """
    try:
        handle = Path(path).expanduser().open("r", encoding="utf-8")
    except OSError as exc:
        raise InputError(f'unable to open "{path}"', cause=exc) from exc
    return _read_and_close(handle)


def _read_and_close(handle: TextIO) -> Iterator[Any]:
    with handle:
        yield from iter_json_objects(handle)


__all__ = [
    "InstructionSource",
    "SourceLike",
    "as_source",
    "iter_json_objects",
    "read_json_lines",
    "read_json_stream",
]
