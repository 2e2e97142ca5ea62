"""Breakpoint table keyed both by id and by instruction address."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional


@dataclass(frozen=True)
class Breakpoint:
    id: int
    addr: int


def parse_addr(spec: str) -> Optional[int]:
    """Parse an address token (decimal, or 0x/0o/0b prefixed)."""
    try:
        value = int(spec.strip(), 0)
    except (AttributeError, ValueError):
        return None
    return value if value >= 0 else None


class BreakpointTable:
    """Ids are handed out in insertion order and never reused.

    Deleting a breakpoint removes it from both maps; the id counter keeps
    counting, so the numbering matches what an operator saw in ``events``.
    """

    def __init__(self) -> None:
        self._by_id: Dict[int, int] = {}
        self._by_addr: Dict[int, int] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, addr: object) -> bool:
        return addr in self._by_addr

    def __iter__(self) -> Iterator[Breakpoint]:
        for bp_id in sorted(self._by_id):
            yield Breakpoint(bp_id, self._by_id[bp_id])

    def insert(self, addr: int) -> Breakpoint:
        addr = int(addr)
        existing = self._by_addr.get(addr)
        if existing is not None:
            return Breakpoint(existing, addr)
        bp_id = self._next_id
        self._next_id += 1
        self._by_id[bp_id] = addr
        self._by_addr[addr] = bp_id
        return Breakpoint(bp_id, addr)

    def id_for(self, addr: int) -> Optional[int]:
        return self._by_addr.get(addr)

    def resolve(self, spec: str) -> Optional[Breakpoint]:
        """Resolve ``#<id>``, a hex address, or a plain number.

        A plain number names an id when such an id exists, otherwise an
        address; ``0x`` prefixed numbers are always addresses.
        """
        spec = spec.strip()
        if spec.startswith("#"):
            value = parse_addr(spec[1:])
            if value is None or value not in self._by_id:
                return None
            return Breakpoint(value, self._by_id[value])
        value = parse_addr(spec)
        if value is None:
            return None
        if not spec.lower().startswith("0x") and value in self._by_id:
            return Breakpoint(value, self._by_id[value])
        bp_id = self._by_addr.get(value)
        if bp_id is None:
            return None
        return Breakpoint(bp_id, value)

    def remove(self, bp: Breakpoint) -> None:
        self._by_id.pop(bp.id, None)
        self._by_addr.pop(bp.addr, None)

    def clear(self) -> List[Breakpoint]:
        removed = list(self)
        self._by_id.clear()
        self._by_addr.clear()
        return removed
