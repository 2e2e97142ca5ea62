"""Breakpoint scmds: bp, delete, events."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..breakpoints import Breakpoint, parse_addr
from .base import NoArgsScmd, Scmd, ValidatorResult, single_operand, single_operand_validator

if TYPE_CHECKING:  # pragma: no cover
    from ..dispatch import ScmdRequest
    from ..simulation import Simulation


class BreakpointScmd(Scmd):
    def __init__(self) -> None:
        super().__init__("bp", "set a breakpoint", aliases=(":b",))

    def validate(self, sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
        return single_operand_validator(sim, req)

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        spec = single_operand(req)
        addr = parse_addr(spec) if spec is not None else None
        if addr is None:
            req.fail_soon(f'invalid breakpoint address "{spec}"')
            return
        bp = sim.insert_breakpoint(addr)
        req.done(f"breakpoint {bp.id} at {bp.addr}", data=[{"id": bp.id, "addr": bp.addr}])


class DeleteScmd(Scmd):
    """Delete one breakpoint, or every breakpoint with ``delete all``.

    An explicit address (``5::delete``) always names an address; an argument
    follows the usual rule: ``#N`` is an id, ``0x..`` an address, and a plain
    number an id when one exists, otherwise an address.
    """

    def __init__(self) -> None:
        super().__init__("delete", "delete a breakpoint", aliases=(":d",))

    def validate(self, sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
        return single_operand_validator(sim, req)

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        if req.addr is None and req.args == ["all"]:
            removed = sim.delete_all_breakpoints()
            req.done(f"deleted {len(removed)} breakpoint(s)")
            return
        if req.addr is not None:
            addr = parse_addr(req.addr)
            bp_id = sim.breakpoints.id_for(addr) if addr is not None else None
            bp = None if bp_id is None else Breakpoint(bp_id, addr)
            spec = req.addr
        else:
            spec = req.args[0]
            bp = sim.breakpoints.resolve(spec)
        if bp is None:
            req.fail_soon(f'no breakpoint matches "{spec}"')
            return
        sim.delete_breakpoint(bp)
        req.done(f"deleted breakpoint {bp.id} at {bp.addr}")


class EventsScmd(NoArgsScmd):
    def __init__(self) -> None:
        super().__init__("events", "list breakpoints")

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        entries = list(sim.breakpoints)
        messages = [f"{bp.id}\tbreakpoint at {bp.addr}" for bp in entries]
        req.done(*messages, data=[{"id": bp.id, "addr": bp.addr} for bp in entries])
