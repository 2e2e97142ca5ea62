"""Informational scmds: status, scmds and the hidden $a."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import NoArgsScmd, Scmd

if TYPE_CHECKING:  # pragma: no cover
    from ..dispatch import ScmdRequest
    from ..simulation import Simulation


class StatusScmd(NoArgsScmd):
    def __init__(self) -> None:
        super().__init__("status", "simulation status")

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        model = sim.model
        if model is None:
            req.done("no simulation model is attached", data=[{"state": sim.state.value}])
            return
        name = getattr(model, "name", type(model).__name__)
        state = "running" if sim.running() else "stopped"
        lines = [f"attached to simulation model {name} ({state})"]
        if sim.addr() is not None:
            lines.append(f"next instruction at {sim.addr()}")
        elif sim.done:
            lines.append("the simulation has completed")
        info = {"model": name, "state": sim.state.value, "addr": sim.addr(), "done": sim.done}
        req.done(*lines, data=[info])


class ScmdsScmd(NoArgsScmd):
    def __init__(self) -> None:
        super().__init__("scmds", "list available scmds")

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        req.done(*sim.registry.listing())


class AdbScmd(Scmd):
    """Hidden ``$a``, kept for muscle memory."""

    def __init__(self) -> None:
        super().__init__("$a", hidden=True)

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        req.done("no adb here")
