"""Run control scmds: run, cont, step, stop."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..errors import CTError, ModelError, ScmdError
from ..events import INSN_DONE, INSN_ERROR, INSN_TRAP, SUSPEND, EventSubscription, SuspendReason
from ..model import InitResult
from .base import NoArgsScmd, Scmd

if TYPE_CHECKING:  # pragma: no cover
    from ..dispatch import ScmdRequest
    from ..simulation import Simulation


def _cannot_resume(sim: "Simulation") -> Optional[str]:
    if sim.running():
        return "simulation model is already running"
    if sim.done:
        return "the simulation has completed"
    if not sim.active:
        return "no simulation is active"
    return None


class RunScmd(Scmd):
    def __init__(self) -> None:
        super().__init__("run", "run simulation from the beginning", aliases=(":r",))

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        model = sim.model
        if model is None:
            req.fail_soon("no simulation model is attached")
            return
        if sim.running():
            req.fail_soon("simulation model is already running")
            return
        args = req.cmd.args if req.cmd is not None else None

        def on_init(result: Optional[InitResult] = None, **fields) -> None:
            if result is None:
                result = InitResult(**fields)
            if result.err is not None:
                req.fail_soon(ScmdError("model init failed", cause=result.err))
                return
            source = result.input if result.input is not None else sim.default_input
            if source is None:
                req.fail_soon(ScmdError("model init failed", cause=ModelError("no instruction source")))
                return
            try:
                sim.start(source)
            except CTError as exc:
                req.fail_soon(ScmdError("model init failed", cause=exc))
                return
            req.done()

        model.init(args, on_init)


class ContinueScmd(NoArgsScmd):
    def __init__(self) -> None:
        super().__init__("cont", "continue simulation", aliases=(":c", "c"))

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        problem = _cannot_resume(sim)
        if problem:
            req.fail_soon(problem)
            return
        sim.resume()
        req.done()


class StepScmd(NoArgsScmd):
    """Execute one instruction; answers once it is done, failed or trapped."""

    def __init__(self) -> None:
        super().__init__("step", "simulate the next instruction", aliases=(":s",))

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        problem = _cannot_resume(sim)
        if problem:
            req.fail_soon(problem)
            return
        token = None

        def on_event(event) -> None:
            if token is None or req.finished:
                return
            sim.events.unsubscribe(token)
            if event.type == INSN_ERROR:
                req.fail_soon(ScmdError("step failed", cause=event.err))
            else:
                req.done()

        token = sim.events.subscribe(
            EventSubscription(categories=[INSN_DONE, INSN_ERROR, INSN_TRAP, SUSPEND], handler=on_event)
        )
        sim.resume(step=True)


class StopScmd(NoArgsScmd):
    def __init__(self) -> None:
        super().__init__("stop", "stop the simulation", hidden=True)

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        sim.suspend(SuspendReason.CTL)
        req.done()
