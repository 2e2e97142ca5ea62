"""attach scmd."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ScmdError
from ..model import load_model
from .base import Scmd, ValidatorResult

if TYPE_CHECKING:  # pragma: no cover
    from ..dispatch import ScmdRequest
    from ..simulation import Simulation


class AttachScmd(Scmd):
    def __init__(self) -> None:
        super().__init__("attach", "attach to a simulation model", aliases=(":A",))

    def validate(self, sim: "Simulation", req: "ScmdRequest") -> ValidatorResult:
        if not req.args:
            return f'scmd "{req.name}" requires at least 1 argument'
        return None

    def run(self, sim: "Simulation", req: "ScmdRequest") -> None:
        if sim.running():
            req.fail_soon("a simulation model is running")
            return
        module_name, *model_args = req.args
        try:
            model = load_model(module_name, sim, model_args)
        except Exception as exc:
            req.fail_soon(ScmdError(f'unable to attach to model "{module_name}"', cause=exc))
            return
        sim.attach(model)
        req.done(f"attached to simulation model {getattr(model, 'name', module_name)}")
