"""Simulation model contract.

All of the application-specific work is done by models: interpreting
arguments and input, maintaining the modelled system's state, and producing
output.  The rest of ctsim drives a model through a sequence of instruction
objects and lets a controller observe and steer it.

A model is invoked in one of two contexts:

* Control context: :meth:`Model.init` runs while the ``run`` scmd is being
  handled.  It must answer, through its callback, with the instruction
  source the simulation will be fed from.
* Simulation context: :meth:`Model.exec` is called once per instruction, in
  source order, one at a time.  Execution of an instruction is never
  interrupted, so instructions should be fine-grained.

Both callbacks must be invoked asynchronously, never from inside the call
that received them; :func:`schedule` is the usual way to do that.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence

from .errors import ModelError
from .source import SourceLike

if TYPE_CHECKING:  # pragma: no cover
    from .simulation import Simulation

logger = logging.getLogger(__name__)


@dataclass
class Ictx:
    """An instruction plus the engine's bookkeeping for it."""

    insn: Any
    addr: int
    trap: bool = False
    breakpoint: bool = False
    reported: bool = False

    def mark_trap(self, *, breakpoint: bool) -> None:
        self.trap = True
        self.breakpoint = breakpoint
        self.reported = False


@dataclass
class InitResult:
    input: Optional[SourceLike] = None
    err: Optional[BaseException] = None


@dataclass
class ExecResult:
    """One invocation of an exec callback.

    Any number of results carrying only ``data`` may precede exactly one
    terminal result, which sets ``done``, ``err`` or ``trap``.  ``data`` on an
    error result is ignored.
    """

    data: Any = None
    err: Optional[BaseException] = None
    trap: bool = False
    done: bool = False

    @property
    def terminal(self) -> bool:
        return self.done or self.trap or self.err is not None


InitCallback = Callable[[InitResult], None]
ExecCallback = Callable[[ExecResult], None]


def schedule(callback: Callable[..., Any], *args: Any) -> None:
    """Invoke *callback* on the next turn of the running event loop."""
    asyncio.get_running_loop().call_soon(callback, *args)


def exec_fail_async(cb: ExecCallback, message: str, *, cause: Optional[BaseException] = None) -> None:
    schedule(cb, ExecResult(err=ModelError(message, cause=cause)))


def exec_fail_sync(cb: ExecCallback, message: str, *, cause: Optional[BaseException] = None) -> None:
    cb(ExecResult(err=ModelError(message, cause=cause)))


class Model:
    """Base model: echoes every instruction back as its output.

    Sub-classes override :meth:`init` and :meth:`exec`; :meth:`check_insn`
    is an optional hook consulted for every instruction pulled from the
    source.
    """

    name = "Model"

    def __init__(self, simulation: Optional["Simulation"] = None, args: Optional[Sequence[str]] = None) -> None:
        self.simulation = simulation
        self.args: List[str] = list(args or [])

    def init(self, args: Optional[List[str]], cb: InitCallback) -> None:
        schedule(cb, InitResult(input=None))

    def exec(self, ictx: Ictx, cb: ExecCallback) -> None:
        schedule(cb, ExecResult(data=ictx.insn, done=True))

    def check_insn(self, insn: Any) -> Any:
        """Return *insn* to run it, another instruction to run first, or None to skip it."""
        return insn


def load_model(module_name: str, simulation: "Simulation", args: Sequence[str] = ()) -> Model:
    """Import *module_name* and build a model through its ``create`` function."""
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ModelError(f'unable to import "{module_name}"', cause=exc) from exc
    create = getattr(module, "create", None)
    if not callable(create):
        raise ModelError(f'module "{module_name}" does not define create()')
    model = create(simulation=simulation, args=list(args))
    for method in ("init", "exec"):
        if not callable(getattr(model, method, None)):
            raise ModelError(f'model from "{module_name}" has no {method}() method')
    logger.debug("loaded model %s from %s", getattr(model, "name", "?"), module_name)
    return model


__all__ = [
    "Ictx",
    "InitResult",
    "ExecResult",
    "InitCallback",
    "ExecCallback",
    "Model",
    "schedule",
    "exec_fail_async",
    "exec_fail_sync",
    "load_model",
]
