"""
ctsim - core of the CT simulation harness.

Drives pluggable models through a stream of instructions while a controller
inspects and steers execution over a command channel, in the manner of an
mdb command loop wrapped around a single-step machine:

    simulation.py → run state, breakpoints, pending/executing slots
    engine.py     → instruction fetch and exec completion
    dispatch.py   → scmd validation, routing and response streams
    channel.py    → serialised command transport
    events.py     → notifications and the event bus
    model.py      → model contract and loading
"""

from .breakpoints import Breakpoint, BreakpointTable  # noqa: F401
from .channel import ControlChannel  # noqa: F401
from .dispatch import Dispatcher, ScmdRequest, ScmdResult  # noqa: F401
from .errors import (  # noqa: F401
    ControlChannelError,
    CTError,
    InputError,
    ModelError,
    ScmdError,
    ScmdRegistrationError,
    ScmdUnknownError,
    ScmdUsageError,
    SimulationInvariantError,
)
from .events import EventBus, EventSubscription, SuspendReason  # noqa: F401
from .model import ExecResult, Ictx, InitResult, Model, load_model, schedule  # noqa: F401
from .simulation import RunState, Simulation, SimulationConfig  # noqa: F401
from .source import InstructionSource, read_json_stream  # noqa: F401

__all__ = [
    "Breakpoint",
    "BreakpointTable",
    "ControlChannel",
    "Dispatcher",
    "ScmdRequest",
    "ScmdResult",
    "CTError",
    "ScmdError",
    "ScmdUsageError",
    "ScmdUnknownError",
    "ScmdRegistrationError",
    "ModelError",
    "InputError",
    "ControlChannelError",
    "SimulationInvariantError",
    "EventBus",
    "EventSubscription",
    "SuspendReason",
    "Ictx",
    "InitResult",
    "ExecResult",
    "Model",
    "load_model",
    "schedule",
    "RunState",
    "Simulation",
    "SimulationConfig",
    "InstructionSource",
    "read_json_stream",
]

__version__ = "0.1.0-dev"
