"""Exception types shared by the ctsim core."""

from __future__ import annotations

from typing import Optional


class CTError(RuntimeError):
    """Base class for simulation harness errors.

    An optional *cause* is chained both as ``__cause__`` and into the message,
    so ``str(err)`` reads ``"model init failed: file not found"``.
    """

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        self.brief = message
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def message(self) -> str:
        return str(self)


class ScmdError(CTError):
    """Raised (or returned in a response) when a single scmd fails."""


class ScmdUsageError(ScmdError):
    """An scmd was invoked with arguments its validator rejects."""


class ScmdUnknownError(ScmdError):
    """No handler is registered under the requested scmd name."""


class ScmdRegistrationError(CTError):
    """An scmd name or alias is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f'scmd "{name}" is already registered')
        self.name = name


class ModelError(CTError):
    """A model could not be loaded, initialised, or failed to execute."""


class InputError(CTError):
    """The instruction source could not be opened or produced bad input."""


class ControlChannelError(CTError):
    """The control transport delivered something that is not a command."""


class SimulationInvariantError(AssertionError):
    """Internal invariant violation; indicates a bug, never user input."""
