"""Wire shapes for scmd requests and responses.

Command records arriving on the control channel are validated against
:class:`ScmdRecord` before dispatch.  Responses are kept as
:class:`ctsim.dispatch.ScmdResult` objects internally and rendered through
:class:`ScmdResultRecord` when a JSON form is needed.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

NonEmptyStr = Annotated[str, Field(min_length=1)]


class ScmdRecord(BaseModel):
    """A control request: ``{scmd, addr?, args?, tag?}``."""

    model_config = ConfigDict(extra="forbid", strict=True)

    scmd: str = Field(min_length=1)
    addr: Optional[str] = Field(default=None, min_length=1)
    args: Optional[List[NonEmptyStr]] = None
    tag: Optional[str] = Field(default=None, min_length=1)

    def argv(self) -> List[str]:
        return list(self.args or [])


class ErrorRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str = Field(min_length=1)


class ScmdResultRecord(BaseModel):
    """A single response in a command's response stream."""

    model_config = ConfigDict(extra="forbid")

    err: Optional[ErrorRecord] = None
    done: Optional[bool] = None
    tag: Optional[str] = Field(default=None, min_length=1)
    data: Optional[List[Any]] = None
    messages: Optional[List[str]] = None


__all__ = ["ScmdRecord", "ScmdResultRecord", "ErrorRecord"]
