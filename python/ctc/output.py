"""Rendering of responses and notifications for ctc."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional

from ctsim.dispatch import ScmdResult
from ctsim.events import SuspendReason
from ctsim.standalone import format_output

from .context import SessionContext

_SUSPEND_MESSAGES = {
    SuspendReason.BREAKPOINT.value: "breakpoint at {addr}",
    SuspendReason.MODEL_TRAP.value: "model trapped at {addr}",
    SuspendReason.CTL.value: "stopped at {addr}",
    SuspendReason.TERMINATE.value: "simulation terminated",
}


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, default=_json_default)


def _json_default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return str(value)


def _write(stream, text: str) -> None:
    stream.write(text + "\n")
    stream.flush()


def emit_response(ctx: SessionContext, result: ScmdResult) -> None:
    """Render one response of a command's response stream."""
    if ctx.json_output:
        _write(ctx.ctl_out, _json_dump(result.to_wire()))
        return
    if result.err is not None:
        _write(ctx.ctl_out, f"control error: {result.err}")
    for message in result.messages or []:
        _write(ctx.ctl_out, message)
    # Structured data duplicates the messages when both are present.
    if result.data and not result.messages:
        for item in result.data:
            _write(ctx.ctl_out, format_output(item))


def emit_error(ctx: SessionContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Report a front-end error (for example a parse error)."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "error", "error": message}
        if data:
            payload["details"] = dict(data)
        _write(ctx.ctl_err, _json_dump(payload))
    else:
        _write(ctx.ctl_err, message)


def emit_suspend(ctx: SessionContext, reason: Optional[str], addr: Optional[int]) -> None:
    if ctx.json_output:
        _write(ctx.ctl_err, _json_dump({"event": "suspend", "reason": reason, "addr": addr}))
        return
    if reason == SuspendReason.CTL.value and addr is None:
        _write(ctx.ctl_err, "stopped waiting for input")
        return
    template = _SUSPEND_MESSAGES.get(reason or "", "simulation stopped; reason unknown")
    _write(ctx.ctl_err, template.format(addr=addr))


def emit_model_data(ctx: SessionContext, payload: Any) -> None:
    if payload is None:
        return
    if ctx.json_output:
        _write(ctx.sim_out, _json_dump({"event": "model-data", "data": payload}))
        return
    _write(ctx.sim_out, format_output(payload))


def emit_model_error(ctx: SessionContext, err: Any) -> None:
    if ctx.json_output:
        _write(ctx.sim_err, _json_dump({"event": "model-error", "error": str(err)}))
        return
    _write(ctx.sim_err, f"fatal simulation error: {err}")


def emit_fatal(ctx: SessionContext, err: Any) -> None:
    _write(ctx.ctl_err, "unexpected internal error:")
    _write(ctx.ctl_err, str(err))


__all__ = [
    "emit_response",
    "emit_error",
    "emit_suspend",
    "emit_model_data",
    "emit_model_error",
    "emit_fatal",
]
