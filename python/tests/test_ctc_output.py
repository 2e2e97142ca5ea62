"""Rendering tests for ctc output helpers."""

from __future__ import annotations

import io
import json

from ctc.context import SessionContext
from ctc.output import emit_model_data, emit_model_error, emit_response, emit_suspend
from ctsim.dispatch import ScmdResult
from ctsim.errors import ScmdError


def _ctx(**kwargs):
    streams = {name: io.StringIO() for name in ("ctl_out", "ctl_err", "sim_out", "sim_err")}
    return SessionContext(**streams, **kwargs)


def test_response_renders_error_and_messages():
    ctx = _ctx()
    emit_response(ctx, ScmdResult(err=ScmdError("no simulation is active")))
    emit_response(ctx, ScmdResult(done=True, messages=["one", "two"], data=[{"x": 1}]))
    assert ctx.ctl_out.getvalue() == "control error: no simulation is active\none\ntwo\n"


def test_response_renders_data_when_there_are_no_messages():
    ctx = _ctx()
    emit_response(ctx, ScmdResult(done=True, data=[{"x": 1}, "plain"]))
    assert ctx.ctl_out.getvalue().splitlines() == ['{"x": 1}', "plain"]


def test_suspend_messages():
    ctx = _ctx()
    emit_suspend(ctx, "breakpoint", 3)
    emit_suspend(ctx, "model-trap", 4)
    emit_suspend(ctx, "ctl", 5)
    emit_suspend(ctx, "terminate", None)
    emit_suspend(ctx, "mystery", 6)
    emit_suspend(ctx, "ctl", None)
    assert ctx.ctl_err.getvalue().splitlines() == [
        "breakpoint at 3",
        "model trapped at 4",
        "stopped at 5",
        "simulation terminated",
        "simulation stopped; reason unknown",
        "stopped waiting for input",
    ]


def test_model_output_goes_to_simulation_streams():
    ctx = _ctx()
    emit_model_data(ctx, {"post": 8})
    emit_model_data(ctx, None)
    emit_model_error(ctx, RuntimeError("bad opcode"))
    assert ctx.sim_out.getvalue() == '{"post": 8}\n'
    assert ctx.sim_err.getvalue() == "fatal simulation error: bad opcode\n"


def test_json_mode_wraps_everything():
    ctx = _ctx(json_output=True)
    emit_response(ctx, ScmdResult(done=True, tag="t"))
    emit_suspend(ctx, "ctl", 2)
    assert json.loads(ctx.ctl_out.getvalue()) == {"done": True, "tag": "t"}
    assert json.loads(ctx.ctl_err.getvalue()) == {"addr": 2, "event": "suspend", "reason": "ctl"}
