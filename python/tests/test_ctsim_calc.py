"""Calculator model and standalone mode tests."""

from __future__ import annotations

import asyncio
import io
import json

import pytest

from ctsim.errors import ModelError
from ctsim.events import INSN_DONE, MODEL_ERROR
from ctsim.models import calc
from ctsim.simulation import Simulation

from sim_stubs import Recorder, command, settle


def _program(tmp_path, insns, name="program.json"):
    path = tmp_path / name
    path.write_text("\n".join(json.dumps(insn) for insn in insns) + "\n", encoding="utf-8")
    return path


def test_calc_scenario_accumulates(tmp_path):
    path = _program(tmp_path, [{"op": "set", "value": 5}, {"op": "add", "value": 3}])

    async def scenario():
        sim = Simulation()
        rec = Recorder(sim, [INSN_DONE])
        await command(sim, "attach", "ctsim.models.calc")
        run = await command(sim, "run", str(path))
        await settle(lambda: sim.done)
        accum = await command(sim, "accum")
        return rec, run, accum

    rec, run, accum = asyncio.run(scenario())
    assert run[-1].done
    steps = [(event.ictx.addr, event.data.pre, event.data.post) for event in rec.events]
    assert steps == [(0, 0, 5), (1, 5, 8)]
    assert accum[-1].messages == ["accumulator = 8"]


def test_calc_rejects_invalid_instruction(tmp_path):
    path = _program(tmp_path, [{"op": "set", "value": 1}, {"op": "pow", "value": 2}, {"op": "add", "value": 1}])

    async def scenario():
        sim = Simulation()
        rec = Recorder(sim, [INSN_DONE, MODEL_ERROR])
        await command(sim, "attach", "ctsim.models.calc")
        await command(sim, "run", str(path))
        await settle(lambda: not sim.active)
        return rec

    rec = asyncio.run(scenario())
    assert len(rec.of(INSN_DONE)) == 1
    assert str(rec.of(MODEL_ERROR)[0].err) == "invalid opcode pow"


def test_calc_init_usage_and_missing_file(tmp_path):
    async def scenario():
        sim = Simulation()
        await command(sim, "attach", "ctsim.models.calc")
        usage = await command(sim, "run", "a", "b")
        missing = await command(sim, "run", str(tmp_path / "nope.json"))
        return usage, missing

    usage, missing = asyncio.run(scenario())
    assert str(usage[-1].err) == "model init failed: Usage: Calc [infile]"
    assert "unable to open" in str(missing[-1].err)


@pytest.mark.parametrize(
    "op, accum, value, expected",
    [
        ("add", 2, 3, 5),
        ("sub", 2, 3, -1),
        ("mul", 4, 2.5, 10.0),
        ("div", 8, 2, 4),
        ("div", 7, 2, 3.5),
        ("set", 9, 1, 1),
    ],
)
def test_apply(op, accum, value, expected):
    assert calc.apply(op, accum, value) == expected


def test_apply_rejects_unknown_op_and_zero_division():
    with pytest.raises(ModelError):
        calc.apply("mod", 1, 1)
    with pytest.raises(ZeroDivisionError):
        calc.apply("div", 1, 0)


def test_calc_step_renders_as_json():
    step = calc.CalcStep(pre=0, pc=0, insn={"op": "set", "value": 5}, post=5, nextpc=1)
    assert json.loads(str(step)) == {"pre": 0, "pc": 0, "insn": {"op": "set", "value": 5}, "post": 5, "nextpc": 1}


def test_calc_options_are_parsed():
    model = calc.create(args=["--delay", "0.5", "input.json"])
    assert model.delay == 0.5
    assert model.args == ["input.json"]
    with pytest.raises(ModelError):
        calc.create(args=["--delay", "soon"])


def test_standalone_runs_file_to_completion(tmp_path):
    path = _program(tmp_path, [{"op": "set", "value": 5}, {"op": "mul", "value": 3}])
    stdout, stderr = io.StringIO(), io.StringIO()
    rc = calc.run_standalone(calc.create, [str(path)], stdout=stdout, stderr=stderr)
    assert rc == 0
    outputs = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [entry["post"] for entry in outputs] == [5, 15]
    assert stderr.getvalue() == ""


def test_standalone_reads_stdin_without_infile():
    stdin = io.StringIO('{"op": "set", "value": 2}\n{"op": "sub", "value": 5}\n')
    stdout = io.StringIO()
    rc = calc.run_standalone(calc.create, [], stdin=stdin, stdout=stdout, stderr=io.StringIO())
    assert rc == 0
    assert json.loads(stdout.getvalue().splitlines()[-1])["post"] == -3


def test_standalone_reports_model_errors(tmp_path):
    path = _program(tmp_path, [{"op": "set"}])
    stderr = io.StringIO()
    rc = calc.run_standalone(calc.create, [str(path)], stdout=io.StringIO(), stderr=stderr)
    assert rc == 1
    assert "invalid action encountered" in stderr.getvalue()
