"""CLI tests for ctc: single commands and scripts."""

from __future__ import annotations

import io
import json

from ctc.cli import build_arg_parser, main


def _program(tmp_path):
    path = tmp_path / "program.json"
    path.write_text('{"op": "set", "value": 5}\n{"op": "add", "value": 3}\n', encoding="utf-8")
    return path


def test_arg_parser_splits_model_and_its_arguments():
    args = build_arg_parser().parse_args(["--json", "ctsim.models.calc", "--delay", "1"])
    assert args.json
    assert args.model == ["ctsim.models.calc", "--delay", "1"]


def test_single_command_without_model(capsys):
    rc = main(["-c", "::status", "--history", "/dev/null"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "no simulation model is attached" in out


def test_single_command_reports_unknown_scmd(capsys):
    rc = main(["-c", "::frobnicate"])
    assert rc == 1
    assert 'control error: scmd "frobnicate" is unknown' in capsys.readouterr().out


def test_single_command_parse_error(capsys):
    rc = main(["-c", "what is this"])
    assert rc == 1
    assert "failed to parse command line" in capsys.readouterr().err


def test_run_model_from_command_line(tmp_path, capsys):
    path = _program(tmp_path)
    rc = main(["-c", f"::run {path}", "ctsim.models.calc"])
    captured = capsys.readouterr()
    assert rc == 0
    outputs = [json.loads(line) for line in captured.out.splitlines() if line.startswith("{")]
    assert [entry["post"] for entry in outputs] == [5, 8]
    assert "attached to simulation model Calc" in captured.out
    assert "simulation terminated" in captured.err


def test_attach_failure_exits_nonzero(capsys):
    rc = main(["-c", "::status", "ctsim.not_a_model"])
    assert rc == 1
    assert 'unable to attach to model "ctsim.not_a_model"' in capsys.readouterr().out


def test_script_executes_commands(tmp_path, capsys):
    script = tmp_path / "script.txt"
    script.write_text("# comment\n\n::bp 3\n5::bp\n::events\n", encoding="utf-8")
    rc = main(["--script", str(script)])
    out = capsys.readouterr().out
    assert rc == 0
    assert "breakpoint 0 at 3" in out
    assert "1\tbreakpoint at 5" in out


def test_script_stops_at_quit(tmp_path, capsys):
    script = tmp_path / "script.txt"
    script.write_text("::bp 1\n$q\n::bp 2\n", encoding="utf-8")
    rc = main(["--script", str(script)])
    out = capsys.readouterr().out
    assert rc == 0
    assert "breakpoint 0 at 1" in out
    assert "at 2" not in out


def test_script_stops_at_breakpoint_and_continues(tmp_path, capsys):
    path = _program(tmp_path)
    script = tmp_path / "script.txt"
    script.write_text(f"::bp 1\n::run {path}\n::status\n::cont\n", encoding="utf-8")
    rc = main(["--script", str(script), "ctsim.models.calc"])
    captured = capsys.readouterr()
    assert rc == 0
    assert "breakpoint at 1" in captured.err
    assert "next instruction at 1" in captured.out
    assert "simulation terminated" in captured.err


def test_script_reports_failure(tmp_path, capsys):
    script = tmp_path / "script.txt"
    script.write_text("::cont\n::status\n", encoding="utf-8")
    rc = main(["--script", str(script)])
    assert rc == 1
    assert "control error: no simulation is active" in capsys.readouterr().out


def test_script_missing_file_returns_error(tmp_path, capsys):
    rc = main(["--script", str(tmp_path / "missing.txt")])
    assert rc != 0


def test_json_output(capsys):
    rc = main(["--json", "-c", "::bp 4"])
    out = capsys.readouterr().out.strip().splitlines()
    assert rc == 0
    payload = json.loads(out[-1])
    assert payload["done"] is True
    assert payload["data"] == [{"id": 0, "addr": 4}]


def test_run_without_infile_reads_piped_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO('{"op": "set", "value": 2}\n{"op": "mul", "value": 4}\n'))
    rc = main(["-c", "::run", "ctsim.models.calc"])
    captured = capsys.readouterr()
    assert rc == 0
    outputs = [json.loads(line) for line in captured.out.splitlines() if line.startswith("{")]
    assert [entry["post"] for entry in outputs] == [2, 8]
    assert "simulation terminated" in captured.err
