"""Completion tests for ctc."""

from __future__ import annotations

from prompt_toolkit.document import Document

from ctc.completion import ScmdCompleter
from ctsim.scmds import build_registry


def _complete(text):
    completer = ScmdCompleter(build_registry())
    return {c.text for c in completer.get_completions(Document(text, cursor_position=len(text)), None)}


def test_scmd_names_complete_after_double_colon():
    results = _complete("::st")
    assert results == {"status", "step"}


def test_hidden_and_short_names_are_not_offered():
    results = _complete("::")
    assert "stop" not in results
    assert "$a" not in results
    assert ":c" not in results
    assert {"attach", "bp", "c", "cont", "run", "scmds"} <= results


def test_address_prefix_is_allowed():
    assert "bp" in _complete("5::b")


def test_no_completion_outside_scmd_form():
    assert _complete("run") == set()
