"""Tests for ctc history helpers."""

from __future__ import annotations

from prompt_toolkit.history import InMemoryHistory

from ctc.history import ScmdHistory, open_history


def test_history_persists_and_reloads_newest_first(tmp_path):
    path = tmp_path / "history.txt"
    history = ScmdHistory(str(path))
    history.append_string("::status")
    history.append_string("::run prog.json")
    reloaded = ScmdHistory(str(path))
    assert list(reloaded.load_history_strings()) == ["::run prog.json", "::status"]


def test_history_drops_blank_lines_and_adjacent_repeats(tmp_path):
    path = tmp_path / "history.txt"
    history = ScmdHistory(str(path))
    history.append_string(":c")
    history.append_string(":c ")
    history.append_string("   ")
    history.append_string("::events")
    history.append_string(":c")
    assert history.get_strings() == [":c", "::events", ":c"]
    assert list(ScmdHistory(str(path)).load_history_strings()) == [":c", "::events", ":c"]


def test_repeat_of_last_saved_entry_is_not_stored_again(tmp_path):
    path = tmp_path / "history.txt"
    ScmdHistory(str(path)).append_string("::scmds")
    history = ScmdHistory(str(path))
    history.append_string("::scmds")
    assert list(ScmdHistory(str(path)).load_history_strings()) == ["::scmds"]


def test_history_creates_missing_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "history.txt"
    ScmdHistory(str(path)).append_string("::bp 3")
    assert path.exists()
    assert list(ScmdHistory(str(path)).load_history_strings()) == ["::bp 3"]


def test_unwritable_history_is_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    history = ScmdHistory(str(blocker / "history.txt"))
    with caplog.at_level("DEBUG", logger="ctc.history"):
        history.append_string("::status")
    assert history.get_strings() == ["::status"]
    assert "unable to write history" in caplog.text


def test_open_history_without_path_is_memory_only():
    assert isinstance(open_history(None), InMemoryHistory)
    assert isinstance(open_history(""), InMemoryHistory)
