"""Breakpoint table tests."""

from __future__ import annotations

from ctsim.breakpoints import Breakpoint, BreakpointTable, parse_addr


def test_parse_addr_forms():
    assert parse_addr("12") == 12
    assert parse_addr("0x10") == 16
    assert parse_addr(" 0b11 ") == 3
    assert parse_addr("-1") is None
    assert parse_addr("main") is None


def test_insert_is_idempotent_per_address():
    table = BreakpointTable()
    first = table.insert(5)
    again = table.insert(5)
    assert first == again == Breakpoint(0, 5)
    assert len(table) == 1
    assert 5 in table


def test_maps_stay_consistent_after_remove():
    table = BreakpointTable()
    a = table.insert(10)
    b = table.insert(20)
    table.remove(a)
    assert table.resolve("#0") is None
    assert table.id_for(10) is None
    assert list(table) == [b]
    assert table.insert(10).id == 2


def test_resolve_follows_id_then_address_rule():
    table = BreakpointTable()
    table.insert(7)   # id 0
    table.insert(0)   # id 1
    table.insert(1)   # id 2
    assert table.resolve("#2") == Breakpoint(2, 1)
    # A plain number is an id when that id exists.
    assert table.resolve("1") == Breakpoint(1, 0)
    assert table.resolve("0x1") == Breakpoint(2, 1)
    # Otherwise it names an address.
    assert table.resolve("7") == Breakpoint(0, 7)
    assert table.resolve("#9") is None
    assert table.resolve("99") is None


def test_clear_returns_removed_entries():
    table = BreakpointTable()
    table.insert(3)
    table.insert(4)
    removed = table.clear()
    assert [bp.addr for bp in removed] == [3, 4]
    assert len(table) == 0
