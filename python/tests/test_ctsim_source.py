"""Instruction source tests."""

from __future__ import annotations

import asyncio

import pytest

from ctsim.errors import InputError
from ctsim.source import as_source, iter_json_objects, read_json_stream


def test_json_values_may_span_lines():
    lines = ['{"op": "set",', ' "value": 5}', "", '{"op": "add", "value": 3}']
    assert list(iter_json_objects(lines)) == [{"op": "set", "value": 5}, {"op": "add", "value": 3}]


def test_trailing_fragment_is_malformed():
    with pytest.raises(InputError, match="malformed JSON input"):
        list(iter_json_objects(['{"op": "set"}', '{"op":']))


def test_read_json_stream_reports_missing_file(tmp_path):
    with pytest.raises(InputError, match="unable to open"):
        read_json_stream(tmp_path / "missing.json")


def test_read_json_stream_reads_lazily(tmp_path):
    path = tmp_path / "insns.json"
    path.write_text('{"a": 1}\n{"b": 2}\n', encoding="utf-8")
    assert list(read_json_stream(path)) == [{"a": 1}, {"b": 2}]


def test_as_source_rejects_non_iterables():
    with pytest.raises(InputError):
        as_source("a string is not an instruction source")
    with pytest.raises(InputError):
        as_source(42)


def test_sync_and_async_iterables_share_one_interface():
    async def produce():
        yield 1
        yield 2

    async def collect(source):
        return [item async for item in as_source(source)]

    assert asyncio.run(collect([1, 2])) == [1, 2]
    assert asyncio.run(collect(produce())) == [1, 2]
