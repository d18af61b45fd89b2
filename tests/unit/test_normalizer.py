"""Tests for HAR parsing and entry normalization."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from conftest import make_entry, make_har

from harperf._internal.errors import InvalidTraceFormatError
from harperf.trace.normalizer import load_trace, normalize_entry, parse_trace


class TestNormalizeEntry:
    def test_full_entry(self):
        entry = make_entry(
            "https://example.com/api/items",
            method="POST",
            time=123.4,
            status=201,
            status_text="Created",
            mime_type="application/json",
            body_size=512,
            started="2024-05-01T10:00:00.000Z",
        )
        record = normalize_entry(entry)

        assert record.method == "POST"
        assert record.url == "https://example.com/api/items"
        assert record.elapsed_ms == 123.4
        assert record.status == 201
        assert record.status_text == "Created"
        assert record.content_type == "application/json"
        assert record.body_size == 512
        assert record.started_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)

    def test_empty_entry_gets_defaults(self):
        record = normalize_entry({})
        assert record.method == ""
        assert record.url == ""
        assert record.elapsed_ms == 0.0
        assert record.status == 0
        assert record.content_type == ""
        assert record.body_size == 0
        assert record.started_at is None
        assert not record.failed

    def test_negative_values_become_zero(self):
        """HAR uses -1 for unknown sizes and timings."""
        record = normalize_entry(make_entry("https://example.com/", time=-1, body_size=-1))
        assert record.elapsed_ms == 0.0
        assert record.body_size == 0

    @pytest.mark.parametrize("bad", ["fast", None, True, [1], {"ms": 3}])
    def test_non_numeric_time_becomes_zero(self, bad: object):
        record = normalize_entry(make_entry("https://example.com/", time=bad))
        assert record.elapsed_ms == 0.0

    def test_out_of_range_numbers_become_zero(self):
        huge = 10**400
        record = normalize_entry(
            make_entry("https://example.com/", time=huge, status=huge, body_size=huge)
        )
        assert record.elapsed_ms == 0.0
        assert record.status == 0
        assert record.body_size == 0

    def test_wrong_typed_sections_are_ignored(self):
        record = normalize_entry({"request": "GET /", "response": 404, "time": 5})
        assert record.method == ""
        assert record.status == 0
        assert record.elapsed_ms == 5.0

    def test_naive_start_time_is_utc(self):
        record = normalize_entry(make_entry("https://e.com/", started="2024-05-01T10:00:00"))
        assert record.started_at is not None
        assert record.started_at.tzinfo is UTC

    def test_unparseable_start_time_is_none(self):
        record = normalize_entry(make_entry("https://e.com/", started="yesterday"))
        assert record.started_at is None


class TestParseTrace:
    def test_entries_in_order(self):
        data = make_har(
            [make_entry("https://e.com/a"), make_entry("https://e.com/b")]
        )
        trace = parse_trace(data, source="t.har")

        assert trace.source == "t.har"
        assert [r.url for r in trace.records] == ["https://e.com/a", "https://e.com/b"]
        assert len(trace) == 2
        assert not trace.is_empty

    def test_accepts_bytes(self):
        trace = parse_trace(make_har([make_entry("https://e.com/a")]).encode())
        assert len(trace) == 1

    def test_invalid_json_raises(self):
        with pytest.raises(InvalidTraceFormatError, match="not valid JSON"):
            parse_trace("{not json")

    def test_undecodable_bytes_raise(self):
        with pytest.raises(InvalidTraceFormatError):
            parse_trace(b"\x80\x81\x82")

    def test_non_object_top_level_raises(self):
        with pytest.raises(InvalidTraceFormatError, match="must be a JSON object"):
            parse_trace("[1, 2, 3]")

    def test_missing_log_is_empty(self):
        trace = parse_trace("{}")
        assert trace.is_empty
        assert trace.skipped_entries == 0

    def test_entries_not_a_list_is_empty(self):
        trace = parse_trace(json.dumps({"log": {"entries": {"0": {}}}}))
        assert trace.is_empty

    def test_non_object_entries_are_skipped(self):
        data = make_har([make_entry("https://e.com/a"), "junk", 7, None])
        trace = parse_trace(data)
        assert len(trace) == 1
        assert trace.skipped_entries == 3

    def test_out_of_range_time_does_not_abort(self):
        data = make_har(
            [make_entry("https://e.com/a", time=10**400), make_entry("https://e.com/b", time=40)]
        )
        trace = parse_trace(data)
        assert [r.elapsed_ms for r in trace.records] == [0.0, 40.0]


class TestLoadTrace:
    def test_reads_file(self, scenario_file):
        trace = load_trace(scenario_file)
        assert trace.source == str(scenario_file)
        assert len(trace) == 3

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(InvalidTraceFormatError, match="Cannot read"):
            load_trace(tmp_path / "missing.har")
