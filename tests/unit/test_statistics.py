"""Tests for median, nearest-rank percentiles, and trace summaries."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from harperf.metrics.models import RequestRecord
from harperf.metrics.statistics import median, percentile, span_ms, summarize


def _make_record(
    elapsed: float,
    *,
    status: int = 200,
    size: int = 0,
    started: datetime | None = None,
) -> RequestRecord:
    return RequestRecord(
        method="GET",
        url="https://example.com/x",
        elapsed_ms=elapsed,
        status=status,
        body_size=size,
        started_at=started,
    )


class TestMedian:
    def test_empty_is_zero(self):
        assert median([]) == 0.0

    def test_single_value(self):
        assert median([42.0]) == 42.0

    def test_odd_length_takes_middle(self):
        assert median([300, 100, 200]) == 200.0

    def test_even_length_averages_middle_pair(self):
        assert median([1, 2, 3, 4]) == 2.5

    def test_order_does_not_matter(self):
        values = [9, 1, 7, 3, 5, 11]
        assert median(values) == median(sorted(values)) == median(reversed(values))

    def test_accepts_generator(self):
        assert median(v for v in (3, 1, 2)) == 2.0


class TestPercentile:
    def test_empty_is_zero(self):
        assert percentile([], 95) == 0.0

    def test_p100_is_max(self):
        values = [5, 1, 9, 3]
        assert percentile(values, 100) == 9.0

    def test_p0_is_min(self):
        """p=0 clamps to the first element."""
        assert percentile([5, 1, 9, 3], 0) == 1.0

    def test_nearest_rank_on_twenty_values(self):
        """95th of 1..20 is the 19th value, not an interpolation."""
        values = list(range(1, 21))
        assert percentile(values, 95) == 19.0
        assert percentile(values, 99) == 20.0
        assert percentile(values, 50) == 10.0

    def test_result_is_an_observed_value(self):
        values = [10.0, 20.0, 35.5, 70.0, 110.0]
        for p in (1, 17, 33.3, 50, 66.6, 90, 99.9):
            assert percentile(values, p) in values

    def test_monotone_in_p(self):
        values = [8, 3, 14, 1, 6, 22, 9, 5]
        ranks = [percentile(values, p) for p in range(0, 101, 5)]
        assert ranks == sorted(ranks)

    def test_single_value_for_every_p(self):
        for p in (0, 50, 95, 100):
            assert percentile([7], p) == 7.0

    @pytest.mark.parametrize("p", [-1, 100.5, 250])
    def test_out_of_range_raises(self, p: float):
        with pytest.raises(ValueError, match="within"):
            percentile([1, 2, 3], p)


class TestSummarize:
    def test_empty_records_give_zero_summary(self):
        summary = summarize([])
        assert summary.total_requests == 0
        assert summary.total_time == 0.0
        assert summary.average_response_time == 0.0
        assert summary.percentile_99 == 0.0

    def test_three_records(self):
        records = [
            _make_record(100, size=5000),
            _make_record(200, status=500, size=120),
            _make_record(300, size=20000),
        ]
        summary = summarize(records)

        assert summary.total_requests == 3
        assert summary.total_time == 600.0
        assert summary.total_size == 25120
        assert summary.failed_requests == 1
        assert summary.average_response_time == 200.0
        assert summary.median_response_time == 200.0
        assert summary.percentile_95 == 300.0
        assert summary.percentile_99 == 300.0

    def test_status_399_is_not_failed(self):
        summary = summarize([_make_record(1, status=399), _make_record(1, status=400)])
        assert summary.failed_requests == 1

    def test_invariant_under_reordering(self):
        records = [_make_record(t, status=s) for t, s in [(50, 200), (10, 404), (90, 200)]]
        assert summarize(records) == summarize(list(reversed(records)))

    def test_average_times_count_equals_total(self):
        records = [_make_record(t) for t in (12.5, 40.0, 7.25, 100.0)]
        summary = summarize(records)
        assert summary.average_response_time * summary.total_requests == pytest.approx(
            summary.total_time
        )


class TestSpan:
    def test_no_start_times(self):
        assert span_ms([_make_record(100)]) == 0.0

    def test_span_covers_first_start_to_last_end(self):
        t0 = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        records = [
            _make_record(100, started=t0),
            _make_record(300, started=t0 + timedelta(milliseconds=200)),
        ]
        assert span_ms(records) == pytest.approx(500.0)

    def test_records_without_start_are_ignored(self):
        t0 = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        records = [_make_record(50, started=t0), _make_record(10_000)]
        assert span_ms(records) == pytest.approx(50.0)
