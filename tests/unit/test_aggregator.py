"""Tests for cross-report aggregation and comparison."""

from __future__ import annotations

import pytest

from harperf.metrics.aggregator import (
    aggregate_reports,
    compare_reports,
    fold_report,
    merge_aggregates,
)
from harperf.metrics.models import AggregateReport, PerformanceReport, Summary, round_half_up


def _make_report(
    name: str,
    requests: int,
    total_time: float,
    failed: int = 0,
    *,
    with_summary: bool = True,
) -> PerformanceReport:
    summary = (
        Summary(
            total_requests=requests,
            total_time=total_time,
            failed_requests=failed,
            average_response_time=total_time / requests if requests else 0.0,
        )
        if with_summary
        else None
    )
    return PerformanceReport(
        timestamp="2024-05-01T10:00:00+00:00",
        trace_file=f"{name}.har",
        test_name=name,
        test_duration=1000.0,
        summary=summary,
    )


class TestAggregateReports:
    def test_two_reports(self):
        aggregate = aggregate_reports(
            [_make_report("a", 10, 1000.0, failed=1), _make_report("b", 30, 5000.0, failed=2)]
        )
        assert aggregate is not None
        assert aggregate.report_count == 2
        assert aggregate.total_requests == 40
        assert aggregate.total_time == 6000.0
        assert aggregate.total_failed_requests == 3
        assert aggregate.average_response_time == 150.0
        assert aggregate.failure_rate == 7.5
        assert [row.name for row in aggregate.individual] == ["a", "b"]
        assert aggregate.individual[1].avg_time == pytest.approx(166.6666, rel=1e-4)

    def test_failure_rate_rounded(self):
        aggregate = aggregate_reports([_make_report("a", 3, 30.0, failed=1)])
        assert aggregate is not None
        assert aggregate.failure_rate == 33.33

    def test_failure_rate_rounds_ties_up(self):
        aggregate = aggregate_reports([_make_report("a", 800, 8000.0, failed=1)])
        assert aggregate is not None
        assert aggregate.failure_rate == 0.13

    def test_empty_input_returns_none(self):
        assert aggregate_reports([]) is None

    def test_reports_without_summary_are_skipped(self):
        aggregate = aggregate_reports(
            [_make_report("partial", 0, 0.0, with_summary=False), _make_report("ok", 4, 400.0)]
        )
        assert aggregate is not None
        assert aggregate.report_count == 1
        assert aggregate.individual[0].name == "ok"

    def test_only_partial_reports_returns_none(self):
        assert aggregate_reports([_make_report("p", 0, 0.0, with_summary=False)]) is None

    def test_zero_requests_has_zero_rates(self):
        aggregate = aggregate_reports([_make_report("idle", 0, 0.0)])
        assert aggregate is not None
        assert aggregate.average_response_time == 0.0
        assert aggregate.failure_rate == 0.0

    def test_document_layout(self):
        aggregate = aggregate_reports([_make_report("a", 2, 100.0, failed=1)])
        assert aggregate is not None
        document = aggregate.to_dict()

        assert document["reportCount"] == 1
        assert document["aggregate"] == {
            "totalRequests": 2,
            "totalTime": 100.0,
            "totalFailedRequests": 1,
            "averageResponseTime": 50.0,
            "failureRate": 50.0,
        }
        assert document["individual"] == [
            {
                "name": "a",
                "duration": 1000.0,
                "requestCount": 2,
                "avgTime": 50.0,
                "failureCount": 1,
            }
        ]


class TestFoldAndMerge:
    def test_fold_rejects_missing_summary(self):
        with pytest.raises(ValueError, match="no summary"):
            fold_report(AggregateReport(), _make_report("p", 0, 0.0, with_summary=False))

    def test_merge_is_associative(self):
        a, b, c = (
            _make_report("a", 5, 500.0, failed=1),
            _make_report("b", 7, 140.0),
            _make_report("c", 1, 9.0, failed=1),
        )
        agg_a = fold_report(AggregateReport(), a)
        agg_b = fold_report(AggregateReport(), b)
        agg_c = fold_report(AggregateReport(), c)

        left = merge_aggregates(merge_aggregates(agg_a, agg_b), agg_c)
        right = merge_aggregates(agg_a, merge_aggregates(agg_b, agg_c))

        assert left == right
        assert left == aggregate_reports([a, b, c])

    def test_empty_aggregate_is_identity(self):
        agg = fold_report(AggregateReport(), _make_report("a", 5, 500.0))
        assert merge_aggregates(AggregateReport(), agg) == agg
        assert merge_aggregates(agg, AggregateReport()) == agg


class TestCompareReports:
    def test_improvement(self):
        baseline = _make_report("before", 10, 2000.0, failed=4)
        current = _make_report("after", 12, 1800.0, failed=1)
        comparison = compare_reports(baseline, current)

        assert comparison.average_response_time_diff == -50.0
        assert comparison.total_requests_diff == 2
        assert comparison.failed_requests_diff == -3
        assert comparison.response_time_improvement == 25.0
        assert comparison.failure_improvement == 75.0

    def test_regression_is_negative(self):
        comparison = compare_reports(
            _make_report("before", 10, 1000.0),
            _make_report("after", 10, 1500.0, failed=2),
        )
        assert comparison.response_time_improvement == -50.0
        assert comparison.failure_improvement == -200.0

    def test_improvement_rounds_ties_up(self):
        comparison = compare_reports(
            _make_report("before", 800, 640000.0),
            _make_report("after", 800, 639200.0),
        )
        assert comparison.response_time_improvement == 0.13

    def test_zero_baseline_average(self):
        comparison = compare_reports(_make_report("b", 0, 0.0), _make_report("c", 1, 10.0))
        assert comparison.response_time_improvement == 0.0

    def test_document_layout(self):
        document = compare_reports(_make_report("b", 1, 10.0), _make_report("c", 1, 10.0)).to_dict()
        assert set(document) == {
            "averageResponseTimeDiff",
            "totalRequestsDiff",
            "failedRequestsDiff",
            "percentageImprovement",
        }
        assert set(document["percentageImprovement"]) == {"responseTime", "failureRate"}

    def test_missing_summary_raises(self):
        with pytest.raises(ValueError, match="need a summary"):
            compare_reports(
                _make_report("b", 1, 1.0, with_summary=False),
                _make_report("c", 1, 1.0),
            )


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.125, 0.13),
            (-0.125, -0.13),
            (33.3333, 33.33),
            # 2.675 is stored just below the tie
            (2.675, 2.67),
            (float("inf"), float("inf")),
        ],
    )
    def test_two_places(self, value: float, expected: float):
        assert round_half_up(value) == expected
