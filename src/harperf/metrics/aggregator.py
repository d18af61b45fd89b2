"""Cross-report aggregation and comparison.

Aggregation is a fold over report summaries. ``AggregateReport`` keeps only
sums, so partial aggregates built independently (for example, one per CI
shard) can be combined with ``merge_aggregates`` without changing the result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from harperf._internal.logging import MISSING_SUMMARY_KIND, get_logger, recovery
from harperf.metrics.models import (
    AggregateReport,
    IndividualRollup,
    ReportComparison,
    round_half_up,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from harperf.metrics.models import PerformanceReport

logger = get_logger("metrics.aggregator")


def fold_report(aggregate: AggregateReport, report: PerformanceReport) -> AggregateReport:
    """Return *aggregate* with one more report folded in.

    Args:
        aggregate: Accumulator so far.
        report: Report to add. Must have a summary.

    Returns:
        New accumulator.

    Raises:
        ValueError: If *report* has no summary.
    """
    summary = report.summary
    if summary is None:
        msg = f"Report {report.test_name or report.trace_file!r} has no summary"
        raise ValueError(msg)

    rollup = IndividualRollup(
        name=report.test_name,
        duration=report.test_duration,
        request_count=summary.total_requests,
        avg_time=summary.average_response_time,
        failure_count=summary.failed_requests,
    )
    return AggregateReport(
        report_count=aggregate.report_count + 1,
        total_requests=aggregate.total_requests + summary.total_requests,
        total_time=aggregate.total_time + summary.total_time,
        total_failed_requests=aggregate.total_failed_requests + summary.failed_requests,
        individual=(*aggregate.individual, rollup),
    )


def merge_aggregates(first: AggregateReport, second: AggregateReport) -> AggregateReport:
    """Combine two partial aggregates; *first*'s rollups come first."""
    return AggregateReport(
        report_count=first.report_count + second.report_count,
        total_requests=first.total_requests + second.total_requests,
        total_time=first.total_time + second.total_time,
        total_failed_requests=first.total_failed_requests + second.total_failed_requests,
        individual=(*first.individual, *second.individual),
    )


def aggregate_reports(reports: Iterable[PerformanceReport]) -> AggregateReport | None:
    """Fold reports into a fleet-level aggregate.

    Reports without a summary are skipped with a warning.

    Args:
        reports: Reports in the order their rollups should appear.

    Returns:
        The aggregate, or None when no report has a summary.
    """
    aggregate = AggregateReport()
    for report in reports:
        if report.summary is None:
            logger.warning(
                "Skipping report %r without summary",
                report.test_name or report.trace_file,
                extra=recovery(MISSING_SUMMARY_KIND, report.trace_file),
            )
            continue
        aggregate = fold_report(aggregate, report)

    if aggregate.report_count == 0:
        logger.warning("No reports with a summary to aggregate")
        return None

    logger.debug(
        "Aggregated %d reports (%d requests)",
        aggregate.report_count,
        aggregate.total_requests,
    )
    return aggregate


def compare_reports(baseline: PerformanceReport, current: PerformanceReport) -> ReportComparison:
    """Compare *current* against *baseline*.

    The response time improvement is relative to the baseline average (0
    when the baseline average is 0). The failure improvement is relative to
    ``max(baseline failures, 1)``. Both are percentages rounded half up to 2 decimals.

    Args:
        baseline: Reference report.
        current: Report being evaluated.

    Returns:
        The comparison.

    Raises:
        ValueError: If either report has no summary.
    """
    if baseline.summary is None or current.summary is None:
        msg = "Both reports need a summary to be compared"
        raise ValueError(msg)

    before = baseline.summary
    after = current.summary

    if before.average_response_time > 0:
        response_gain = (
            (before.average_response_time - after.average_response_time)
            / before.average_response_time
            * 100
        )
    else:
        response_gain = 0.0
    failure_gain = (
        (before.failed_requests - after.failed_requests) / max(before.failed_requests, 1) * 100
    )

    return ReportComparison(
        average_response_time_diff=after.average_response_time - before.average_response_time,
        total_requests_diff=after.total_requests - before.total_requests,
        failed_requests_diff=after.failed_requests - before.failed_requests,
        response_time_improvement=round_half_up(response_gain),
        failure_improvement=round_half_up(failure_gain),
    )
