"""Performance budget evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from harperf.metrics.models import Violation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from harperf._internal.config import ThresholdConfig
    from harperf.metrics.models import Summary

PAGE_LOAD_METRIC = "pageLoadTime"


def _page_load_time(custom_metrics: Mapping[str, Any] | None) -> float | None:
    if not custom_metrics:
        return None
    value = custom_metrics.get(PAGE_LOAD_METRIC)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        return float(value)
    except OverflowError:
        return None


def evaluate_thresholds(
    summary: Summary,
    thresholds: ThresholdConfig | None,
    *,
    slowest_request_ms: float = 0.0,
    custom_metrics: Mapping[str, Any] | None = None,
) -> list[Violation] | None:
    """Compare a summary against a budget.

    Each configured bound is checked independently and breached when the
    observed value is strictly greater than the bound. Unset bounds are
    never breached.

    Args:
        summary: Summary of the analyzed trace.
        thresholds: Budget to apply, or None to skip evaluation.
        slowest_request_ms: Elapsed time of the slowest single request,
            checked against ``max_request_time``.
        custom_metrics: Caller metrics; only ``pageLoadTime`` is read, and
            only when it is a number.

    Returns:
        Violations in check order, or None when *thresholds* is None.
    """
    if thresholds is None:
        return None

    checks: list[tuple[str, float | None, float | None, str]] = [
        (
            "averageResponseTime",
            thresholds.max_average_response_time,
            summary.average_response_time,
            "Average response time exceeded threshold",
        ),
        (
            "failedRequests",
            thresholds.max_failed_requests,
            summary.failed_requests,
            "Failed requests exceeded threshold",
        ),
        (
            "totalTime",
            thresholds.max_total_time,
            summary.total_time,
            "Total request time exceeded threshold",
        ),
        (
            "requestTime",
            thresholds.max_request_time,
            slowest_request_ms,
            "Slowest request exceeded threshold",
        ),
        (
            PAGE_LOAD_METRIC,
            thresholds.max_page_load_time,
            _page_load_time(custom_metrics),
            "Page load time exceeded threshold",
        ),
    ]

    violations: list[Violation] = []
    for metric, bound, actual, message in checks:
        if bound is None or actual is None:
            continue
        if actual > bound:
            violations.append(
                Violation(metric=metric, threshold=bound, actual=actual, message=message)
            )
    return violations
