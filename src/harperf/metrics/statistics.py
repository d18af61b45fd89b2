"""Order statistics and trace summaries.

Percentiles use the nearest-rank method: the result is always one of the
observed values, never an interpolation between neighbours. This differs
from ``numpy.percentile``'s default (linear) method, so the rank is computed
explicitly over a sorted array.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from harperf.metrics.models import Summary

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from harperf.metrics.models import RequestRecord


def _sorted_array(values: Iterable[float]) -> np.ndarray:
    return np.sort(np.fromiter(values, dtype=np.float64))


def _median_of_sorted(arr: np.ndarray) -> float:
    n = arr.size
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2:
        return float(arr[mid])
    return float((arr[mid - 1] + arr[mid]) / 2)


def _rank_of_sorted(arr: np.ndarray, p: float) -> float:
    n = arr.size
    if n == 0:
        return 0.0
    # p * n / 100 keeps integer inputs exact, e.g. 95 * 20 / 100 == 19.0
    index = math.ceil(p * n / 100) - 1
    index = min(max(index, 0), n - 1)
    return float(arr[index])


def median(values: Iterable[float]) -> float:
    """Return the median of *values*.

    Odd-length input yields the middle element; even-length input yields
    the mean of the two middle elements.

    Args:
        values: Numbers in any order.

    Returns:
        The median, or 0.0 for empty input.
    """
    return _median_of_sorted(_sorted_array(values))


def percentile(values: Iterable[float], p: float) -> float:
    """Return the nearest-rank *p*-th percentile of *values*.

    The element at index ``ceil(p / 100 * n) - 1`` of the sorted input,
    clamped to ``[0, n - 1]``.

    Args:
        values: Numbers in any order.
        p: Percentile in ``[0, 100]``.

    Returns:
        An element of *values*, or 0.0 for empty input.

    Raises:
        ValueError: If *p* is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        msg = f"percentile must be within [0, 100], got {p}"
        raise ValueError(msg)
    return _rank_of_sorted(_sorted_array(values), p)


def summarize(records: Sequence[RequestRecord]) -> Summary:
    """Compute the latency and volume summary of a set of records.

    The result depends only on the multiset of values, not on record order.

    Args:
        records: Normalized request records.

    Returns:
        Summary. All fields are 0 for empty input.
    """
    if not records:
        return Summary()

    times = _sorted_array(r.elapsed_ms for r in records)
    total_time = float(times.sum())
    total_requests = len(records)

    return Summary(
        total_requests=total_requests,
        total_time=total_time,
        total_size=sum(r.body_size for r in records),
        failed_requests=sum(1 for r in records if r.failed),
        average_response_time=total_time / total_requests,
        median_response_time=_median_of_sorted(times),
        percentile_95=_rank_of_sorted(times, 95.0),
        percentile_99=_rank_of_sorted(times, 99.0),
    )


def span_ms(records: Iterable[RequestRecord]) -> float:
    """Return the wall-clock span covered by *records* in milliseconds.

    Computed as ``max(start + elapsed) - min(start)`` over the records that
    carry a start time.

    Args:
        records: Normalized request records.

    Returns:
        The span, or 0.0 when no record has a start time.
    """
    starts: list[float] = []
    ends: list[float] = []
    for record in records:
        if record.started_at is None:
            continue
        start_ms = record.started_at.timestamp() * 1000
        starts.append(start_ms)
        ends.append(start_ms + record.elapsed_ms)

    if not starts:
        return 0.0
    return max(ends) - min(starts)
