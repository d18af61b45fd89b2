"""Top-N request rankings.

``sorted`` is stable, so records with equal keys keep their trace order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from harperf.metrics.models import FailedRequest, LargeRequest, SlowRequest

if TYPE_CHECKING:
    from collections.abc import Sequence

    from harperf.metrics.models import RequestRecord


def slowest_requests(records: Sequence[RequestRecord], limit: int = 10) -> list[SlowRequest]:
    """Return the *limit* slowest requests, slowest first.

    Records without a URL (entries that carried no request) are not ranked.
    """
    ranked = sorted((r for r in records if r.url), key=lambda r: r.elapsed_ms, reverse=True)
    return [
        SlowRequest(url=r.url, method=r.method, time=r.elapsed_ms, status=r.status)
        for r in ranked[: max(limit, 0)]
    ]


def failed_requests(records: Sequence[RequestRecord]) -> list[FailedRequest]:
    """Return every request with status >= 400, in trace order."""
    return [
        FailedRequest(
            url=r.url,
            method=r.method,
            time=r.elapsed_ms,
            status=r.status,
            status_text=r.status_text,
        )
        for r in records
        if r.failed
    ]


def largest_requests(records: Sequence[RequestRecord], limit: int = 5) -> list[LargeRequest]:
    """Return the *limit* largest responses, largest first.

    Records without a known body size are not ranked.
    """
    sized = [r for r in records if r.body_size > 0]
    ranked = sorted(sized, key=lambda r: r.body_size, reverse=True)
    return [
        LargeRequest(url=r.url, size=r.body_size, time=r.elapsed_ms)
        for r in ranked[: max(limit, 0)]
    ]
