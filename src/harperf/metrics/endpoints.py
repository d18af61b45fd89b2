"""Per-endpoint metrics for API calls."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from harperf._internal.logging import UNPARSABLE_URL_KIND, get_logger, recovery
from harperf.metrics.categorizer import looks_like_api
from harperf.metrics.models import ApiMetrics, EndpointMetrics

if TYPE_CHECKING:
    from collections.abc import Iterable

    from harperf.metrics.models import RequestRecord

logger = get_logger("metrics.endpoints")


def endpoint_key(record: RequestRecord) -> str | None:
    """Return the ``"<METHOD> <path>"`` key for *record*.

    Only absolute URLs (with scheme and host) can be keyed. The query string
    and fragment are dropped; an empty path keys as ``/``.

    Args:
        record: The record to key.

    Returns:
        The endpoint key, or None when the URL cannot be decomposed.
    """
    try:
        parts = urlsplit(record.url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return f"{record.method} {parts.path or '/'}"


def aggregate_endpoints(
    records: Iterable[RequestRecord],
    extra_markers: Iterable[str] = (),
    *,
    source: str = "<memory>",
) -> ApiMetrics:
    """Group API calls by endpoint and total their timings.

    ``total_calls`` counts every record recognized as an API call, including
    those skipped from the endpoint map because their URL could not be
    decomposed.

    Args:
        records: Normalized request records.
        extra_markers: Additional URL substrings that mark an API call.
        source: Trace identifier used in log messages.

    Returns:
        ApiMetrics with finalized per-endpoint averages.
    """
    markers = tuple(extra_markers)
    endpoints: dict[str, EndpointMetrics] = {}
    total_calls = 0

    for record in records:
        if not looks_like_api(record, markers):
            continue
        total_calls += 1

        key = endpoint_key(record)
        if key is None:
            logger.warning(
                "Invalid URL in API metrics: %r",
                record.url,
                extra=recovery(UNPARSABLE_URL_KIND, source),
            )
            continue

        if key not in endpoints:
            endpoints[key] = EndpointMetrics()
        endpoints[key].add(record.elapsed_ms)

    for metrics in endpoints.values():
        metrics.finalize()

    return ApiMetrics(total_calls=total_calls, endpoints=endpoints)
