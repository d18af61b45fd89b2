"""Report dataclasses for harperf.

Every type here serializes to the camelCase document layout consumed by
downstream report renderers (``to_dict``). ``PerformanceReport.from_dict``
reads saved reports back for cross-report aggregation and is lenient about
missing fields.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

    from harperf._internal.types import JsonObject, MetricsPayload

__all__ = [
    "AggregateReport",
    "ApiMetrics",
    "Category",
    "CategoryMetrics",
    "EndpointMetrics",
    "FailedRequest",
    "IndividualRollup",
    "LargeRequest",
    "PerformanceReport",
    "ReportComparison",
    "RequestRecord",
    "SlowRequest",
    "Summary",
    "Violation",
]


def round_half_up(value: float, places: int = 2) -> float:
    """Round *value* to *places* decimals, ties away from zero."""
    if not math.isfinite(value) or abs(value) >= 2**53:
        # already integral
        return value
    return float(Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def _num(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    try:
        return float(value)
    except OverflowError:
        return default


def _int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return default
    try:
        return int(value)
    except (OverflowError, ValueError):
        # inf or nan
        return default


class Category(str, Enum):
    """Content category of a request. Declaration order is rule precedence."""

    API = "api"
    JAVASCRIPT = "javascript"
    CSS = "css"
    IMAGES = "images"
    FONTS = "fonts"
    HTML = "html"
    OTHER = "other"


@dataclass(frozen=True)
class RequestRecord:
    """One normalized trace entry.

    Attributes:
        method: HTTP method, empty if absent.
        url: Full request URL, empty if absent.
        elapsed_ms: Total elapsed time in milliseconds (>= 0).
        status: HTTP response status, 0 if absent or unknown.
        status_text: HTTP reason phrase, empty if absent.
        content_type: Response MIME type, empty if absent.
        body_size: Response body size in bytes (>= 0).
        started_at: Request start time, None if absent or unparseable.
    """

    method: str = ""
    url: str = ""
    elapsed_ms: float = 0.0
    status: int = 0
    status_text: str = ""
    content_type: str = ""
    body_size: int = 0
    started_at: datetime | None = None

    @property
    def failed(self) -> bool:
        """True when the response status is 400 or above."""
        return self.status >= 400


@dataclass
class CategoryMetrics:
    """Totals for one request category.

    Mutated only while records are being categorized.

    Attributes:
        count: Number of records in the category.
        total_time_ms: Summed elapsed time in milliseconds.
        total_size_bytes: Summed response body size in bytes.
        average_time_ms: ``total_time_ms / count``, None while count is 0.
    """

    count: int = 0
    total_time_ms: float = 0.0
    total_size_bytes: int = 0
    average_time_ms: float | None = None

    def add(self, record: RequestRecord) -> None:
        self.count += 1
        self.total_time_ms += record.elapsed_ms
        self.total_size_bytes += record.body_size

    def finalize(self) -> None:
        """Compute the average once all records have been added."""
        self.average_time_ms = self.total_time_ms / self.count if self.count > 0 else None

    def to_dict(self) -> JsonObject:
        data: JsonObject = {
            "count": self.count,
            "totalTime": self.total_time_ms,
            "totalSize": self.total_size_bytes,
        }
        if self.average_time_ms is not None:
            data["averageTime"] = self.average_time_ms
        return data

    @classmethod
    def from_dict(cls, data: JsonObject) -> CategoryMetrics:
        average = data.get("averageTime")
        return cls(
            count=_int(data.get("count")),
            total_time_ms=_num(data.get("totalTime")),
            total_size_bytes=_int(data.get("totalSize")),
            average_time_ms=None if average is None else _num(average),
        )


@dataclass
class EndpointMetrics:
    """Aggregated timings for one ``(method, path)`` endpoint.

    ``min_time_ms`` starts at +inf and becomes finite with the first sample.

    Attributes:
        count: Number of calls.
        total_time_ms: Summed elapsed time in milliseconds.
        min_time_ms: Fastest call in milliseconds.
        max_time_ms: Slowest call in milliseconds.
        average_time_ms: ``total_time_ms / count``.
    """

    count: int = 0
    total_time_ms: float = 0.0
    min_time_ms: float = math.inf
    max_time_ms: float = 0.0
    average_time_ms: float = 0.0

    def add(self, elapsed_ms: float) -> None:
        self.count += 1
        self.total_time_ms += elapsed_ms
        self.min_time_ms = min(self.min_time_ms, elapsed_ms)
        self.max_time_ms = max(self.max_time_ms, elapsed_ms)

    def finalize(self) -> None:
        if self.count > 0:
            self.average_time_ms = self.total_time_ms / self.count

    def to_dict(self) -> JsonObject:
        return {
            "count": self.count,
            "totalTime": self.total_time_ms,
            "averageTime": self.average_time_ms,
            "minTime": self.min_time_ms,
            "maxTime": self.max_time_ms,
        }

    @classmethod
    def from_dict(cls, data: JsonObject) -> EndpointMetrics:
        return cls(
            count=_int(data.get("count")),
            total_time_ms=_num(data.get("totalTime")),
            min_time_ms=_num(data.get("minTime"), math.inf),
            max_time_ms=_num(data.get("maxTime")),
            average_time_ms=_num(data.get("averageTime")),
        )


@dataclass
class ApiMetrics:
    """Endpoint breakdown of the API calls in a trace.

    Attributes:
        total_calls: Every record recognized as an API call, including the
            ones left out of ``endpoints`` because their URL has no path.
        endpoints: Per-endpoint metrics keyed by ``"<METHOD> <path>"``.
    """

    total_calls: int = 0
    endpoints: dict[str, EndpointMetrics] = field(default_factory=dict)

    def to_dict(self) -> JsonObject:
        return {
            "totalCalls": self.total_calls,
            "endpoints": {key: ep.to_dict() for key, ep in self.endpoints.items()},
        }

    @classmethod
    def from_dict(cls, data: JsonObject) -> ApiMetrics:
        endpoints = data.get("endpoints")
        return cls(
            total_calls=_int(data.get("totalCalls")),
            endpoints={
                str(key): EndpointMetrics.from_dict(value)
                for key, value in (endpoints.items() if isinstance(endpoints, dict) else ())
                if isinstance(value, dict)
            },
        )


@dataclass(frozen=True)
class Summary:
    """Latency and volume summary of a trace. Times are in milliseconds.

    Attributes:
        total_requests: Number of records.
        total_time: Summed elapsed time.
        total_size: Summed response body size in bytes.
        failed_requests: Records with status >= 400.
        average_response_time: Mean elapsed time (0 when empty).
        median_response_time: Median elapsed time (0 when empty).
        percentile_95: Nearest-rank 95th percentile.
        percentile_99: Nearest-rank 99th percentile.
    """

    total_requests: int = 0
    total_time: float = 0.0
    total_size: int = 0
    failed_requests: int = 0
    average_response_time: float = 0.0
    median_response_time: float = 0.0
    percentile_95: float = 0.0
    percentile_99: float = 0.0

    def to_dict(self) -> JsonObject:
        return {
            "totalRequests": self.total_requests,
            "totalTime": self.total_time,
            "totalSize": self.total_size,
            "failedRequests": self.failed_requests,
            "averageResponseTime": self.average_response_time,
            "medianResponseTime": self.median_response_time,
            "percentile95": self.percentile_95,
            "percentile99": self.percentile_99,
        }

    @classmethod
    def from_dict(cls, data: JsonObject) -> Summary:
        return cls(
            total_requests=_int(data.get("totalRequests")),
            total_time=_num(data.get("totalTime")),
            total_size=_int(data.get("totalSize")),
            failed_requests=_int(data.get("failedRequests")),
            average_response_time=_num(data.get("averageResponseTime")),
            median_response_time=_num(data.get("medianResponseTime")),
            percentile_95=_num(data.get("percentile95")),
            percentile_99=_num(data.get("percentile99")),
        )


@dataclass(frozen=True)
class SlowRequest:
    url: str
    method: str
    time: float
    status: int

    def to_dict(self) -> JsonObject:
        return {"url": self.url, "method": self.method, "time": self.time, "status": self.status}

    @classmethod
    def from_dict(cls, data: JsonObject) -> SlowRequest:
        return cls(
            url=str(data.get("url", "")),
            method=str(data.get("method", "")),
            time=_num(data.get("time")),
            status=_int(data.get("status")),
        )


@dataclass(frozen=True)
class FailedRequest:
    url: str
    method: str
    time: float
    status: int
    status_text: str

    def to_dict(self) -> JsonObject:
        return {
            "url": self.url,
            "method": self.method,
            "time": self.time,
            "status": self.status,
            "statusText": self.status_text,
        }

    @classmethod
    def from_dict(cls, data: JsonObject) -> FailedRequest:
        return cls(
            url=str(data.get("url", "")),
            method=str(data.get("method", "")),
            time=_num(data.get("time")),
            status=_int(data.get("status")),
            status_text=str(data.get("statusText", "")),
        )


@dataclass(frozen=True)
class LargeRequest:
    url: str
    size: int
    time: float

    def to_dict(self) -> JsonObject:
        return {"url": self.url, "size": self.size, "time": self.time}

    @classmethod
    def from_dict(cls, data: JsonObject) -> LargeRequest:
        return cls(
            url=str(data.get("url", "")),
            size=_int(data.get("size")),
            time=_num(data.get("time")),
        )


@dataclass(frozen=True)
class Violation:
    """A breached performance budget.

    Attributes:
        metric: Name of the observed metric (e.g., ``failedRequests``).
        threshold: Configured upper bound.
        actual: Observed value.
        message: Human-readable description.
    """

    metric: str
    threshold: float
    actual: float
    message: str

    def to_dict(self) -> JsonObject:
        return {
            "metric": self.metric,
            "threshold": self.threshold,
            "actual": self.actual,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: JsonObject) -> Violation:
        return cls(
            metric=str(data.get("metric", "")),
            threshold=_num(data.get("threshold")),
            actual=_num(data.get("actual")),
            message=str(data.get("message", "")),
        )


def _items(data: JsonObject, *keys: str) -> list[JsonObject]:
    value: Any = data
    for key in keys:
        value = value.get(key) if isinstance(value, dict) else None
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass(frozen=True)
class PerformanceReport:
    """Complete analysis of a single trace.

    Attributes:
        timestamp: ISO-8601 time the report was assembled.
        trace_file: Identifier of the analyzed trace (usually its path).
        test_name: Caller-supplied name of the session, if any.
        test_duration: Session duration in milliseconds.
        summary: Latency and volume summary. Only None for partial reports
            read back from disk.
        request_types: Per-category metrics keyed by category name.
        slowest_requests: Slowest requests, slowest first.
        failed_requests: Requests with status >= 400, in trace order.
        largest_requests: Largest responses, largest first.
        api_metrics: Endpoint breakdown of the API calls.
        custom_metrics: Opaque caller-supplied payload.
        threshold_violations: Breached budgets, or None when no budget was
            evaluated.
    """

    timestamp: str
    trace_file: str
    test_name: str | None
    test_duration: float
    summary: Summary | None
    request_types: dict[str, CategoryMetrics] = field(default_factory=dict)
    slowest_requests: list[SlowRequest] = field(default_factory=list)
    failed_requests: list[FailedRequest] = field(default_factory=list)
    largest_requests: list[LargeRequest] = field(default_factory=list)
    api_metrics: ApiMetrics = field(default_factory=ApiMetrics)
    custom_metrics: MetricsPayload = field(default_factory=dict)
    threshold_violations: list[Violation] | None = None

    @property
    def passed(self) -> bool:
        """True unless a budget was evaluated and breached."""
        return not self.threshold_violations

    def to_dict(self) -> JsonObject:
        data: JsonObject = {
            "timestamp": self.timestamp,
            "traceFile": self.trace_file,
            "testName": self.test_name,
            "testDuration": self.test_duration,
            "summary": self.summary.to_dict() if self.summary is not None else None,
            "requestTypes": {name: m.to_dict() for name, m in self.request_types.items()},
            "performance": {
                "slowestRequests": [r.to_dict() for r in self.slowest_requests],
                "failedRequests": [r.to_dict() for r in self.failed_requests],
                "largestRequests": [r.to_dict() for r in self.largest_requests],
            },
            "apiMetrics": self.api_metrics.to_dict(),
            "customMetrics": self.custom_metrics,
        }
        if self.threshold_violations is not None:
            data["thresholdViolations"] = [v.to_dict() for v in self.threshold_violations]
        return data

    @classmethod
    def from_dict(cls, data: JsonObject) -> PerformanceReport:
        """Rebuild a report from its document form.

        Missing sections fall back to empty defaults. A missing or non-object
        ``summary`` yields ``summary=None``.

        Args:
            data: Report document as produced by ``to_dict``.

        Returns:
            The reconstructed report.
        """
        raw_summary = data.get("summary")
        raw_types = data.get("requestTypes")
        raw_api = data.get("apiMetrics")
        raw_custom = data.get("customMetrics")
        test_name = data.get("testName")
        violations = data.get("thresholdViolations")

        return cls(
            timestamp=str(data.get("timestamp", "")),
            trace_file=str(data.get("traceFile", "")),
            test_name=None if test_name is None else str(test_name),
            test_duration=_num(data.get("testDuration")),
            summary=Summary.from_dict(raw_summary) if isinstance(raw_summary, dict) else None,
            request_types={
                str(name): CategoryMetrics.from_dict(value)
                for name, value in (raw_types.items() if isinstance(raw_types, dict) else ())
                if isinstance(value, dict)
            },
            slowest_requests=[
                SlowRequest.from_dict(r) for r in _items(data, "performance", "slowestRequests")
            ],
            failed_requests=[
                FailedRequest.from_dict(r) for r in _items(data, "performance", "failedRequests")
            ],
            largest_requests=[
                LargeRequest.from_dict(r) for r in _items(data, "performance", "largestRequests")
            ],
            api_metrics=(
                ApiMetrics.from_dict(raw_api) if isinstance(raw_api, dict) else ApiMetrics()
            ),
            custom_metrics=dict(raw_custom) if isinstance(raw_custom, dict) else {},
            threshold_violations=(
                [Violation.from_dict(v) for v in _items(data, "thresholdViolations")]
                if isinstance(violations, list)
                else None
            ),
        )


@dataclass(frozen=True)
class IndividualRollup:
    """One report's row in an aggregate.

    Attributes:
        name: Test name of the source report.
        duration: Test duration in milliseconds.
        request_count: Total requests in the source report.
        avg_time: Mean response time of the source report.
        failure_count: Failed requests in the source report.
    """

    name: str | None
    duration: float
    request_count: int
    avg_time: float
    failure_count: int

    def to_dict(self) -> JsonObject:
        return {
            "name": self.name,
            "duration": self.duration,
            "requestCount": self.request_count,
            "avgTime": self.avg_time,
            "failureCount": self.failure_count,
        }


@dataclass(frozen=True)
class AggregateReport:
    """Fleet-level fold over many reports.

    Only sums are stored; averages and rates are derived so that partial
    aggregates can be merged in any grouping.

    Attributes:
        report_count: Number of reports folded in.
        total_requests: Sum of ``summary.total_requests``.
        total_time: Sum of ``summary.total_time``.
        total_failed_requests: Sum of ``summary.failed_requests``.
        individual: Per-report rollups, in input order.
    """

    report_count: int = 0
    total_requests: int = 0
    total_time: float = 0.0
    total_failed_requests: int = 0
    individual: tuple[IndividualRollup, ...] = ()

    @property
    def average_response_time(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_time / self.total_requests

    @property
    def failure_rate(self) -> float:
        """Failed requests as a percentage, rounded to 2 decimals."""
        if self.total_requests == 0:
            return 0.0
        return round_half_up(self.total_failed_requests / self.total_requests * 100)

    def to_dict(self) -> JsonObject:
        return {
            "reportCount": self.report_count,
            "aggregate": {
                "totalRequests": self.total_requests,
                "totalTime": self.total_time,
                "totalFailedRequests": self.total_failed_requests,
                "averageResponseTime": self.average_response_time,
                "failureRate": self.failure_rate,
            },
            "individual": [row.to_dict() for row in self.individual],
        }


@dataclass(frozen=True)
class ReportComparison:
    """Difference between a baseline report and a current report.

    Diffs are ``current - baseline``. Improvements are percentages where a
    positive value means the current run is better.

    Attributes:
        average_response_time_diff: Change in mean response time (ms).
        total_requests_diff: Change in request count.
        failed_requests_diff: Change in failed request count.
        response_time_improvement: Percentage drop in mean response time.
        failure_improvement: Percentage drop in failed requests.
    """

    average_response_time_diff: float
    total_requests_diff: int
    failed_requests_diff: int
    response_time_improvement: float
    failure_improvement: float

    def to_dict(self) -> JsonObject:
        return {
            "averageResponseTimeDiff": self.average_response_time_diff,
            "totalRequestsDiff": self.total_requests_diff,
            "failedRequestsDiff": self.failed_requests_diff,
            "percentageImprovement": {
                "responseTime": self.response_time_improvement,
                "failureRate": self.failure_improvement,
            },
        }
