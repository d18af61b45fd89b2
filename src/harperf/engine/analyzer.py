"""Single-trace analysis: normalized records in, assembled report out."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from harperf._internal.config import AnalyzerConfig
from harperf._internal.logging import EMPTY_TRACE_KIND, get_logger, recovery
from harperf.metrics.categorizer import categorize_records
from harperf.metrics.endpoints import aggregate_endpoints
from harperf.metrics.models import PerformanceReport
from harperf.metrics.rankings import failed_requests, largest_requests, slowest_requests
from harperf.metrics.statistics import span_ms, summarize
from harperf.metrics.thresholds import evaluate_thresholds
from harperf.trace.normalizer import NormalizedTrace, load_trace, parse_trace

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from harperf._internal.config import ThresholdConfig


logger = get_logger("engine.analyzer")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class TraceAnalyzer:
    """Builds a ``PerformanceReport`` from a captured trace.

    The analyzer holds only its configuration, so one instance can analyze
    any number of traces, including from several threads at once.

    Attributes:
        config: Analysis configuration for this run.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the analyzer.

        Args:
            config: Analysis configuration. Defaults to ``AnalyzerConfig()``.
            clock: Returns the report timestamp.
        """
        self.config = config or AnalyzerConfig()
        self._clock = clock

    def analyze(
        self,
        trace: NormalizedTrace | bytes | str,
        *,
        test_name: str | None = None,
        test_duration_ms: float | None = None,
        custom_metrics: Mapping[str, Any] | None = None,
        thresholds: ThresholdConfig | None = None,
    ) -> PerformanceReport | None:
        """Analyze one trace.

        Args:
            trace: A normalized trace, or a raw HAR document to parse.
            test_name: Name recorded on the report.
            test_duration_ms: Session duration measured by the caller. When
                omitted, the span of the trace entries is used.
            custom_metrics: Opaque payload copied into the report.
            thresholds: Budget to evaluate. Defaults to
                ``config.thresholds``; when both are None the report has no
                ``threshold_violations``.

        Returns:
            The report, or None when the trace has no entries.

        Raises:
            InvalidTraceFormatError: If a raw document cannot be parsed.
        """
        if not isinstance(trace, NormalizedTrace):
            trace = parse_trace(trace)

        if trace.is_empty:
            logger.warning(
                "No entries found in trace %s",
                trace.source,
                extra=recovery(EMPTY_TRACE_KIND, trace.source),
            )
            return None

        records = trace.records
        summary = summarize(records)
        categories = categorize_records(records)
        custom = dict(custom_metrics or {})
        budget = thresholds if thresholds is not None else self.config.thresholds

        violations = evaluate_thresholds(
            summary,
            budget,
            slowest_request_ms=max(r.elapsed_ms for r in records),
            custom_metrics=custom,
        )
        if violations:
            logger.info("Trace %s breached %d threshold(s)", trace.source, len(violations))

        report = PerformanceReport(
            timestamp=self._clock().isoformat(),
            trace_file=trace.source,
            test_name=test_name,
            test_duration=test_duration_ms if test_duration_ms is not None else span_ms(records),
            summary=summary,
            request_types={category.value: m for category, m in categories.items()},
            slowest_requests=slowest_requests(records, self.config.slow_request_limit),
            failed_requests=failed_requests(records),
            largest_requests=largest_requests(records, self.config.largest_request_limit),
            api_metrics=aggregate_endpoints(
                records, self.config.api_url_markers, source=trace.source
            ),
            custom_metrics=custom,
            threshold_violations=violations,
        )

        logger.debug(
            "Analyzed %s: %d requests, %d failed",
            trace.source,
            summary.total_requests,
            summary.failed_requests,
        )
        return report

    def analyze_file(
        self,
        path: str | Path,
        **kwargs: Any,
    ) -> PerformanceReport | None:
        """Load a HAR file and analyze it.

        Args:
            path: Path to the ``.har`` file.
            **kwargs: Forwarded to :meth:`analyze`.

        Returns:
            The report, or None when the trace has no entries.

        Raises:
            InvalidTraceFormatError: If the file cannot be read or parsed.
        """
        return self.analyze(load_trace(path), **kwargs)
