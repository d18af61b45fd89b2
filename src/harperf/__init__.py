"""harperf: performance reports from captured HAR traces."""

from __future__ import annotations

from harperf._internal.config import AnalyzerConfig, ThresholdConfig, load_config
from harperf._internal.errors import (
    ConfigError,
    HarPerfError,
    InvalidTraceFormatError,
    ReportFormatError,
)
from harperf.engine.analyzer import TraceAnalyzer
from harperf.metrics.aggregator import aggregate_reports, compare_reports, merge_aggregates
from harperf.metrics.custom import CustomMetrics
from harperf.metrics.models import AggregateReport, Category, PerformanceReport
from harperf.metrics.statistics import median, percentile
from harperf.metrics.store import load_report, save_report
from harperf.trace.normalizer import load_trace, parse_trace

__version__ = "0.1.0"

__all__ = [
    "AggregateReport",
    "AnalyzerConfig",
    "Category",
    "ConfigError",
    "CustomMetrics",
    "HarPerfError",
    "InvalidTraceFormatError",
    "PerformanceReport",
    "ReportFormatError",
    "ThresholdConfig",
    "TraceAnalyzer",
    "aggregate_reports",
    "compare_reports",
    "load_config",
    "load_report",
    "load_trace",
    "median",
    "merge_aggregates",
    "parse_trace",
    "percentile",
    "save_report",
]
