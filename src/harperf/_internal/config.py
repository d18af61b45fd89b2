"""Configuration loading for harperf."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

from harperf._internal.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

THRESHOLD_LEVELS = ("default", "strict", "relaxed")

# camelCase keys accepted in threshold files, mapped to dataclass fields.
_THRESHOLD_KEYS = {
    "maxAverageResponseTime": "max_average_response_time",
    "maxFailedRequests": "max_failed_requests",
    "maxTotalTime": "max_total_time",
    "maxRequestTime": "max_request_time",
    "maxPageLoadTime": "max_page_load_time",
}


@dataclass(frozen=True)
class ThresholdConfig:
    """Performance budget evaluated against a report summary.

    Every bound is optional; ``None`` means the metric is unbounded.
    All times are in milliseconds.

    Attributes:
        max_average_response_time: Upper bound on the mean response time.
        max_failed_requests: Upper bound on the number of requests with
            status >= 400.
        max_total_time: Upper bound on the summed response time.
        max_request_time: Upper bound on any single request's elapsed time.
        max_page_load_time: Upper bound on the ``pageLoadTime`` custom metric.
    """

    max_average_response_time: float | None = None
    max_failed_requests: float | None = None
    max_total_time: float | None = None
    max_request_time: float | None = None
    max_page_load_time: float | None = None

    @classmethod
    def preset(cls, level: str) -> ThresholdConfig:
        """Return one of the built-in budgets.

        Args:
            level: One of ``default``, ``strict`` or ``relaxed``.

        Returns:
            The matching ThresholdConfig.

        Raises:
            ConfigError: If *level* is not a known preset.
        """
        try:
            return _PRESETS[level]
        except KeyError:
            msg = f"Unknown threshold level: {level!r}. Choose from: {', '.join(THRESHOLD_LEVELS)}"
            raise ConfigError(msg) from None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ThresholdConfig:
        """Build a ThresholdConfig from a mapping.

        Accepts both the camelCase keys used in report documents
        (``maxFailedRequests``) and snake_case field names. Unknown keys are
        ignored.

        Args:
            data: Mapping of threshold names to numbers (or None).

        Returns:
            Populated ThresholdConfig.

        Raises:
            ConfigError: If a bound is not a number.
        """
        field_names = {f.name for f in fields(cls)}
        values: dict[str, float | None] = {}
        for key, raw in data.items():
            name = _THRESHOLD_KEYS.get(key, key)
            if name not in field_names:
                continue
            if raw is None:
                values[name] = None
                continue
            if isinstance(raw, bool) or not isinstance(raw, int | float):
                msg = f"Threshold {key} must be a number, got: {raw!r}"
                raise ConfigError(msg)
            try:
                values[name] = float(raw)
            except OverflowError as exc:
                msg = f"Threshold {key} is out of range: {raw!r}"
                raise ConfigError(msg) from exc
        return cls(**values)


_PRESETS = {
    "default": ThresholdConfig(
        max_average_response_time=3000,
        max_failed_requests=0,
        max_total_time=60000,
        max_request_time=10000,
        max_page_load_time=5000,
    ),
    "strict": ThresholdConfig(
        max_average_response_time=1000,
        max_failed_requests=0,
        max_total_time=30000,
        max_request_time=3000,
        max_page_load_time=2000,
    ),
    "relaxed": ThresholdConfig(
        max_average_response_time=5000,
        max_failed_requests=5,
        max_total_time=120000,
        max_request_time=15000,
        max_page_load_time=10000,
    ),
}


@dataclass(frozen=True)
class AnalyzerConfig:
    """Per-run analysis configuration.

    Constructed once by the caller and handed to ``TraceAnalyzer``.

    Attributes:
        slow_request_limit: Number of entries in the slowest-requests ranking.
        largest_request_limit: Number of entries in the largest-requests ranking.
        api_url_markers: Extra URL substrings that mark a request as an API
            call for endpoint metrics (in addition to ``/api/``, ``graphql``,
            ``/rest/`` and JSON content types).
        thresholds: Budget applied to every report, or None to skip
            threshold evaluation.
    """

    slow_request_limit: int = 10
    largest_request_limit: int = 5
    api_url_markers: tuple[str, ...] = ()
    thresholds: ThresholdConfig | None = None


def load_thresholds(path: str | Path) -> ThresholdConfig:
    """Read a ThresholdConfig from a JSON file.

    The file holds one object, e.g. ``{"maxAverageResponseTime": 1500,
    "maxFailedRequests": 0}``.

    Args:
        path: Path to the JSON file.

    Returns:
        Populated ThresholdConfig.

    Raises:
        ConfigError: If the file cannot be read, is not a JSON object, or
            holds a non-numeric bound.
    """
    source = Path(path)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Cannot read thresholds file {source}: {exc}"
        raise ConfigError(msg) from exc
    except json.JSONDecodeError as exc:
        msg = f"Thresholds file {source} is not valid JSON: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Thresholds file {source} must contain a JSON object"
        raise ConfigError(msg)
    return ThresholdConfig.from_dict(data)


ENV_VARS = {
    "HARPERF_SLOW_LIMIT": "Slowest-requests ranking size (default: 10).",
    "HARPERF_LARGEST_LIMIT": "Largest-requests ranking size (default: 5).",
    "HARPERF_API_MARKERS": "Comma-separated extra API URL markers.",
    "HARPERF_THRESHOLD_LEVEL": "Threshold preset applied when no budget is given.",
}


def _read_limit(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None
    if value < 0:
        msg = f"{name} must be >= 0, got: {value}"
        raise ConfigError(msg)
    return value


def load_config() -> AnalyzerConfig:
    """Load analysis configuration from environment variables with defaults.

    Environment variables:
        HARPERF_SLOW_LIMIT: Slowest-requests ranking size (default: 10).
        HARPERF_LARGEST_LIMIT: Largest-requests ranking size (default: 5).
        HARPERF_API_MARKERS: Comma-separated extra API URL markers.
        HARPERF_THRESHOLD_LEVEL: Threshold preset (default, strict, relaxed).
            Unset means no threshold evaluation.

    Returns:
        Populated AnalyzerConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    slow_limit = _read_limit("HARPERF_SLOW_LIMIT", "10")
    largest_limit = _read_limit("HARPERF_LARGEST_LIMIT", "5")

    markers_raw = os.environ.get("HARPERF_API_MARKERS", "")
    markers = tuple(m.strip() for m in markers_raw.split(",") if m.strip())

    level = os.environ.get("HARPERF_THRESHOLD_LEVEL", "").strip()
    thresholds = ThresholdConfig.preset(level) if level else None

    return AnalyzerConfig(
        slow_request_limit=slow_limit,
        largest_request_limit=largest_limit,
        api_url_markers=markers,
        thresholds=thresholds,
    )
