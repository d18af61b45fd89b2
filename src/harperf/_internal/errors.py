"""Custom exception hierarchy for harperf."""

from __future__ import annotations


class HarPerfError(Exception):
    """Base exception for all harperf errors.

    All custom exceptions raised by the analysis engine inherit from this
    class, so callers can catch any harperf-specific failure with a single
    except clause.
    """


class InvalidTraceFormatError(HarPerfError):
    """Raised when a trace document cannot be parsed.

    This is fatal for the current analysis: no partial report is produced.

    Examples:
        - The trace bytes are not well-formed JSON.
        - The top-level JSON value is not an object.
        - The trace file cannot be read from disk.
    """


class ReportFormatError(HarPerfError):
    """Raised when a previously saved report cannot be loaded.

    Examples:
        - The report file is not valid JSON.
        - The top-level JSON value is not an object.
    """


class ConfigError(HarPerfError):
    """Raised when configuration is invalid.

    Examples:
        - An environment variable has a non-numeric value.
        - An unknown threshold preset name is requested.
    """
