"""Logging setup for harperf.

Problems the engine recovers from (a malformed trace entry, an API URL that
cannot be keyed, a saved report without a summary, a trace with no entries)
are logged at WARNING and tagged with two record attributes:

* ``trace``: identifier of the trace or report being processed.
* ``error_kind``: one of the ``*_KIND`` constants below.

Pass them with ``extra=recovery(KIND, trace)``. The JSON formatter emits both
as top-level keys so log pipelines can count recoveries per trace.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import TextIO

MALFORMED_ENTRY_KIND = "MalformedEntry"
UNPARSABLE_URL_KIND = "UnparsableEndpointURL"
MISSING_SUMMARY_KIND = "MissingSourceReport"
EMPTY_TRACE_KIND = "EmptyTrace"

_CONTEXT_ATTRS = ("trace", "error_kind")
_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"


def recovery(kind: str, trace: str) -> dict[str, str]:
    """Build the ``extra`` mapping for a recoverable-error log call.

    Example::

        logger.warning("Skipping entry %d", i, extra=recovery(MALFORMED_ENTRY_KIND, src))
    """
    return {"error_kind": kind, "trace": trace}


class _JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: timestamp, level, logger, message; ``trace`` and ``error_kind``
    when the record carries them; ``exception`` when one is attached.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in _CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value is not None:
                entry[attr] = value
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class _TextFormatter(logging.Formatter):
    """Human-readable lines, suffixed with ``[<error_kind>]`` for recoveries."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        kind = getattr(record, "error_kind", None)
        return f"{line} [{kind}]" if kind else line


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure and return the ``harperf`` logger.

    The logger owns a single stream handler. Calling this again replaces
    that handler instead of adding another, so a long-lived process can
    switch format or target between runs.

    Args:
        level: Logging level (e.g., ``logging.DEBUG``). Defaults to INFO.
        json_format: Emit one JSON object per line instead of text.
        stream: Destination. Defaults to the current ``sys.stderr``.

    Returns:
        The configured ``harperf`` logger.
    """
    logger = logging.getLogger("harperf")
    logger.setLevel(level)

    for previous in list(logger.handlers):
        logger.removeHandler(previous)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_JsonFormatter() if json_format else _TextFormatter())
    logger.addHandler(handler)

    # harperf output must not be duplicated by an application's root handler
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger("harperf.<name>")``."""
    return logging.getLogger(f"harperf.{name}")
