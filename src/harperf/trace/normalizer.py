"""HAR trace parsing and entry normalization.

Turns a HAR 1.2 document into an ordered tuple of ``RequestRecord``
objects. Only the fields the engine reads are extracted::

    log.entries[*].startedDateTime
    log.entries[*].time
    log.entries[*].request.{method,url}
    log.entries[*].response.{status,statusText,bodySize,content.mimeType}

Anything else in the document is ignored. Missing or wrong-typed fields fall
back to neutral defaults; only an undecodable document is fatal.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from harperf._internal.errors import InvalidTraceFormatError
from harperf._internal.logging import MALFORMED_ENTRY_KIND, get_logger, recovery
from harperf.metrics.models import RequestRecord

logger = get_logger("trace.normalizer")


@dataclass(frozen=True)
class NormalizedTrace:
    """Normalized view of a captured trace.

    Attributes:
        source: Identifier of the trace (file path or caller label).
        records: One record per well-formed entry, in trace order.
        skipped_entries: Entries dropped because they were not objects.
    """

    source: str
    records: tuple[RequestRecord, ...] = ()
    skipped_entries: int = 0

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to analyze."""
        return not self.records

    def __len__(self) -> int:
        return len(self.records)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_non_negative(value: Any) -> float:
    # HAR uses -1 for "not available"
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    try:
        number = float(value)
    except OverflowError:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _parse_started(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        started = datetime.fromisoformat(value)
    except ValueError:
        return None
    if started.tzinfo is None:
        started = started.replace(tzinfo=UTC)
    return started


def normalize_entry(entry: dict[str, Any]) -> RequestRecord:
    """Convert one raw HAR entry into a ``RequestRecord``.

    Args:
        entry: Decoded HAR entry object.

    Returns:
        The normalized record. Never raises for missing fields.
    """
    request = _as_dict(entry.get("request"))
    response = _as_dict(entry.get("response"))
    content = _as_dict(response.get("content"))

    return RequestRecord(
        method=_as_str(request.get("method")),
        url=_as_str(request.get("url")),
        elapsed_ms=_as_non_negative(entry.get("time")),
        status=int(_as_non_negative(response.get("status"))),
        status_text=_as_str(response.get("statusText")),
        content_type=_as_str(content.get("mimeType")),
        body_size=int(_as_non_negative(response.get("bodySize"))),
        started_at=_parse_started(entry.get("startedDateTime")),
    )


def parse_trace(data: bytes | str, *, source: str = "<memory>") -> NormalizedTrace:
    """Parse a HAR document into a ``NormalizedTrace``.

    Args:
        data: Raw HAR document (JSON text or bytes).
        source: Identifier recorded on the trace and used in log messages.

    Returns:
        The normalized trace. It may be empty; check ``is_empty``.

    Raises:
        InvalidTraceFormatError: If *data* is not valid JSON or its top-level
            value is not an object.
    """
    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"Trace {source} is not valid JSON: {exc}"
        raise InvalidTraceFormatError(msg) from exc

    if not isinstance(document, dict):
        msg = f"Trace {source} must be a JSON object, got {type(document).__name__}"
        raise InvalidTraceFormatError(msg)

    entries = _as_dict(document.get("log")).get("entries")
    if entries is None:
        entries = []
    elif not isinstance(entries, list):
        logger.warning(
            "Trace %s: log.entries is not a list, treating as empty",
            source,
            extra=recovery(MALFORMED_ENTRY_KIND, source),
        )
        entries = []

    records: list[RequestRecord] = []
    skipped = 0
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            skipped += 1
            logger.warning(
                "Trace %s: skipping malformed entry at index %d",
                source,
                index,
                extra=recovery(MALFORMED_ENTRY_KIND, source),
            )
            continue
        records.append(normalize_entry(entry))

    logger.debug("Trace %s: normalized %d entries (%d skipped)", source, len(records), skipped)
    return NormalizedTrace(source=source, records=tuple(records), skipped_entries=skipped)


def load_trace(path: str | Path) -> NormalizedTrace:
    """Read a HAR file from disk and normalize it.

    Args:
        path: Path to the ``.har`` file.

    Returns:
        The normalized trace, with ``source`` set to *path*.

    Raises:
        InvalidTraceFormatError: If the file cannot be read or parsed.
    """
    trace_path = Path(path)
    try:
        data = trace_path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read trace file {trace_path}: {exc}"
        raise InvalidTraceFormatError(msg) from exc
    return parse_trace(data, source=str(trace_path))
