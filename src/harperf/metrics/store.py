"""JSON persistence for performance reports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from harperf._internal.errors import ReportFormatError
from harperf._internal.logging import get_logger
from harperf.metrics.models import PerformanceReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from harperf.metrics.models import AggregateReport

logger = get_logger("metrics.store")


def _write_json(document: object, path: str | Path) -> Path:
    target = Path(path)
    target.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    return target


def save_report(report: PerformanceReport | AggregateReport, path: str | Path) -> Path:
    """Write a report document to *path* as indented JSON.

    The parent directory must already exist.

    Args:
        report: Single-trace or aggregate report.
        path: Destination file.

    Returns:
        The written path.
    """
    target = _write_json(report.to_dict(), path)
    logger.debug("Report written to %s", target)
    return target


def load_report(path: str | Path) -> PerformanceReport:
    """Read a report previously written by ``save_report``.

    Args:
        path: Report file.

    Returns:
        The report. Its ``summary`` is None if the file has none.

    Raises:
        ReportFormatError: If the file cannot be read, is not JSON, or is
            not a JSON object.
    """
    source = Path(path)
    try:
        document = json.loads(source.read_bytes())
    except OSError as exc:
        msg = f"Cannot read report file {source}: {exc}"
        raise ReportFormatError(msg) from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"Report {source} is not valid JSON: {exc}"
        raise ReportFormatError(msg) from exc

    if not isinstance(document, dict):
        msg = f"Report {source} must be a JSON object, got {type(document).__name__}"
        raise ReportFormatError(msg)
    return PerformanceReport.from_dict(document)


def load_reports(paths: Iterable[str | Path]) -> list[PerformanceReport]:
    """Load several reports, skipping files that cannot be loaded.

    Args:
        paths: Report files, in the order the reports should be returned.

    Returns:
        The reports that loaded successfully.
    """
    reports: list[PerformanceReport] = []
    for path in paths:
        try:
            reports.append(load_report(path))
        except ReportFormatError as exc:
            logger.warning("Skipping report: %s", exc)
    return reports
