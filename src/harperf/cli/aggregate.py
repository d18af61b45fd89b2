"""``harperf aggregate`` and ``harperf compare``: work with saved reports."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from harperf._internal.errors import ReportFormatError
from harperf._internal.logging import setup_logging
from harperf.metrics.aggregator import aggregate_reports, compare_reports
from harperf.metrics.store import load_report, load_reports, save_report

if TYPE_CHECKING:
    from harperf.metrics.models import AggregateReport

console = Console(stderr=True)


def _print_aggregate(aggregate: AggregateReport) -> None:
    """Print fleet totals and the per-report rollup table.

    Args:
        aggregate: Folded reports.
    """
    table = Table(
        title="Performance Test Summary",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Reports", str(aggregate.report_count))
    table.add_row("Total Requests", str(aggregate.total_requests))
    table.add_row("Avg Response Time", f"{aggregate.average_response_time:.0f}ms")
    table.add_row("Failed Requests", str(aggregate.total_failed_requests))
    table.add_row("Failure Rate", f"{aggregate.failure_rate:.2f}%")
    console.print(table)

    rows = Table(
        title="Individual Reports",
        show_header=True,
        header_style="bold cyan",
        expand=True,
    )
    rows.add_column("Test")
    rows.add_column("Duration", justify="right")
    rows.add_column("Requests", justify="right")
    rows.add_column("Avg Time", justify="right")
    rows.add_column("Failures", justify="right")
    for row in aggregate.individual:
        rows.add_row(
            row.name or "-",
            f"{row.duration / 1000:.2f}s",
            str(row.request_count),
            f"{row.avg_time:.0f}ms",
            str(row.failure_count),
        )
    console.print(rows)


def aggregate_cmd(
    report_files: list[Path] = typer.Argument(
        ...,
        help="Saved JSON reports to aggregate.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the aggregate JSON document to this file.",
    ),
) -> None:
    """Fold several saved reports into a fleet-level summary."""
    setup_logging(logging.WARNING)
    aggregate = aggregate_reports(load_reports(report_files))
    if aggregate is None:
        console.print("[red]No usable reports to aggregate.[/red]")
        raise typer.Exit(code=1)

    _print_aggregate(aggregate)

    if output is not None:
        save_report(aggregate, output)
        console.print(f"[green]Aggregate written:[/green] {output}")


def compare_cmd(
    baseline_file: Path = typer.Argument(
        ...,
        help="Baseline JSON report.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    current_file: Path = typer.Argument(
        ...,
        help="JSON report to compare against the baseline.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Compare a report against a baseline."""
    setup_logging(logging.WARNING)
    try:
        comparison = compare_reports(load_report(baseline_file), load_report(current_file))
    except (ReportFormatError, ValueError) as exc:
        console.print(f"[red]Cannot compare reports:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Report Comparison", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Change", justify="right")
    table.add_row("Avg Response Time", f"{comparison.average_response_time_diff:+.0f}ms")
    table.add_row("Total Requests", f"{comparison.total_requests_diff:+d}")
    table.add_row("Failed Requests", f"{comparison.failed_requests_diff:+d}")
    table.add_row("Response Time Improvement", f"{comparison.response_time_improvement:.2f}%")
    table.add_row("Failure Improvement", f"{comparison.failure_improvement:.2f}%")
    console.print(table)
