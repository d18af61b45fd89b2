"""``harperf analyze``: build a performance report from a HAR file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from harperf._internal.config import ThresholdConfig, load_config, load_thresholds
from harperf._internal.errors import ConfigError, InvalidTraceFormatError
from harperf._internal.logging import setup_logging
from harperf.engine.analyzer import TraceAnalyzer
from harperf.metrics.store import save_report

if TYPE_CHECKING:
    from harperf.metrics.models import PerformanceReport

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Rich output
# ---------------------------------------------------------------------------


def _print_report(report: PerformanceReport) -> None:
    """Print summary, category and endpoint tables for a report.

    Args:
        report: Assembled report.
    """
    summary = report.summary
    table = Table(title="Summary", show_header=True, header_style="bold green", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Test", report.test_name or "-")
    table.add_row("Duration", f"{report.test_duration / 1000:.2f}s")
    if summary is not None:
        table.add_row("Total Requests", str(summary.total_requests))
        table.add_row("Failed Requests", str(summary.failed_requests))
        table.add_row("Total Size", f"{summary.total_size / 1024 / 1024:.2f} MB")
        table.add_row("Avg Response", f"{summary.average_response_time:.0f}ms")
        table.add_row("Median Response", f"{summary.median_response_time:.0f}ms")
        table.add_row("p95", f"{summary.percentile_95:.0f}ms")
        table.add_row("p99", f"{summary.percentile_99:.0f}ms")
    console.print(table)

    types_table = Table(
        title="Request Types",
        show_header=True,
        header_style="bold cyan",
        expand=True,
    )
    types_table.add_column("Type")
    types_table.add_column("Count", justify="right")
    types_table.add_column("Total Time", justify="right")
    types_table.add_column("Avg Time", justify="right")
    for name, metrics in report.request_types.items():
        if metrics.count == 0:
            continue
        average = "-" if metrics.average_time_ms is None else f"{metrics.average_time_ms:.0f}ms"
        types_table.add_row(name, str(metrics.count), f"{metrics.total_time_ms:.0f}ms", average)
    console.print(types_table)

    if report.api_metrics.endpoints:
        ep_table = Table(
            title=f"API Endpoints ({report.api_metrics.total_calls} calls)",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        ep_table.add_column("Endpoint")
        ep_table.add_column("Calls", justify="right")
        ep_table.add_column("Avg", justify="right")
        ep_table.add_column("Min", justify="right")
        ep_table.add_column("Max", justify="right")
        for key, ep in report.api_metrics.endpoints.items():
            ep_table.add_row(
                key,
                str(ep.count),
                f"{ep.average_time_ms:.0f}ms",
                f"{ep.min_time_ms:.0f}ms",
                f"{ep.max_time_ms:.0f}ms",
            )
        console.print(ep_table)


def _print_violations(report: PerformanceReport) -> None:
    if report.threshold_violations is None:
        return
    if not report.threshold_violations:
        console.print("[green]All thresholds passed.[/green]")
        return

    table = Table(title="Threshold Violations", show_header=True, header_style="bold red")
    table.add_column("Metric", style="bold")
    table.add_column("Threshold", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Message")
    for violation in report.threshold_violations:
        table.add_row(
            violation.metric,
            f"{violation.threshold:g}",
            f"{violation.actual:.2f}",
            violation.message,
        )
    console.print(table)


def _resolve_thresholds(
    thresholds_file: Path | None,
    threshold_level: str | None,
) -> ThresholdConfig | None:
    """Pick the budget requested on the command line.

    Raises:
        typer.BadParameter: If the level or file is invalid, or both are given.
    """
    if thresholds_file is not None and threshold_level is not None:
        msg = "use either --thresholds or --threshold-level, not both"
        raise typer.BadParameter(msg)
    try:
        if thresholds_file is not None:
            return load_thresholds(thresholds_file)
        if threshold_level is not None:
            return ThresholdConfig.preset(threshold_level)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return None


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def analyze_cmd(
    trace_file: Path = typer.Argument(
        ...,
        help="Path to the captured .har file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Test name recorded on the report (default: file stem).",
    ),
    duration: float | None = typer.Option(
        None,
        "--duration",
        "-d",
        help="Session duration in ms (default: span of the trace entries).",
        min=0.0,
    ),
    thresholds_file: Path | None = typer.Option(
        None,
        "--thresholds",
        "-t",
        help="JSON file with performance budgets. Excludes --threshold-level.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    threshold_level: str | None = typer.Option(
        None,
        "--threshold-level",
        "-l",
        help="Built-in budget: default, strict, or relaxed. Excludes --thresholds.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the JSON report to this file.",
    ),
    fail_on_violation: bool = typer.Option(
        False,
        "--fail-on-violation",
        help="Exit non-zero if any threshold is breached.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    log_json: bool = typer.Option(
        False,
        "--log-json",
        help="Emit log records as one JSON object per line.",
    ),
) -> None:
    """Analyze a HAR trace and print a performance report."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING, json_format=log_json)

    budget = _resolve_thresholds(thresholds_file, threshold_level)

    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        Panel(
            f"[bold]Trace:[/bold] {trace_file.name}",
            title="harperf",
            border_style="cyan",
        )
    )

    analyzer = TraceAnalyzer(config)
    try:
        report = analyzer.analyze_file(
            trace_file,
            test_name=name or trace_file.stem,
            test_duration_ms=duration,
            thresholds=budget,
        )
    except InvalidTraceFormatError as exc:
        console.print(f"[red]Invalid trace:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if report is None:
        console.print("[yellow]No entries found in trace; nothing to analyze.[/yellow]")
        raise typer.Exit(code=0)

    _print_report(report)
    _print_violations(report)

    if output is not None:
        save_report(report, output)
        console.print(f"[green]Report written:[/green] {output}")

    if fail_on_violation and not report.passed:
        console.print("[red]FAIL:[/red] performance thresholds breached")
        raise typer.Exit(code=1)
