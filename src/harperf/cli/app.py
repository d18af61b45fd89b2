"""Typer application for the ``harperf`` command.

Commands live in ``analyze.py`` (single trace) and ``aggregate.py`` (saved
reports); this module only wires them together and documents the
environment variables that ``load_config`` reads.
"""

from __future__ import annotations

import typer

from harperf import __version__
from harperf._internal.config import ENV_VARS
from harperf.cli.aggregate import aggregate_cmd, compare_cmd
from harperf.cli.analyze import analyze_cmd


def _env_epilog() -> str:
    # typer's rich help joins single newlines, so entries are paragraphs
    entries = "\n\n".join(f"[bold]{name}[/bold]  {text}" for name, text in ENV_VARS.items())
    return f"Environment:\n\n{entries}"


app = typer.Typer(
    name="harperf",
    help="Performance reports from captured HAR traces.",
    epilog=_env_epilog(),
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("analyze", help="Analyze one HAR trace into a performance report.")(analyze_cmd)
app.command("aggregate", help="Fold saved reports into a fleet summary.")(aggregate_cmd)
app.command("compare", help="Diff a current report against a baseline.")(compare_cmd)


def _show_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"harperf {__version__}")
    raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show the harperf version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    """Analyze HAR traces, then aggregate or compare the saved reports."""


if __name__ == "__main__":
    app()
