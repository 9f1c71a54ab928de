"""Command-line entry point.

Reads ``go test -json`` style output from stdin or a file, shows a live
view while it streams and prints a summary at the end.
"""

from __future__ import annotations

import asyncio
import sys
from contextlib import ExitStack
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live

from gopulse import __version__
from gopulse.config import load_settings
from gopulse.driver import LiveDriver
from gopulse.engine.replay import ReplayReader
from gopulse.engine.stream import Engine, lenient_text, read_lines
from gopulse.errors import ConfigError
from gopulse.logging import configure_logging, get_logger
from gopulse.primitives.collector import Collector
from gopulse.render.renderer import Renderer
from gopulse.report.summary import SummaryFormatter, compute_summary

logger = get_logger(__name__)

app = typer.Typer(
    name="gopulse",
    help="Live terminal view and summary for streamed test-runner JSON events.",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gopulse version {__version__}")
        raise typer.Exit()


@app.command()
def main(
    file: Path | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Read events from a file instead of stdin.",
    ),
    outfile: Path | None = typer.Option(
        None,
        "--outfile",
        help="Save every input line to this file.",
    ),
    jsonfile: Path | None = typer.Option(
        None,
        "--jsonfile",
        help="Save the lines that decoded as test events to this file.",
    ),
    replay: bool = typer.Option(
        False,
        "--replay",
        help="Replay events with their original timing (requires --file).",
    ),
    rate: float = typer.Option(
        1.0,
        "--rate",
        help="Replay rate: 0 = instant, 1 = original speed, 0.5 = twice as fast.",
    ),
    slow_threshold: float | None = typer.Option(
        None,
        "--slow-threshold",
        help="Seconds at or above which a test is listed as slow.",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level for diagnostics written to stderr.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Write diagnostics as JSON lines.",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Show a live view of a test run and summarize it."""
    if replay and file is None:
        typer.echo("Error: --replay requires --file <filename>", err=True)
        raise typer.Exit(1)
    if rate < 0:
        typer.echo("Error: --rate must be >= 0", err=True)
        raise typer.Exit(1)

    try:
        settings = load_settings(
            replay=replay or None,
            replay_rate=rate,
            slow_threshold=slow_threshold,
            log_level=log_level,
            json_logs=json_logs or None,
        )
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from None

    configure_logging(json_output=settings.json_logs, level=settings.log_level)

    console = Console()
    collector = Collector(replay=settings.replay, replay_rate=settings.replay_rate)
    renderer = Renderer(settings)

    with ExitStack() as stack:
        try:
            raw_sink = stack.enter_context(outfile.open("w", encoding="utf-8")) if outfile else None
            json_sink = (
                stack.enter_context(jsonfile.open("w", encoding="utf-8")) if jsonfile else None
            )
            if file is not None and settings.replay:
                lines = ReplayReader.from_file(file, settings.replay_rate)
            elif file is not None:
                handle = stack.enter_context(file.open(encoding="utf-8", errors="replace"))
                lines = read_lines(handle)
            else:
                stdin = lenient_text(sys.stdin)
                if stdin is not sys.stdin:
                    stack.callback(stdin.detach)
                lines = read_lines(stdin)
        except OSError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from None

        engine = Engine(raw_sink=raw_sink, json_sink=json_sink)
        with Live(console=console, auto_refresh=False, transient=False) as live:
            driver = LiveDriver(collector, renderer, live, settings)
            try:
                asyncio.run(driver.consume(engine.stream(lines)))
            except KeyboardInterrupt:
                logger.info("interrupted")
                collector.finish()
                driver.refresh()

    run = collector.state.latest_run
    if run is not None:
        summary = compute_summary(run, settings.slow_threshold)
        formatter = SummaryFormatter(
            console.width,
            use_colors=console.is_terminal,
            interrupted_icon=settings.interrupted_icon,
        )
        typer.echo()
        typer.echo(formatter.format(summary), nl=False)

    if any(run.counts.failed > 0 for run in collector.state.runs):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
