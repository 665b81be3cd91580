"""Main Typer application, the entry point for the ``httpburst`` CLI."""

from __future__ import annotations

import logging
from functools import partial

import typer
from rich.console import Console
from rich.markup import escape

from httpburst import __version__
from httpburst._internal.config import LoadTestConfig, load_settings
from httpburst._internal.errors import HttpBurstError
from httpburst.cli.render import ProgressRenderer, print_baseline, print_load_summary
from httpburst.engine.progress import ProgressTracker
from httpburst.engine.runner import run_request
from httpburst.request.loader import load_request_spec

console = Console()

_USAGE_HINT = "Use -h or --help for usage."

app = typer.Typer(
    name="httpburst",
    help="Send a JSON-described HTTP request and optionally stress test it.",
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"httpburst {__version__}")
        raise typer.Exit


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


@app.command()
def main(
    config: str = typer.Option(
        "config.json",
        "--config",
        "-config",
        "-c",
        help="Path to the JSON request configuration file.",
    ),
    iterations: int = typer.Option(
        1,
        "--iterations",
        "-iterations",
        "-i",
        help="Number of concurrent requests for the stress test.",
    ),
    duration: int = typer.Option(
        10,
        "--duration",
        "-duration",
        "-d",
        help="Duration of the stress test in seconds.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Send the configured request once, then stress test it if iterations > 1."""
    if not config:
        raise _fail(f"Configuration file path is required. {_USAGE_HINT}")
    if iterations <= 0:
        raise _fail(f"Number of iterations must be positive. {_USAGE_HINT}")
    if duration <= 0:
        raise _fail(f"Stress test duration must be positive. {_USAGE_HINT}")

    try:
        settings = load_settings()
        load_config = LoadTestConfig(iterations=iterations, duration_seconds=duration)
        spec = load_request_spec(config)
    except HttpBurstError as exc:
        raise _fail(str(exc)) from exc

    log_level = logging.DEBUG if verbose else logging.WARNING
    tracker = ProgressTracker()
    renderer = ProgressRenderer(console, tracker)

    def _on_load_start() -> None:
        console.print("Running stress test...")
        renderer.start()

    try:
        report = run_request(
            spec,
            load_config,
            settings=settings,
            tracker=tracker,
            on_baseline=partial(print_baseline, console),
            on_load_start=_on_load_start,
            log_level=log_level,
        )
    except HttpBurstError as exc:
        raise _fail(str(exc)) from exc
    finally:
        renderer.stop()

    if report.load is not None:
        print_load_summary(console, report.load)
