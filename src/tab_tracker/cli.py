"""Command-line interface for the tab tracker."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import TrackerSettings
from .models import current_time_ms
from .paths import get_db_path

app = typer.Typer(help="Local browser tab time tracker.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the service."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the service."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the tab SQLite database."
    ),
    flush_seconds: float = typer.Option(
        30.0,
        "--flush-interval",
        min=1.0,
        help="Seconds between flushes of the active tab's running time.",
    ),
    day_check_seconds: Optional[float] = typer.Option(
        None,
        "--day-check-interval",
        min=1.0,
        help="Seconds between checks for a new day (defaults to 60).",
    ),
    closed_limit: int = typer.Option(
        100, "--closed-limit", min=1, help="Number of closed tabs to keep."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the API docs in your default browser.",
    ),
) -> None:
    """Run the tracking service that the browser extension talks to."""
    from .server_runner import run_service

    settings = TrackerSettings.from_intervals(
        flush_seconds=flush_seconds,
        day_check_seconds=day_check_seconds,
        closed_tab_limit=closed_limit,
    )
    run_service(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=settings,
        open_browser=open_browser,
    )


@app.command()
def summary(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the tab SQLite database.",
    ),
) -> None:
    """Print totals for open tabs and tabs closed today."""
    from .reporting import SummaryPrinter

    SummaryPrinter(db_path=db_path or get_db_path()).print_summary(current_time_ms())


@app.command()
def closed(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the tab SQLite database.",
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=1, help="Show at most this many tabs."
    ),
) -> None:
    """List tabs closed today, newest first."""
    from .reporting import SummaryPrinter

    SummaryPrinter(db_path=db_path or get_db_path()).print_closed_tabs(
        current_time_ms(), limit=limit
    )
