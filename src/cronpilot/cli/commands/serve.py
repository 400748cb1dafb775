"""Serve command for CronPilot CLI."""

from __future__ import annotations

import logging

import typer
import uvicorn

from cronpilot.cli import app, console
from cronpilot.cli.utils import exit_with_error, get_log_file, setup_logging
from cronpilot.engine import ConfigError

logger = logging.getLogger(__name__)


def run_server(host: str, port: int, start_scheduler: bool = True) -> None:
    """Build the application and run it with uvicorn.

    Args:
        host: Host to bind to.
        port: Port to bind to.
        start_scheduler: Run scheduled jobs inside the server process.
    """
    # Import here to avoid circular imports
    from cronpilot.api.app import create_app

    app_instance = create_app(start_scheduler=start_scheduler)

    uvicorn.run(
        app_instance,
        host=host,
        port=port,
        log_level="info",
        log_config=None,
    )


@app.command()
def serve(
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        "-h",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        8080,
        "--port",
        "-p",
        help="Port to bind to",
    ),
    no_scheduler: bool = typer.Option(
        False,
        "--no-scheduler",
        help="Serve the API without running scheduled jobs",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
) -> None:
    """Start the CronPilot server.

    Runs the API and the job scheduler in one process. Stopping the server
    stops future ticks and waits for running jobs to finish.

    Examples:
        cronpilot serve                  # Start on 127.0.0.1:8080
        cronpilot serve --port 9000      # Custom port
        cronpilot serve --no-scheduler   # API only
    """
    setup_logging(debug, log_file=get_log_file())

    console.print(f"[cyan]Starting CronPilot server on {host}:{port}...[/]")
    console.print("[dim]Press Ctrl+C to stop[/]")
    console.print()

    logger.info(f"CronPilot server starting on {host}:{port}")
    try:
        run_server(host, port, start_scheduler=not no_scheduler)
    except ConfigError as e:
        exit_with_error(e)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped.[/]")
