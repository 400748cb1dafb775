"""Track command for CronPilot CLI."""

import asyncio

import typer

from cronpilot.cli import app, console
from cronpilot.cli.utils import exit_with_error, setup_logging
from cronpilot.engine import CronPilotError
from cronpilot.ingestion import IngestionPipeline


@app.command()
def track(
    video_id: str = typer.Argument(..., help="YouTube video ID"),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging",
    ),
) -> None:
    """Start tracking a video's comments.

    Fetches the video's details and saves it. Tracking a video twice is
    harmless.

    Examples:
        cronpilot track dQw4w9WgXcQ
    """
    from cronpilot.services import build_services

    setup_logging(debug)

    try:
        services = build_services()
        pipeline = IngestionPipeline(services.ingestion_store, services.comment_source)
        resource = asyncio.run(pipeline.track(video_id))
    except CronPilotError as e:
        exit_with_error(e)
    else:
        services.db.dispose()

    console.print(f"[green]✓[/] Tracking [cyan]{resource.title or video_id}[/]")
    if resource.channel_title:
        console.print(f"  [dim]Channel:[/] {resource.channel_title}")
    if resource.last_checked_at:
        console.print(f"  [dim]Last checked:[/] {resource.last_checked_at.isoformat()}")
