"""Init command for CronPilot CLI."""

from typing import Any

import typer
import yaml

from cronpilot.cli import app, console
from cronpilot.config import DEFAULT_MODEL, get_config_path, get_cronpilot_dir, get_database_url
from cronpilot.jobs import DEFAULT_JOBS
from cronpilot.storage import init_database


def default_config() -> dict[str, Any]:
    """Build the config file written by ``cronpilot init``."""
    return {
        "timezone": "local",
        "log_level": "INFO",
        "overlap_policy": "skip",
        "anthropic": {
            "model": DEFAULT_MODEL,
        },
        "jobs": {
            job.name: {"schedule": job.schedule, "enabled": job.enabled} for job in DEFAULT_JOBS
        },
    }


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Initialize CronPilot.

    Creates the CronPilot home directory (~/.cronpilot or $CRONPILOT_HOME) with:
    - config.yaml with the built-in job schedules
    - logs/ directory for server logs
    - the database tables
    """
    home = get_cronpilot_dir()
    config_path = get_config_path()

    if config_path.exists() and not force:
        console.print(f"[yellow]CronPilot already initialized at {home}[/]")
        console.print("Use [cyan]--force[/] to reinitialize")
        raise typer.Exit(1)

    # Create directories
    home.mkdir(parents=True, exist_ok=True)
    (home / "logs").mkdir(parents=True, exist_ok=True)

    config_path.write_text(yaml.dump(default_config(), default_flow_style=False, sort_keys=False))

    db = init_database(get_database_url())
    db.dispose()

    console.print(f"[green]✓[/] Initialized CronPilot at {home}")
    console.print(f"[green]✓[/] Created config file: {config_path}")
    console.print(f"[green]✓[/] Created database: {db.url}")
    console.print()
    console.print("Set YOUTUBE_CLIENT_ID, YOUTUBE_CLIENT_SECRET and YOUTUBE_REFRESH_TOKEN,")
    console.print("then run [cyan]cronpilot track <video-id>[/] and [cyan]cronpilot serve[/]")
