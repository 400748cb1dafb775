"""Utility functions for CronPilot CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import typer
import yaml

from cronpilot.cli import console
from cronpilot.config import get_cronpilot_dir, get_log_level
from cronpilot.engine import CronPilotError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_log_file() -> Path:
    """Get the path to the server log file."""
    log_dir = get_cronpilot_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "server.log"


def setup_logging(debug: bool = False, log_file: Path | None = None) -> None:
    """Set up logging for CLI commands and the server.

    Args:
        debug: Enable debug logging (overrides the configured level).
        log_file: Also write to this file, rotated at 10 MB.
    """
    level = logging.DEBUG if debug else getattr(logging, get_log_level(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    # APScheduler logs every tick at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING if not debug else logging.DEBUG)


def parse_params(values: list[str]) -> dict[str, Any]:
    """Parse ``key=value`` options into a dictionary.

    Values are read as YAML scalars, so ``page_size=20`` gives an int and
    ``reply_enabled=true`` a bool.

    Raises:
        typer.Exit: If an option is not in ``key=value`` form.
    """
    params: dict[str, Any] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key:
            console.print(f"[red]Error:[/] Invalid parameter (expected key=value): {value}")
            raise typer.Exit(1)
        try:
            params[key] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            params[key] = raw
    return params


def exit_with_error(error: CronPilotError) -> None:
    """Print an error and exit with status 1.

    Raises:
        typer.Exit: Always.
    """
    console.print(f"[red]Error:[/] {error.message}")
    raise typer.Exit(1)
