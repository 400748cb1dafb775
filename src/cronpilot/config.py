"""Configuration management for CronPilot."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from cronpilot.engine.errors import ConfigError
from cronpilot.models import OverlapPolicy

DEFAULT_MODEL = "claude-sonnet-4-20250514"


@dataclass(frozen=True)
class YouTubeCredentials:
    """OAuth credentials for the YouTube Data API."""

    client_id: str
    client_secret: str
    refresh_token: str


def get_cronpilot_dir() -> Path:
    """Get the CronPilot home directory.

    Returns:
        ``$CRONPILOT_HOME`` if set, otherwise ~/.cronpilot
    """
    if home := os.environ.get("CRONPILOT_HOME"):
        return Path(home)
    return Path.home() / ".cronpilot"


def get_config_path() -> Path:
    """Get the path of the YAML config file."""
    return get_cronpilot_dir() / "config.yaml"


def get_cronpilot_config() -> dict[str, Any]:
    """Load CronPilot configuration file.

    Returns:
        Configuration dictionary, empty if file doesn't exist.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            return config if isinstance(config, dict) else {}
    except (yaml.YAMLError, OSError) as e:
        logging.getLogger(__name__).warning(f"Ignoring unreadable config file {config_path}: {e}")
        return {}


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    section = config.get(name)
    return section if isinstance(section, dict) else {}


def get_anthropic_api_key() -> str:
    """Get Anthropic API key from various sources.

    Checks in order of priority:
    1. ANTHROPIC_API_KEY environment variable
    2. CronPilot config file under 'anthropic.api_key'

    Returns:
        The API key string.

    Raises:
        ConfigError: If no API key is found.
    """
    if key := os.environ.get("ANTHROPIC_API_KEY"):
        return key

    if key := _section(get_cronpilot_config(), "anthropic").get("api_key"):
        return str(key)

    raise ConfigError(
        "Anthropic API key not found. Set ANTHROPIC_API_KEY environment variable "
        "or add to ~/.cronpilot/config.yaml under 'anthropic.api_key'"
    )


def get_model() -> str:
    """Get the generation model ID."""
    if model := os.environ.get("CRONPILOT_MODEL"):
        return model
    return str(_section(get_cronpilot_config(), "anthropic").get("model") or DEFAULT_MODEL)


def get_database_url() -> str:
    """Get the database URL or SQLite file path.

    Uses DATABASE_URL when set (a server database in production), then the
    config file's 'database.url', and falls back to a SQLite file in the
    CronPilot home directory.
    """
    if url := os.environ.get("DATABASE_URL"):
        return url
    if url := _section(get_cronpilot_config(), "database").get("url"):
        return str(url)
    return str(get_cronpilot_dir() / "cronpilot.db")


def get_youtube_credentials() -> YouTubeCredentials | None:
    """Get YouTube OAuth credentials.

    Environment variables win over the config file's 'youtube' section.

    Returns:
        Credentials, or None if any of the three values is missing.
    """
    section = _section(get_cronpilot_config(), "youtube")
    client_id = os.environ.get("YOUTUBE_CLIENT_ID") or section.get("client_id")
    client_secret = os.environ.get("YOUTUBE_CLIENT_SECRET") or section.get("client_secret")
    refresh_token = os.environ.get("YOUTUBE_REFRESH_TOKEN") or section.get("refresh_token")

    if not (client_id and client_secret and refresh_token):
        return None
    return YouTubeCredentials(str(client_id), str(client_secret), str(refresh_token))


def get_timezone() -> ZoneInfo | None:
    """Get the timezone used for cron evaluation.

    Returns:
        The configured zone, or None for local time.

    Raises:
        ConfigError: If the configured zone name is unknown.
    """
    name = os.environ.get("CRONPILOT_TIMEZONE") or get_cronpilot_config().get("timezone")
    if not name or name == "local":
        return None
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone: {name}") from e


def get_job_overrides() -> dict[str, dict[str, Any]]:
    """Get per-job overrides from the config file's 'jobs' section."""
    jobs = _section(get_cronpilot_config(), "jobs")
    return {str(name): value for name, value in jobs.items() if isinstance(value, dict)}


def get_log_level() -> str:
    """Get the configured log level name."""
    level = os.environ.get("CRONPILOT_LOG_LEVEL") or get_cronpilot_config().get("log_level")
    return str(level or "INFO").upper()


def get_overlap_policy() -> OverlapPolicy:
    """Get the policy for ticks that arrive while the same job is running.

    Raises:
        ConfigError: If the configured policy name is unknown.
    """
    name = get_cronpilot_config().get("overlap_policy") or OverlapPolicy.SKIP.value
    try:
        return OverlapPolicy(str(name).lower())
    except ValueError as e:
        raise ConfigError(f"Unknown overlap policy: {name}") from e
