"""CronPilot API routes."""

from . import automations, health, jobs, settings, videos

__all__ = [
    "automations",
    "health",
    "jobs",
    "settings",
    "videos",
]
