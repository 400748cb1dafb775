"""CronPilot scheduling system.

This module provides cron expression parsing, the in-memory job registry
and the APScheduler-backed scheduler facade.
"""

from .cron import CronExpression, InvalidCronExpression, is_valid_cron
from .registry import JobRegistry, JobState, RegisteredJob
from .service import SchedulerService, SchedulerState

__all__ = [
    "CronExpression",
    "InvalidCronExpression",
    "JobRegistry",
    "JobState",
    "RegisteredJob",
    "SchedulerService",
    "SchedulerState",
    "is_valid_cron",
]
