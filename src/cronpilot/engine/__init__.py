"""CronPilot job execution engine."""

from .context import JobContext, JobOutcome
from .errors import (
    ConfigError,
    CronPilotError,
    DuplicateItemError,
    ErrorCategory,
    GenerationError,
    NotConfiguredError,
    NotFoundError,
    ProviderError,
)
from .handlers import HandlerRegistry, JobHandler, handler
from .runner import TaskRunner

__all__ = [
    "ConfigError",
    "CronPilotError",
    "DuplicateItemError",
    "ErrorCategory",
    "GenerationError",
    "HandlerRegistry",
    "JobContext",
    "JobHandler",
    "JobOutcome",
    "NotConfiguredError",
    "NotFoundError",
    "ProviderError",
    "TaskRunner",
    "handler",
]
