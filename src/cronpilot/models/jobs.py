"""Job definition models for CronPilot."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, Field


class OverlapPolicy(str, enum.Enum):
    """What to do with a tick that arrives while the same job is still running."""

    SKIP = "skip"
    QUEUE = "queue"


class JobDefinition(BaseModel):
    """Descriptor for a scheduled job.

    The schedule is kept as a raw string so that an invalid expression is
    reported by the registry at registration time instead of failing while
    the job list is being built.
    """

    name: str = Field(..., min_length=1, description="Unique job name")
    schedule: str = Field(..., description="5-field cron expression")
    handler: str = Field(..., min_length=1, description="Registered handler name")
    enabled: bool = Field(default=True, description="Disabled jobs are listed but never run")
    params: dict[str, Any] = Field(default_factory=dict, description="Handler parameters")
    description: str = Field(default="", description="Human readable description")

    def with_overrides(self, overrides: dict[str, Any]) -> JobDefinition:
        """Return a copy with configuration overrides applied.

        Args:
            overrides: Mapping with any of ``schedule``, ``enabled``, ``params``.

        Returns:
            A new JobDefinition. ``params`` are merged, not replaced.

        Raises:
            ValidationError: If an override has the wrong type, such as an
                ``enabled`` value that is not a boolean.
        """
        update: dict[str, Any] = {}
        if "schedule" in overrides:
            update["schedule"] = str(overrides["schedule"])
        if "enabled" in overrides:
            update["enabled"] = overrides["enabled"]
        if isinstance(overrides.get("params"), dict):
            update["params"] = {**self.params, **overrides["params"]}
        return self.model_validate({**self.model_dump(), **update})
