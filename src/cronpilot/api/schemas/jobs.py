"""Job API schemas for CronPilot."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class JobOutcomeResponse(BaseModel):
    """Result of a single job run."""

    job_name: str = Field(..., description="Job name")
    status: str = Field(..., description="success, failed or skipped")
    started_at: datetime | None = Field(default=None, description="Run start")
    finished_at: datetime | None = Field(default=None, description="Run end")
    duration_ms: int = Field(default=0, description="Run duration in milliseconds")
    error: str | None = Field(default=None, description="Error or skip reason")
    error_category: str | None = Field(default=None, description="Error category")


class JobStatus(BaseModel):
    """Registration and run state of a job."""

    name: str = Field(..., description="Job name")
    schedule: str = Field(..., description="Cron expression")
    handler: str = Field(..., description="Handler name")
    description: str = Field(default="", description="Job description")
    enabled: bool = Field(..., description="Whether the job is enabled")
    state: str = Field(..., description="started or stopped")
    running: bool = Field(default=False, description="Whether a run is in flight")
    next_run: datetime | None = Field(default=None, description="Next scheduled run")
    last_outcome: JobOutcomeResponse | None = Field(default=None, description="Most recent run")


class JobRunRequest(BaseModel):
    """Parameters for an out-of-schedule run."""

    params: dict[str, Any] = Field(default_factory=dict, description="Extra handler parameters")
