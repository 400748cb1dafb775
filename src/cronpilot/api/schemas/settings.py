"""Automation settings API schemas for CronPilot."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobSettingsUpdate(BaseModel):
    """Settings to save for a job."""

    model_config = ConfigDict(populate_by_name=True)

    job_name: str = Field(..., min_length=1, alias="jobName", description="Job name")
    settings: dict[str, Any] = Field(..., description="Setting values by key")
