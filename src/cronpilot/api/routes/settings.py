"""Automation settings endpoints for CronPilot API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from cronpilot.api.dependencies import ServicesDep
from cronpilot.api.schemas import JobSettingsUpdate, SuccessResponse

router = APIRouter(prefix="/automation/settings")


@router.get("")
async def get_settings(
    services: ServicesDep,
    job: str | None = Query(None, description="Job name"),
) -> dict[str, Any]:
    """Get all settings stored for a job.

    Raises:
        HTTPException: If no job name is given.
    """
    if not job:
        raise HTTPException(status_code=400, detail="Job name is required")
    return services.settings.get_job_settings(job)


@router.post("", response_model=SuccessResponse)
async def save_settings(services: ServicesDep, update: JobSettingsUpdate) -> SuccessResponse:
    """Save settings for a job. Existing keys are overwritten."""
    services.settings.set_job_settings(update.job_name, update.settings)
    return SuccessResponse()
