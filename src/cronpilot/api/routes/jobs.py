"""Scheduled job endpoints for CronPilot API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from cronpilot.api.dependencies import SchedulerDep
from cronpilot.api.schemas import JobOutcomeResponse, JobRunRequest, JobStatus
from cronpilot.engine import JobOutcome

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs")


def _outcome_response(outcome: JobOutcome) -> JobOutcomeResponse:
    return JobOutcomeResponse.model_validate(outcome.to_dict())


def _status(info: dict[str, Any]) -> JobStatus:
    return JobStatus.model_validate(info)


@router.get("", response_model=list[JobStatus])
async def list_jobs(scheduler: SchedulerDep) -> list[JobStatus]:
    """List registered jobs with their schedule and last outcome."""
    return [_status(info) for info in scheduler.describe()]


@router.get("/{name}", response_model=JobStatus)
async def get_job(name: str, scheduler: SchedulerDep) -> JobStatus:
    """Get a registered job.

    Raises:
        HTTPException: If no job has this name.
    """
    described = scheduler.describe(name)
    if not described:
        raise HTTPException(status_code=404, detail=f"Job '{name}' not found")
    return _status(described[0])


@router.post("/{name}/run", response_model=JobOutcomeResponse)
async def run_job(
    name: str,
    scheduler: SchedulerDep,
    request: JobRunRequest | None = None,
) -> JobOutcomeResponse:
    """Run a job now, outside its schedule.

    The run goes through the same overlap guard as scheduled ticks, so a
    request made while the job is running returns a skipped outcome.

    Raises:
        HTTPException: If no job has this name.
    """
    outcome = await scheduler.run_now(name, params=request.params if request else None)
    if outcome is None:
        raise HTTPException(status_code=404, detail=f"Job '{name}' not found")

    logger.info(f"Manual run of '{name}' finished with status {outcome.status}")
    return _outcome_response(outcome)
