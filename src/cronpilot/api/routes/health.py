"""Health check endpoints for CronPilot API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from cronpilot import __version__
from cronpilot.api.dependencies import SchedulerDep

router = APIRouter()


@router.get("/health")
async def health_check(scheduler: SchedulerDep) -> dict[str, Any]:
    """Check API health status.

    Returns:
        Health status with timestamp and scheduler state.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "cronpilot",
        "version": __version__,
        "scheduler": scheduler.state.value,
        "jobs": len(scheduler.list()),
    }
