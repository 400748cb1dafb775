"""Common API schemas for CronPilot."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error message")


class SuccessResponse(BaseModel):
    """Acknowledgement of a write."""

    success: bool = Field(default=True, description="Whether the write succeeded")
