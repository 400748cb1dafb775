"""Tracked video API schemas for CronPilot."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cronpilot.storage import CommentStatus, DraftStatus


class TrackVideoRequest(BaseModel):
    """Request to start tracking a video."""

    video_id: str = Field(..., min_length=1, max_length=64, description="YouTube video ID")


class VideoResponse(BaseModel):
    """A tracked video."""

    model_config = ConfigDict(from_attributes=True)

    video_id: str = Field(..., description="YouTube video ID")
    title: str | None = Field(default=None, description="Video title")
    channel_id: str | None = Field(default=None, description="Channel ID")
    channel_title: str | None = Field(default=None, description="Channel title")
    published_at: datetime | None = Field(default=None, description="Publication time")
    last_checked_at: datetime | None = Field(default=None, description="Last comment check")


class CommentResponse(BaseModel):
    """An ingested comment."""

    model_config = ConfigDict(from_attributes=True)

    comment_id: str = Field(..., description="YouTube comment ID")
    video_id: str = Field(..., description="Video the comment belongs to")
    text: str = Field(default="", description="Comment text")
    author_display_name: str | None = Field(default=None, description="Author name")
    status: CommentStatus = Field(..., description="pending or replied")
    reply_text: str | None = Field(default=None, description="Posted reply")
    created_at: datetime | None = Field(default=None, description="When the comment was saved")


class DraftResponse(BaseModel):
    """A generated content draft."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Draft ID")
    job_name: str = Field(..., description="Job that generated the draft")
    prompt: str = Field(..., description="Prompt used")
    content: str = Field(..., description="Generated content")
    status: DraftStatus = Field(..., description="draft or posted")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
