"""API schemas for CronPilot."""

from .automations import (
    AutomationCreate,
    AutomationResponse,
    ChatMessageIn,
    ChatMessageOut,
    ChatRequest,
    ConversationResponse,
    MessagePart,
    TranscriptResponse,
)
from .common import ErrorResponse, SuccessResponse
from .jobs import JobOutcomeResponse, JobRunRequest, JobStatus
from .settings import JobSettingsUpdate
from .videos import CommentResponse, DraftResponse, TrackVideoRequest, VideoResponse

__all__ = [
    "AutomationCreate",
    "AutomationResponse",
    "ChatMessageIn",
    "ChatMessageOut",
    "ChatRequest",
    "CommentResponse",
    "ConversationResponse",
    "DraftResponse",
    "ErrorResponse",
    "JobOutcomeResponse",
    "JobRunRequest",
    "JobSettingsUpdate",
    "JobStatus",
    "MessagePart",
    "SuccessResponse",
    "TrackVideoRequest",
    "TranscriptResponse",
    "VideoResponse",
]
