"""CronPilot storage layer.

This module provides database storage for tracked videos, ingested comments,
job settings, content drafts and chat transcripts using SQLAlchemy.
"""

from .database import Database, database_url_for, init_database
from .models import (
    AppSetting,
    Automation,
    Base,
    ChatMessage,
    CommentStatus,
    ContentDraft,
    Conversation,
    DraftStatus,
    TrackedVideo,
    VideoComment,
)
from .repositories import (
    AutomationRepository,
    CommentRepository,
    ConversationRepository,
    DraftRepository,
    SettingRepository,
    VideoRepository,
)
from .settings import SettingsStore

__all__ = [
    "AppSetting",
    "Automation",
    "AutomationRepository",
    "Base",
    "ChatMessage",
    "CommentRepository",
    "CommentStatus",
    "ContentDraft",
    "Conversation",
    "ConversationRepository",
    "Database",
    "DraftRepository",
    "DraftStatus",
    "SettingRepository",
    "SettingsStore",
    "TrackedVideo",
    "VideoComment",
    "VideoRepository",
    "database_url_for",
    "init_database",
]
