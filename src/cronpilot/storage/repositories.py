"""Repository classes for CronPilot storage operations."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from .models import (
    AppSetting,
    Automation,
    ChatMessage,
    CommentStatus,
    ContentDraft,
    Conversation,
    TrackedVideo,
    VideoComment,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class VideoRepository:
    """Repository for TrackedVideo records."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self._session = session

    def create(self, video: TrackedVideo) -> TrackedVideo:
        """Create a new tracked video record.

        Args:
            video: The video to create.

        Returns:
            The created video with any generated values.
        """
        self._session.add(video)
        self._session.flush()
        return video

    def get_by_video_id(self, video_id: str) -> TrackedVideo | None:
        """Get a tracked video by its source identifier.

        Args:
            video_id: The video ID in the source system.

        Returns:
            The video if tracked, None otherwise.
        """
        stmt = select(TrackedVideo).where(TrackedVideo.video_id == video_id)
        return self._session.scalar(stmt)

    def get_all(self) -> list[TrackedVideo]:
        """Get all tracked videos, oldest first."""
        stmt = select(TrackedVideo).order_by(TrackedVideo.id)
        return list(self._session.scalars(stmt))

    def touch(self, video_id: str, checked_at: datetime | None = None) -> bool:
        """Update the last checked timestamp of a video.

        Args:
            video_id: The video ID in the source system.
            checked_at: Time of the check (defaults to now).

        Returns:
            True if updated, False if the video is not tracked.
        """
        video = self.get_by_video_id(video_id)
        if video is None:
            return False

        video.last_checked_at = checked_at or datetime.now(UTC)
        self._session.flush()
        return True


class CommentRepository:
    """Repository for VideoComment records."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self._session = session

    def create(self, comment: VideoComment) -> VideoComment:
        """Create a new comment record.

        Args:
            comment: The comment to create.

        Returns:
            The created comment.

        Raises:
            sqlalchemy.exc.IntegrityError: If the comment ID already exists.
        """
        self._session.add(comment)
        self._session.flush()
        return comment

    def get_by_comment_id(self, comment_id: str) -> VideoComment | None:
        """Get a comment by its source identifier.

        Args:
            comment_id: The comment ID in the source system.

        Returns:
            The comment if found, None otherwise.
        """
        stmt = select(VideoComment).where(VideoComment.comment_id == comment_id)
        return self._session.scalar(stmt)

    def exists(self, comment_id: str) -> bool:
        """Check whether a comment has already been ingested."""
        stmt = select(VideoComment.id).where(VideoComment.comment_id == comment_id).limit(1)
        return self._session.scalar(stmt) is not None

    def get_by_video(
        self,
        video_id: str,
        limit: int = 100,
        status: CommentStatus | None = None,
    ) -> list[VideoComment]:
        """Get comments for a specific video.

        Args:
            video_id: The video ID in the source system.
            limit: Maximum number of comments to return.
            status: Optional status filter.

        Returns:
            List of comments, newest first.
        """
        stmt = select(VideoComment).where(VideoComment.video_id == video_id)
        if status is not None:
            stmt = stmt.where(VideoComment.status == status)
        stmt = stmt.order_by(VideoComment.id.desc()).limit(limit)
        return list(self._session.scalars(stmt))

    def count(self, video_id: str | None = None) -> int:
        """Count ingested comments, optionally for one video."""
        stmt = select(func.count(VideoComment.id))
        if video_id is not None:
            stmt = stmt.where(VideoComment.video_id == video_id)
        return int(self._session.scalar(stmt) or 0)

    def mark_replied(self, comment_id: str, reply_text: str) -> bool:
        """Record a posted reply for a comment.

        Args:
            comment_id: The comment ID in the source system.
            reply_text: The reply that was posted.

        Returns:
            True if updated, False if the comment does not exist.
        """
        comment = self.get_by_comment_id(comment_id)
        if comment is None:
            return False

        comment.reply_text = reply_text
        comment.replied_at = datetime.now(UTC)
        comment.status = CommentStatus.REPLIED
        self._session.flush()
        return True


class SettingRepository:
    """Repository for AppSetting records."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self._session = session

    def get(self, key: str) -> AppSetting | None:
        """Get a setting by key."""
        stmt = select(AppSetting).where(AppSetting.key == key)
        return self._session.scalar(stmt)

    def get_by_prefix(self, prefix: str) -> list[AppSetting]:
        """Get all settings whose key starts with a prefix."""
        stmt = select(AppSetting).where(AppSetting.key.startswith(prefix, autoescape=True))
        return list(self._session.scalars(stmt.order_by(AppSetting.key)))

    def upsert(self, key: str, value: str) -> AppSetting:
        """Insert or update a setting.

        Args:
            key: Setting key.
            value: Serialized value.

        Returns:
            The stored setting.
        """
        setting = self.get(key)
        if setting is None:
            setting = AppSetting(key=key, value=value)
            self._session.add(setting)
        else:
            setting.value = value
            setting.updated_at = datetime.now(UTC)
        self._session.flush()
        return setting


class DraftRepository:
    """Repository for ContentDraft records."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, draft: ContentDraft) -> ContentDraft:
        """Create a new draft record."""
        self._session.add(draft)
        self._session.flush()
        return draft

    def get_recent(self, limit: int = 50, job_name: str | None = None) -> list[ContentDraft]:
        """Get the most recent drafts, newest first."""
        stmt = select(ContentDraft)
        if job_name is not None:
            stmt = stmt.where(ContentDraft.job_name == job_name)
        stmt = stmt.order_by(ContentDraft.id.desc()).limit(limit)
        return list(self._session.scalars(stmt))


class AutomationRepository:
    """Repository for Automation records."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, automation: Automation) -> Automation:
        """Create a new automation record."""
        self._session.add(automation)
        self._session.flush()
        return automation

    def get_by_id(self, automation_id: str) -> Automation | None:
        """Get an automation by ID."""
        stmt = select(Automation).where(Automation.id == automation_id)
        return self._session.scalar(stmt)

    def get_all(self) -> list[Automation]:
        """Get all automations ordered by name."""
        stmt = select(Automation).order_by(Automation.name)
        return list(self._session.scalars(stmt))


class ConversationRepository:
    """Repository for Conversation and ChatMessage records."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, conversation: Conversation) -> Conversation:
        """Create a new conversation record."""
        self._session.add(conversation)
        self._session.flush()
        return conversation

    def get(self, conversation_id: str, automation_id: str) -> Conversation | None:
        """Get a conversation that belongs to a specific automation.

        Args:
            conversation_id: The conversation ID.
            automation_id: The owning automation ID.

        Returns:
            The conversation if it exists for that automation, None otherwise.
        """
        stmt = select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.automation_id == automation_id,
        )
        return self._session.scalar(stmt)

    def add_message(self, conversation_id: str, role: str, content: str) -> ChatMessage:
        """Append a message to a conversation."""
        message = ChatMessage(conversation_id=conversation_id, role=role, content=content)
        self._session.add(message)
        self._session.flush()
        return message

    def get_recent_messages(self, conversation_id: str, limit: int = 20) -> list[ChatMessage]:
        """Get the most recent messages of a conversation.

        Args:
            conversation_id: The conversation ID.
            limit: Maximum number of messages.

        Returns:
            Messages in chronological order.
        """
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(list(self._session.scalars(stmt))))
