"""Durable storage for polled resources and the dedup record of ingested items."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from sqlalchemy.exc import IntegrityError

from cronpilot.engine.errors import DuplicateItemError, NotFoundError
from cronpilot.models import IngestedItem, TrackedResource
from cronpilot.storage import (
    CommentRepository,
    CommentStatus,
    TrackedVideo,
    VideoComment,
    VideoRepository,
)

if TYPE_CHECKING:
    from cronpilot.storage import Database


class IngestionStore(Protocol):
    """Storage interface the ingestion pipeline depends on."""

    def list_resources(self) -> list[TrackedResource]: ...

    def get_resource(self, external_id: str) -> TrackedResource | None: ...

    def add_resource(self, resource: TrackedResource) -> TrackedResource: ...

    def touch_resource(self, external_id: str, checked_at: datetime) -> None: ...

    def has_item(self, external_id: str) -> bool: ...

    def get_item(self, external_id: str) -> IngestedItem | None: ...

    def insert_item(self, item: IngestedItem) -> None: ...

    def mark_replied(self, external_id: str, reply_text: str) -> None: ...

    def count_items(self, parent_resource_id: str | None = None) -> int: ...


def _video_to_resource(video: TrackedVideo) -> TrackedResource:
    return TrackedResource(
        external_id=video.video_id,
        title=video.title,
        channel_id=video.channel_id,
        channel_title=video.channel_title,
        description=video.description,
        published_at=video.published_at,
        last_checked_at=video.last_checked_at,
    )


def _comment_to_item(comment: VideoComment) -> IngestedItem:
    return IngestedItem(
        external_id=comment.comment_id,
        parent_resource_id=comment.video_id,
        text=comment.text,
        author_id=comment.author_channel_id,
        author_name=comment.author_display_name,
        status=comment.status.value,
        reply_text=comment.reply_text,
    )


class SqlIngestionStore:
    """IngestionStore over the tracked_videos and video_comments tables."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def list_resources(self) -> list[TrackedResource]:
        with self._db.session_scope() as session:
            return [_video_to_resource(v) for v in VideoRepository(session).get_all()]

    def get_resource(self, external_id: str) -> TrackedResource | None:
        with self._db.session_scope() as session:
            video = VideoRepository(session).get_by_video_id(external_id)
            return _video_to_resource(video) if video else None

    def add_resource(self, resource: TrackedResource) -> TrackedResource:
        try:
            with self._db.session_scope() as session:
                video = VideoRepository(session).create(
                    TrackedVideo(
                        video_id=resource.external_id,
                        title=resource.title,
                        channel_id=resource.channel_id,
                        channel_title=resource.channel_title,
                        description=resource.description,
                        published_at=resource.published_at,
                    )
                )
                return _video_to_resource(video)
        except IntegrityError as e:
            raise DuplicateItemError(f"Resource already tracked: {resource.external_id}") from e

    def touch_resource(self, external_id: str, checked_at: datetime) -> None:
        with self._db.session_scope() as session:
            if not VideoRepository(session).touch(external_id, checked_at):
                raise NotFoundError(f"Resource not tracked: {external_id}")

    def has_item(self, external_id: str) -> bool:
        with self._db.session_scope() as session:
            return CommentRepository(session).exists(external_id)

    def get_item(self, external_id: str) -> IngestedItem | None:
        with self._db.session_scope() as session:
            comment = CommentRepository(session).get_by_comment_id(external_id)
            return _comment_to_item(comment) if comment else None

    def insert_item(self, item: IngestedItem) -> None:
        """Insert a pending item.

        Raises:
            DuplicateItemError: If an item with the same dedup key exists.
        """
        try:
            with self._db.session_scope() as session:
                CommentRepository(session).create(
                    VideoComment(
                        comment_id=item.external_id,
                        video_id=item.parent_resource_id,
                        text=item.text,
                        author_channel_id=item.author_id,
                        author_display_name=item.author_name,
                        status=CommentStatus(item.status),
                    )
                )
        except IntegrityError as e:
            raise DuplicateItemError(
                f"Item already ingested: {item.external_id}",
                context={"external_id": item.external_id, "resource": item.parent_resource_id},
            ) from e

    def mark_replied(self, external_id: str, reply_text: str) -> None:
        with self._db.session_scope() as session:
            if not CommentRepository(session).mark_replied(external_id, reply_text):
                raise NotFoundError(f"Item not found: {external_id}")

    def count_items(self, parent_resource_id: str | None = None) -> int:
        with self._db.session_scope() as session:
            return CommentRepository(session).count(parent_resource_id)


class MemoryIngestionStore:
    """IngestionStore kept in process memory.

    Used for dry runs and tests; it enforces the same uniqueness rule as
    the database-backed store.
    """

    def __init__(self) -> None:
        self._resources: dict[str, TrackedResource] = {}
        self._items: dict[str, IngestedItem] = {}
        self._lock = threading.Lock()

    def list_resources(self) -> list[TrackedResource]:
        with self._lock:
            return [r.model_copy() for r in self._resources.values()]

    def get_resource(self, external_id: str) -> TrackedResource | None:
        with self._lock:
            resource = self._resources.get(external_id)
            return resource.model_copy() if resource else None

    def add_resource(self, resource: TrackedResource) -> TrackedResource:
        with self._lock:
            if resource.external_id in self._resources:
                raise DuplicateItemError(f"Resource already tracked: {resource.external_id}")
            self._resources[resource.external_id] = resource.model_copy()
            return resource.model_copy()

    def touch_resource(self, external_id: str, checked_at: datetime) -> None:
        with self._lock:
            resource = self._resources.get(external_id)
            if resource is None:
                raise NotFoundError(f"Resource not tracked: {external_id}")
            resource.last_checked_at = checked_at

    def has_item(self, external_id: str) -> bool:
        with self._lock:
            return external_id in self._items

    def get_item(self, external_id: str) -> IngestedItem | None:
        with self._lock:
            item = self._items.get(external_id)
            return item.model_copy() if item else None

    def insert_item(self, item: IngestedItem) -> None:
        with self._lock:
            if item.external_id in self._items:
                raise DuplicateItemError(
                    f"Item already ingested: {item.external_id}",
                    context={"external_id": item.external_id},
                )
            self._items[item.external_id] = item.model_copy()

    def mark_replied(self, external_id: str, reply_text: str) -> None:
        with self._lock:
            item = self._items.get(external_id)
            if item is None:
                raise NotFoundError(f"Item not found: {external_id}")
            item.status = "replied"
            item.reply_text = reply_text

    def count_items(self, parent_resource_id: str | None = None) -> int:
        with self._lock:
            if parent_resource_id is None:
                return len(self._items)
            return sum(
                1 for i in self._items.values() if i.parent_resource_id == parent_resource_id
            )
