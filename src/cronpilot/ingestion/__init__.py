"""Idempotent ingestion of comments from tracked videos."""

from cronpilot.ingestion.pipeline import DEFAULT_PAGE_SIZE, DEFAULT_REPLY_PROMPT, IngestionPipeline
from cronpilot.ingestion.store import IngestionStore, MemoryIngestionStore, SqlIngestionStore
from cronpilot.ingestion.youtube import CommentSource, YouTubeCommentSource

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_REPLY_PROMPT",
    "CommentSource",
    "IngestionPipeline",
    "IngestionStore",
    "MemoryIngestionStore",
    "SqlIngestionStore",
    "YouTubeCommentSource",
]
