"""Models for polled resources and ingested items."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ItemStatus = Literal["pending", "replied"]


class ExternalItem(BaseModel):
    """An item as returned by an external source, before ingestion."""

    external_id: str = Field(..., min_length=1, description="Source identifier (dedup key)")
    text: str = Field(default="", description="Item text")
    author_id: str | None = Field(default=None, description="Author identifier")
    author_name: str | None = Field(default=None, description="Author display name")
    published_at: datetime | None = Field(default=None, description="Publication time")


class TrackedResource(BaseModel):
    """A resource whose items are polled, such as a video."""

    external_id: str = Field(..., min_length=1, description="Source identifier")
    title: str | None = None
    channel_id: str | None = None
    channel_title: str | None = None
    description: str | None = None
    published_at: datetime | None = None
    last_checked_at: datetime | None = None


class IngestedItem(BaseModel):
    """A persisted item. At most one exists per ``external_id``."""

    external_id: str
    parent_resource_id: str
    text: str = ""
    author_id: str | None = None
    author_name: str | None = None
    status: ItemStatus = "pending"
    reply_text: str | None = None

    @classmethod
    def from_external(cls, item: ExternalItem, parent_resource_id: str) -> IngestedItem:
        """Create a pending item from a freshly fetched one."""
        return cls(
            external_id=item.external_id,
            parent_resource_id=parent_resource_id,
            text=item.text,
            author_id=item.author_id,
            author_name=item.author_name,
        )


class IngestionReport(BaseModel):
    """Counters for one ingestion pass."""

    resources: int = 0
    fetched: int = 0
    new: int = 0
    skipped: int = 0
    failed: int = 0
    replied: int = 0
    reply_failed: int = 0
    source_errors: int = 0

    def merge(self, other: IngestionReport) -> None:
        """Add another report's counters to this one."""
        for name in type(self).model_fields:
            setattr(self, name, getattr(self, name) + getattr(other, name))
