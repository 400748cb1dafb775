"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from cronpilot.engine import ErrorCategory, GenerationError, ProviderError
from cronpilot.ingestion import SqlIngestionStore
from cronpilot.models import ExternalItem, TrackedResource
from cronpilot.services import Services
from cronpilot.storage import Database, SettingsStore

ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "CRONPILOT_HOME",
    "CRONPILOT_LOG_LEVEL",
    "CRONPILOT_MODEL",
    "CRONPILOT_TIMEZONE",
    "DATABASE_URL",
    "YOUTUBE_CLIENT_ID",
    "YOUTUBE_CLIENT_SECRET",
    "YOUTUBE_REFRESH_TOKEN",
)


@pytest.fixture(autouse=True)
def cronpilot_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point CronPilot at an empty home directory and clear its environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / ".cronpilot"
    monkeypatch.setenv("CRONPILOT_HOME", str(home))
    return home


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Create an in-memory database with tables."""
    database = Database(":memory:")
    database.create_tables()
    yield database
    database.dispose()


def make_item(external_id: str, text: str = "", author: str = "viewer") -> ExternalItem:
    """Build an item as a source would return it."""
    return ExternalItem(
        external_id=external_id,
        text=text or f"comment {external_id}",
        author_id=f"channel-{author}",
        author_name=author,
        published_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


class FakeCommentSource:
    """In-memory comment source.

    ``pages`` maps a resource ID to the page returned by ``list_items``.
    ``errors`` maps a resource ID to an exception raised instead.
    """

    def __init__(self) -> None:
        self.pages: dict[str, list[ExternalItem]] = {}
        self.errors: dict[str, Exception] = {}
        self.resources: dict[str, TrackedResource] = {}
        self.replies: list[tuple[str, str]] = []
        self.reply_error: Exception | None = None
        self.list_calls: list[tuple[str, int]] = []

    async def list_items(self, resource_id: str, page_size: int) -> list[ExternalItem]:
        self.list_calls.append((resource_id, page_size))
        if resource_id in self.errors:
            raise self.errors[resource_id]
        return list(self.pages.get(resource_id, []))[:page_size]

    async def get_resource(self, resource_id: str) -> TrackedResource | None:
        return self.resources.get(resource_id)

    async def reply(self, item_id: str, text: str) -> str:
        if self.reply_error is not None:
            raise self.reply_error
        self.replies.append((item_id, text))
        return f"reply-{item_id}"


class FakeGenerator:
    """Content generator and chat model returning canned text."""

    def __init__(self, text: str = "Thanks for watching!") -> None:
        self.text = text
        self.prompts: list[str] = []
        self.chunks: list[str] = ["Hello", ", ", "world"]
        self.stream_calls: list[tuple[str, list[dict[str, Any]]]] = []
        self.fail_after: int | None = None

    async def generate(self, prompt: str, system: str | None = None) -> str:
        self.prompts.append(prompt)
        if not self.text:
            raise GenerationError("Generation returned no text")
        return self.text

    async def stream(self, system: str, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        self.stream_calls.append((system, messages))
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index >= self.fail_after:
                raise GenerationError("Stream interrupted")
            yield chunk


@pytest.fixture
def source() -> FakeCommentSource:
    """Create an empty fake comment source."""
    return FakeCommentSource()


@pytest.fixture
def generator() -> FakeGenerator:
    """Create a fake generator."""
    return FakeGenerator()


@pytest.fixture
def services(db: Database, source: FakeCommentSource, generator: FakeGenerator) -> Services:
    """Create services over the in-memory database and fakes."""
    return Services(
        db=db,
        settings=SettingsStore(db),
        ingestion_store=SqlIngestionStore(db),
        comment_source=source,
        generator=generator,
        chat_model=generator,
    )


@pytest.fixture
def tracked_video(services: Services) -> TrackedResource:
    """Track a video directly in the store."""
    return services.ingestion_store.add_resource(
        TrackedResource(external_id="vid-1", title="First video", channel_title="Channel")
    )


def provider_error(message: str = "YouTube API error (503): backend error") -> ProviderError:
    """Build a transient provider error."""
    return ProviderError(message, category=ErrorCategory.TRANSIENT, status_code=503)
