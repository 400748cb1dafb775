"""YouTube Data API comment source for CronPilot."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from cronpilot.engine.errors import (
    CronPilotError,
    ErrorCategory,
    NotConfiguredError,
    ProviderError,
    classify_http_error,
)
from cronpilot.models import ExternalItem, TrackedResource

if TYPE_CHECKING:
    from cronpilot.config import YouTubeCredentials

logger = logging.getLogger(__name__)

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"
TOKEN_URL = "https://oauth2.googleapis.com/token"

# commentThreads.list accepts 1-100 results per page
MAX_PAGE_SIZE = 100


class CommentSource(Protocol):
    """External source of items attached to a tracked resource."""

    async def list_items(self, resource_id: str, page_size: int) -> list[ExternalItem]: ...

    async def get_resource(self, resource_id: str) -> TrackedResource | None: ...

    async def reply(self, item_id: str, text: str) -> str: ...


def _is_transient(exc: BaseException) -> bool:
    return (
        isinstance(exc, CronPilotError)
        and exc.retryable
        and exc.category is ErrorCategory.TRANSIENT
    )


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_comment_thread(thread: dict[str, Any]) -> ExternalItem | None:
    """Convert a commentThread resource into an ExternalItem.

    Args:
        thread: A commentThread resource from the API.

    Returns:
        The item, or None if the thread has no usable top-level comment.
    """
    top_level = (thread.get("snippet") or {}).get("topLevelComment") or {}
    comment_id = top_level.get("id")
    snippet = top_level.get("snippet")
    if not comment_id or not snippet:
        return None

    return ExternalItem(
        external_id=comment_id,
        text=snippet.get("textDisplay") or "",
        author_id=(snippet.get("authorChannelId") or {}).get("value"),
        author_name=snippet.get("authorDisplayName"),
        published_at=_parse_datetime(snippet.get("publishedAt")),
    )


def parse_video(video: dict[str, Any]) -> TrackedResource:
    """Convert a video resource into a TrackedResource."""
    snippet = video.get("snippet") or {}
    return TrackedResource(
        external_id=video["id"],
        title=snippet.get("title"),
        channel_id=snippet.get("channelId"),
        channel_title=snippet.get("channelTitle"),
        description=snippet.get("description"),
        published_at=_parse_datetime(snippet.get("publishedAt")),
    )


class YouTubeCommentSource:
    """Comment source backed by the YouTube Data API v3.

    Authenticates with an OAuth refresh token. Access tokens are cached
    until shortly before they expire.
    """

    def __init__(
        self,
        credentials: YouTubeCredentials | None,
        timeout: float = 30.0,
        max_attempts: int = 3,
        retry_wait: float = 1.0,
    ) -> None:
        """Initialize the source.

        Args:
            credentials: OAuth client credentials and refresh token, or None.
            timeout: Request timeout in seconds.
            max_attempts: Attempts for read requests that fail transiently.
            retry_wait: Initial backoff between attempts in seconds.
        """
        self._credentials = credentials
        self._timeout = timeout
        self._max_attempts = max(1, max_attempts)
        self._retry_wait = retry_wait
        self._access_token: str | None = None
        self._token_expires_at = 0.0

    @property
    def is_configured(self) -> bool:
        return self._credentials is not None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._credentials is None:
            raise NotConfiguredError(
                "YouTube client is not configured. Set YOUTUBE_CLIENT_ID, "
                "YOUTUBE_CLIENT_SECRET and YOUTUBE_REFRESH_TOKEN."
            )

        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        response = await self._send(
            client,
            "POST",
            TOKEN_URL,
            data={
                "client_id": self._credentials.client_id,
                "client_secret": self._credentials.client_secret,
                "refresh_token": self._credentials.refresh_token,
                "grant_type": "refresh_token",
            },
        )
        payload = response.json()
        self._access_token = payload["access_token"]
        # Refresh a minute early
        self._token_expires_at = time.monotonic() + int(payload.get("expires_in", 3600)) - 60
        return self._access_token

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"YouTube request timed out after {self._timeout}s",
                category=ErrorCategory.TRANSIENT,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"YouTube connection failed: {e}",
                category=ErrorCategory.TRANSIENT,
            ) from e

        if not response.is_success:
            category, retryable, _ = classify_http_error(response.status_code, response.text)
            raise ProviderError(
                f"YouTube API error ({response.status_code}): {self._error_message(response)}",
                category=category,
                retryable=retryable,
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message") or response.reason_phrase)
        if isinstance(error, str):
            return error
        return response.reason_phrase

    async def _api(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        # Only reads are retried; a retried POST could post a reply twice
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts if method == "GET" else 1),
            wait=wait_exponential_jitter(initial=self._retry_wait, max=30, jitter=self._retry_wait),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )

        async for attempt in retryer:
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.debug(f"Retrying {method} {path}, attempt {number}")
                async with self._client() as client:
                    token = await self._get_access_token(client)
                    response = await self._send(
                        client,
                        method,
                        f"{YOUTUBE_API_URL}/{path}",
                        params=params,
                        json=json,
                        headers={"Authorization": f"Bearer {token}"},
                    )
                    result: dict[str, Any] = response.json()
                    return result

        raise ProviderError(f"YouTube request produced no response: {method} {path}")

    async def list_items(self, resource_id: str, page_size: int = 50) -> list[ExternalItem]:
        """Fetch the newest top-level comments of a video.

        Args:
            resource_id: The video ID.
            page_size: Number of comment threads to request (1-100).

        Returns:
            Comments ordered newest first. Threads without a usable
            top-level comment are dropped.

        Raises:
            NotConfiguredError: If credentials are absent.
            ProviderError: On transport or API failure.
        """
        data = await self._api(
            "GET",
            "commentThreads",
            params={
                "part": "snippet,replies",
                "videoId": resource_id,
                "maxResults": max(1, min(page_size, MAX_PAGE_SIZE)),
                "order": "time",
            },
        )
        items = [parse_comment_thread(thread) for thread in data.get("items", [])]
        return [item for item in items if item is not None]

    async def get_resource(self, resource_id: str) -> TrackedResource | None:
        """Fetch video metadata.

        Args:
            resource_id: The video ID.

        Returns:
            The video's metadata, or None if the video does not exist.
        """
        data = await self._api(
            "GET",
            "videos",
            params={"part": "snippet,statistics,contentDetails", "id": resource_id},
        )
        videos = data.get("items") or []
        return parse_video(videos[0]) if videos else None

    async def reply(self, item_id: str, text: str) -> str:
        """Post a reply to a comment.

        Args:
            item_id: ID of the comment to reply to.
            text: Reply text.

        Returns:
            ID of the created reply.
        """
        data = await self._api(
            "POST",
            "comments",
            params={"part": "snippet"},
            json={"snippet": {"parentId": item_id, "textOriginal": text}},
        )
        logger.info(f"Posted reply to comment {item_id}")
        return str(data.get("id", ""))
