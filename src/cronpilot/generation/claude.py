"""Anthropic-backed text generation for CronPilot."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import anthropic

from cronpilot.config import DEFAULT_MODEL, get_anthropic_api_key
from cronpilot.engine.errors import ErrorCategory, GenerationError, classify_anthropic_error

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    """Turns a prompt into generated text."""

    async def generate(self, prompt: str, system: str | None = None) -> str: ...


class ChatModel(Protocol):
    """Streams an assistant reply for a list of chat turns."""

    def stream(self, system: str, messages: list[dict[str, Any]]) -> AsyncIterator[str]: ...


def _to_generation_error(error: anthropic.APIError) -> GenerationError:
    category, retryable, retry_after = classify_anthropic_error(error)
    return GenerationError(
        f"Generation failed: {error}",
        category=category,
        retryable=retryable,
        context={"retry_after": retry_after} if retry_after else {},
        status_code=getattr(error, "status_code", None),
    )


class ClaudeGenerator:
    """Content generator and chat model using the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1024,
        timeout: int = 60,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            api_key: Anthropic API key (looked up from config when None).
            model: Model ID.
            max_tokens: Maximum tokens per response.
            timeout: Seconds allowed for a single generation call.
            client: Pre-built client (for testing).
        """
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Get or create Anthropic async client.

        Raises:
            ConfigError: If API key is not configured.
        """
        if self._client is None:
            api_key = self._api_key or get_anthropic_api_key()
            self._client = anthropic.AsyncAnthropic(api_key=api_key)
        return self._client

    async def generate(self, prompt: str, system: str | None = None) -> str:
        """Generate text for a prompt.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.

        Returns:
            The generated text, stripped.

        Raises:
            GenerationError: On provider failure, timeout, or empty output.
        """
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = await asyncio.wait_for(
                client.messages.create(**kwargs), timeout=self._timeout
            )
        except anthropic.APIError as e:
            raise _to_generation_error(e) from e
        except TimeoutError as e:
            raise GenerationError(
                f"Generation timed out after {self._timeout}s",
                category=ErrorCategory.TRANSIENT,
            ) from e

        text = "".join(block.text for block in response.content if block.type == "text").strip()
        if not text:
            raise GenerationError("Generation returned no text", category=ErrorCategory.UNKNOWN)

        logger.debug(f"Generated {len(text)} characters with {self._model}")
        return text

    async def stream(self, system: str, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        """Stream an assistant reply.

        Args:
            system: System prompt.
            messages: Chat turns as ``{"role": ..., "content": ...}`` dicts.

        Yields:
            Text chunks as they arrive.

        Raises:
            GenerationError: On provider failure.
        """
        client = self._get_client()
        try:
            async with client.messages.stream(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system,
                messages=messages,
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.APIError as e:
            raise _to_generation_error(e) from e
