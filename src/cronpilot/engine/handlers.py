"""Named job handlers for CronPilot.

Jobs reference their work by handler name instead of holding closures, so a
job list can be loaded from configuration, inspected and tested without
running anything.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, ClassVar

from .context import JobContext

JobHandler = Callable[[JobContext], Awaitable[Any]]


class HandlerRegistry:
    """Registry of job handlers keyed by name."""

    _handlers: ClassVar[dict[str, JobHandler]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[JobHandler], JobHandler]:
        """Register a handler under a name.

        Args:
            name: Handler name referenced by job definitions.

        Returns:
            Decorator function.
        """

        def decorator(handler: JobHandler) -> JobHandler:
            cls._handlers[name] = handler
            return handler

        return decorator

    @classmethod
    def get(cls, name: str) -> JobHandler:
        """Get the handler registered under a name.

        Raises:
            KeyError: If no handler is registered for the name.
        """
        if name not in cls._handlers:
            raise KeyError(f"No handler registered with name: {name}")
        return cls._handlers[name]

    @classmethod
    def has_handler(cls, name: str) -> bool:
        """Check if a handler is registered for a name."""
        return name in cls._handlers

    @classmethod
    def names(cls) -> list[str]:
        """Get all registered handler names."""
        return sorted(cls._handlers)

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove a handler (for testing)."""
        cls._handlers.pop(name, None)


def handler(name: str) -> Callable[[JobHandler], JobHandler]:
    """Shorthand for ``HandlerRegistry.register``."""
    return HandlerRegistry.register(name)
