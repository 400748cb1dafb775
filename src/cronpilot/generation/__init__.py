"""Text generation collaborators for CronPilot."""

from .claude import DEFAULT_MODEL, ChatModel, ClaudeGenerator, ContentGenerator

__all__ = [
    "DEFAULT_MODEL",
    "ChatModel",
    "ClaudeGenerator",
    "ContentGenerator",
]
