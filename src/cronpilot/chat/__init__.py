"""Conversation-driven automation execution."""

from .service import (
    CHAT_HISTORY_LIMIT,
    TITLE_MAX_LENGTH,
    ChatExchange,
    ChatService,
    message_text,
    to_model_messages,
)

__all__ = [
    "CHAT_HISTORY_LIMIT",
    "TITLE_MAX_LENGTH",
    "ChatExchange",
    "ChatService",
    "message_text",
    "to_model_messages",
]
