"""Automation and chat API schemas for CronPilot."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AutomationCreate(BaseModel):
    """Schema for creating an automation."""

    name: str = Field(..., min_length=1, max_length=100, description="Automation name")
    handler: str = Field(..., min_length=1, description="Registered handler name")
    description: str = Field(default="", description="What the automation does")
    params: dict[str, Any] = Field(default_factory=dict, description="Handler parameters")


class AutomationResponse(BaseModel):
    """An automation."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Automation ID")
    name: str = Field(..., description="Automation name")
    handler: str = Field(..., description="Handler name")
    description: str = Field(default="", description="Description")
    params: dict[str, Any] = Field(default_factory=dict, description="Handler parameters")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class MessagePart(BaseModel):
    """One part of a structured chat message."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(..., description="Part type; only text parts are read")
    text: str | None = Field(default=None, description="Text of a text part")


class ChatMessageIn(BaseModel):
    """A chat message sent by the client."""

    role: str = Field(..., description="user or assistant")
    content: str | list[Any] | dict[str, Any] | None = Field(
        default=None, description="Message text or structured content"
    )
    parts: list[MessagePart] | None = Field(default=None, description="Message parts")


class ChatRequest(BaseModel):
    """Chat request for an automation."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessageIn] = Field(..., description="Message history, newest last")
    conversation_id: str | None = Field(
        default=None, alias="conversationId", description="Conversation to continue"
    )

    @field_validator("messages")
    @classmethod
    def validate_messages(cls, v: list[ChatMessageIn]) -> list[ChatMessageIn]:
        """Require at least one message."""
        if not v:
            raise ValueError("At least one message is required")
        return v


class ConversationResponse(BaseModel):
    """A conversation's metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Conversation ID")
    automation_id: str = Field(..., description="Owning automation")
    title: str | None = Field(default=None, description="Title from the first user message")
    status: str = Field(..., description="Conversation status")
    message_count: int = Field(..., description="Number of stored messages")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")


class ChatMessageOut(BaseModel):
    """A stored chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Message ID")
    role: str = Field(..., description="user or assistant")
    content: str = Field(..., description="Message text")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")


class TranscriptResponse(BaseModel):
    """A conversation with its most recent messages."""

    conversation: ConversationResponse
    messages: list[ChatMessageOut]
