"""Automation and chat endpoints for CronPilot API."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse

from cronpilot.api.dependencies import ChatServiceDep
from cronpilot.api.schemas import (
    AutomationCreate,
    AutomationResponse,
    ChatMessageOut,
    ChatRequest,
    ConversationResponse,
    TranscriptResponse,
)
from cronpilot.engine import CronPilotError, NotConfiguredError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/automations")

GENERATION_FAILED = "Failed to generate a response"


@router.get("", response_model=list[AutomationResponse])
async def list_automations(chat_service: ChatServiceDep) -> list[AutomationResponse]:
    """List automations."""
    return [AutomationResponse.model_validate(a) for a in chat_service.list_automations()]


@router.post("", response_model=AutomationResponse, status_code=201)
async def create_automation(
    chat_service: ChatServiceDep,
    data: AutomationCreate,
) -> AutomationResponse:
    """Create an automation that runs a registered handler.

    Raises:
        HTTPException: If the handler is unknown.
    """
    try:
        automation = chat_service.create_automation(
            name=data.name,
            handler=data.handler,
            description=data.description,
            params=data.params,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return AutomationResponse.model_validate(automation)


@router.get("/{automation_id}", response_model=AutomationResponse)
async def get_automation(automation_id: str, chat_service: ChatServiceDep) -> AutomationResponse:
    """Get an automation."""
    return AutomationResponse.model_validate(chat_service.get_automation(automation_id))


@router.post("/{automation_id}/chat")
async def chat(
    automation_id: str,
    chat_service: ChatServiceDep,
    request: ChatRequest,
) -> StreamingResponse:
    """Chat with an automation.

    Streams the model's reply as plain text. The conversation ID is
    returned in the ``X-Conversation-Id`` header; send it back as
    ``conversationId`` to continue the conversation.

    Raises:
        HTTPException: If the request has no user text or generation fails
            before anything was streamed.
    """
    messages = [m.model_dump(exclude_none=True) for m in request.messages]
    try:
        exchange = chat_service.open_exchange(automation_id, messages, request.conversation_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    stream = exchange.stream()
    try:
        first = await anext(stream)
    except StopAsyncIteration:
        first = ""
    except NotConfiguredError:
        raise
    except CronPilotError as e:
        logger.error(
            f"Chat generation failed for automation {automation_id}: {e}",
            extra={"conversation": exchange.conversation_id},
        )
        raise HTTPException(status_code=502, detail=GENERATION_FAILED) from e

    async def body() -> AsyncIterator[str]:
        if first:
            yield first
        try:
            async for chunk in stream:
                yield chunk
        except CronPilotError as e:
            logger.error(
                f"Chat stream interrupted for automation {automation_id}: {e}",
                extra={"conversation": exchange.conversation_id},
            )
            yield f"\n\n[{GENERATION_FAILED}]"

    return StreamingResponse(
        body(),
        media_type="text/plain; charset=utf-8",
        headers={"X-Conversation-Id": exchange.conversation_id},
    )


@router.get("/{automation_id}/chat", response_model=TranscriptResponse)
async def get_transcript(
    automation_id: str,
    chat_service: ChatServiceDep,
    conversation_id: str | None = Query(None, alias="conversationId"),
) -> TranscriptResponse:
    """Get a conversation and its most recent messages.

    Raises:
        HTTPException: If no conversation ID is given.
    """
    if not conversation_id:
        raise HTTPException(status_code=400, detail="conversationId is required")

    conversation, messages = chat_service.get_transcript(automation_id, conversation_id)
    return TranscriptResponse(
        conversation=ConversationResponse.model_validate(conversation),
        messages=[ChatMessageOut.model_validate(m) for m in messages],
    )
