"""Chat conversations that execute an automation after each exchange."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from cronpilot.engine import HandlerRegistry, JobOutcome, NotConfiguredError, NotFoundError
from cronpilot.models import JobDefinition
from cronpilot.storage import (
    Automation,
    AutomationRepository,
    ChatMessage,
    Conversation,
    ConversationRepository,
)

if TYPE_CHECKING:
    from cronpilot.engine import TaskRunner
    from cronpilot.generation import ChatModel
    from cronpilot.storage import Database

logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 20
TITLE_MAX_LENGTH = 100

# Automations run by chat are never registered with the scheduler
CHAT_SCHEDULE = "* * * * *"

SYSTEM_PROMPT = """You are a helpful assistant that runs automations based on user input.

Automation: {name}
Description: {description}

Your job is to understand the user's request, run the automation with \
appropriate parameters and present the results in a clear, conversational way.

Be friendly, concise and helpful. When formatting tables, always use markdown \
table syntax with | and - characters."""


def message_text(message: dict[str, Any], separator: str = "\n") -> str:
    """Extract the text of a chat message.

    Accepts ``content`` (a string, or structured content that is JSON
    encoded) or ``parts`` (``[{"type": "text", "text": ...}]``).
    """
    content = message.get("content")
    if content:
        return content if isinstance(content, str) else json.dumps(content)

    parts = message.get("parts")
    if isinstance(parts, list):
        texts = [
            str(part.get("text") or "")
            for part in parts
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        return separator.join(texts)
    return ""


def to_model_messages(
    messages: list[dict[str, Any]],
    limit: int = CHAT_HISTORY_LIMIT,
) -> list[dict[str, str]]:
    """Convert client messages to the turns sent to the model.

    Only user turns with text are kept, capped to the most recent ``limit``.
    """
    turns = [
        {"role": "user", "content": text}
        for message in messages
        if message.get("role") == "user" and (text := message_text(message))
    ]
    return turns[-limit:]


class ChatExchange:
    """One request/response exchange bound to a conversation.

    Iterate ``stream()`` to receive the model's reply. The exchange is
    persisted and the automation executed only after the stream finishes;
    if generation fails, nothing is stored for this turn.
    """

    def __init__(
        self,
        service: ChatService,
        automation: Automation,
        conversation_id: str,
        created: bool,
        user_message: str,
        model_messages: list[dict[str, str]],
    ) -> None:
        self._service = service
        self.automation = automation
        self.conversation_id = conversation_id
        self.created = created
        self.user_message = user_message
        self.model_messages = model_messages
        self.reply: str | None = None
        self.outcome: JobOutcome | None = None

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT.format(
            name=self.automation.name,
            description=self.automation.description or "No description",
        )

    async def stream(self) -> AsyncIterator[str]:
        """Stream the reply, then persist the exchange and run the automation.

        Raises:
            GenerationError: If the model fails. Nothing is persisted.
        """
        if self.reply is not None:
            raise RuntimeError("Exchange has already been streamed")

        chunks: list[str] = []
        model = self._service.chat_model
        async for chunk in model.stream(self.system_prompt, self.model_messages):
            chunks.append(chunk)
            yield chunk

        self.reply = "".join(chunks)
        logger.info(
            f"Chat response completed for conversation {self.conversation_id}",
            extra={"automation": self.automation.id, "response_length": len(self.reply)},
        )
        self.outcome = await self._service.finalize(self)


class ChatService:
    """Opens chat exchanges against automations and serves transcripts."""

    def __init__(
        self,
        db: Database,
        runner: TaskRunner,
        chat_model: ChatModel | None = None,
        history_limit: int = CHAT_HISTORY_LIMIT,
    ) -> None:
        """Initialize the chat service.

        Args:
            db: Database holding automations and conversations.
            runner: Task runner used to execute automation handlers.
            chat_model: Model that streams replies.
            history_limit: Maximum number of turns sent to the model and
                returned in a transcript.
        """
        self._db = db
        self._runner = runner
        self._chat_model = chat_model
        self._history_limit = history_limit

    @property
    def chat_model(self) -> ChatModel:
        if self._chat_model is None:
            raise NotConfiguredError("No chat model configured")
        return self._chat_model

    # Automations

    def create_automation(
        self,
        name: str,
        handler: str,
        description: str = "",
        params: dict[str, Any] | None = None,
    ) -> Automation:
        """Create an automation that runs a registered handler.

        Raises:
            ValueError: If no handler is registered under ``handler``.
        """
        if not HandlerRegistry.has_handler(handler):
            raise ValueError(f"Unknown handler: {handler}")

        with self._db.session_scope() as session:
            automation = AutomationRepository(session).create(
                Automation(
                    id=str(uuid.uuid4()),
                    name=name,
                    description=description,
                    handler=handler,
                    params=params or {},
                )
            )
        logger.info(f"Created automation '{name}' ({automation.id})")
        return automation

    def list_automations(self) -> list[Automation]:
        with self._db.session_scope() as session:
            return AutomationRepository(session).get_all()

    def get_automation(self, automation_id: str) -> Automation:
        """Get an automation.

        Raises:
            NotFoundError: If the automation does not exist.
        """
        with self._db.session_scope() as session:
            automation = AutomationRepository(session).get_by_id(automation_id)
        if automation is None:
            raise NotFoundError(f"Automation not found: {automation_id}")
        return automation

    # Conversations

    def open_exchange(
        self,
        automation_id: str,
        messages: list[dict[str, Any]],
        conversation_id: str | None = None,
    ) -> ChatExchange:
        """Bind a new exchange to a conversation.

        Reuses the conversation when ``conversation_id`` belongs to the
        automation; otherwise creates exactly one new conversation.

        Args:
            automation_id: The automation being chatted with.
            messages: Client message history, newest last.
            conversation_id: Conversation to continue, if any.

        Returns:
            The exchange, ready to stream.

        Raises:
            NotFoundError: If the automation does not exist.
            ValueError: If there is no user message with text.
        """
        model_messages = to_model_messages(messages, self._history_limit)
        if not model_messages:
            raise ValueError("At least one user message with text is required")
        user_message = message_text(messages[-1], separator=" ")

        automation = self.get_automation(automation_id)

        with self._db.session_scope() as session:
            repo = ConversationRepository(session)
            conversation = repo.get(conversation_id, automation_id) if conversation_id else None
            created = conversation is None
            if conversation is None:
                conversation = repo.create(
                    Conversation(
                        id=str(uuid.uuid4()),
                        automation_id=automation_id,
                        title=None,
                        status="active",
                        message_count=0,
                    )
                )
                logger.info(
                    f"Created conversation {conversation.id} for automation {automation_id}"
                )
            conversation_id = conversation.id

        return ChatExchange(
            self,
            automation,
            conversation_id,
            created,
            user_message,
            model_messages,
        )

    async def finalize(self, exchange: ChatExchange) -> JobOutcome:
        """Persist a completed exchange and execute the automation.

        Stores exactly one user and one assistant turn, adds two to the
        message count and sets the title from the first user message if
        the conversation has none. The automation's handler then runs with
        the user message; its failures are logged, never raised.
        """
        with self._db.session_scope() as session:
            repo = ConversationRepository(session)
            conversation = repo.get(exchange.conversation_id, exchange.automation.id)
            if conversation is None:
                raise NotFoundError(f"Conversation not found: {exchange.conversation_id}")

            repo.add_message(conversation.id, "user", exchange.user_message)
            repo.add_message(conversation.id, "assistant", exchange.reply or "")
            conversation.message_count += 2
            if not conversation.title and exchange.user_message:
                conversation.title = exchange.user_message[:TITLE_MAX_LENGTH]

        automation = exchange.automation
        job = JobDefinition(
            name=automation.name,
            schedule=CHAT_SCHEDULE,
            handler=automation.handler,
            params=dict(automation.params or {}),
            description=automation.description,
        )
        outcome = await self._runner.run(
            job,
            trigger_type="chat",
            params={"user_message": exchange.user_message},
        )
        if outcome.ok:
            logger.info(
                f"Automation '{automation.name}' executed for conversation "
                f"{exchange.conversation_id}"
            )
        else:
            logger.error(
                f"Automation '{automation.name}' did not complete: {outcome.error}",
                extra={"automation": automation.id, "conversation": exchange.conversation_id},
            )
        return outcome

    def get_transcript(
        self,
        automation_id: str,
        conversation_id: str,
    ) -> tuple[Conversation, list[ChatMessage]]:
        """Get a conversation and its most recent messages.

        Returns:
            The conversation and up to ``history_limit`` messages in
            chronological order.

        Raises:
            NotFoundError: If the conversation does not belong to the automation.
        """
        with self._db.session_scope() as session:
            repo = ConversationRepository(session)
            conversation = repo.get(conversation_id, automation_id)
            if conversation is None:
                raise NotFoundError(f"Conversation not found: {conversation_id}")
            messages = repo.get_recent_messages(conversation_id, self._history_limit)
        return conversation, messages
