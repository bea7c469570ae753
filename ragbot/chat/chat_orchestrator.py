"""Chat orchestration: retrieval, prompt assembly, completion and history."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from ragbot.chat.context_builder import ConversationContextBuilder, parse_cited_sources
from ragbot.clients.completion_client import CompletionClient
from ragbot.models import ChatReply
from ragbot.retrieval.fusion import RetrievalFusionEngine
from ragbot.services.conversation_history import ConversationHistory

logger = logging.getLogger(__name__)

EMPTY_REPLY_PLACEHOLDER = "…"
FALLBACK_ERROR_MESSAGE = "Sorry, I hit an error reaching the AI. Please try again."
RESET_CONFIRMATION = "Conversation memory cleared."


class InvalidMessageError(Exception):
    """Raised when a chat message is empty or whitespace only."""
    pass


class ChatOrchestrator:
    """Single entry point for answering a user message.

    Requests for the same conversation are serialized so history is appended
    in arrival order; different conversations run concurrently.
    """

    def __init__(
        self,
        retrieval: RetrievalFusionEngine,
        context_builder: ConversationContextBuilder,
        completion_client: CompletionClient,
        history: ConversationHistory,
        top_k: int = 4,
        temperature: float = 0.2,
    ):
        self._retrieval = retrieval
        self._context_builder = context_builder
        self._completion_client = completion_client
        self._history = history
        self._top_k = top_k
        self._temperature = temperature
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _serialized(self, conversation_id: str) -> AsyncIterator[None]:
        """Hold the conversation lock; drop it once no request holds or awaits it."""
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    async def respond(self, conversation_id: str, user_text: str) -> ChatReply:
        """
        Answer a user message using retrieved sources and recent history.

        Args:
            conversation_id: Telegram chat id or dashboard session id.
            user_text: The user's message.

        Returns:
            ChatReply with the reply text, offered passages and cited passages.

        Raises:
            InvalidMessageError: If the message is empty.
            CompletionError: If the model cannot be reached after retries.
                History is left unchanged in that case.
        """
        if not user_text or not user_text.strip():
            raise InvalidMessageError("Message is required")

        async with self._serialized(conversation_id):
            passages = await self._retrieval.retrieve(user_text, self._top_k)
            messages = self._context_builder.build_prompt(conversation_id, user_text, passages)

            content = await self._completion_client.complete(messages, self._temperature)
            reply_text = content.strip() if content and content.strip() else EMPTY_REPLY_PLACEHOLDER

            self._history.append_exchange(conversation_id, user_text, reply_text)

        logger.info(
            f"Answered conversation {conversation_id} with {len(passages)} sources "
            f"({len(reply_text)} chars)"
        )
        return ChatReply(
            text=reply_text,
            passages=passages,
            cited=parse_cited_sources(reply_text, passages),
        )

    async def reset(self, conversation_id: str) -> None:
        """Clear history after any in-flight request for the conversation completes."""
        async with self._serialized(conversation_id):
            self._history.reset(conversation_id)
        logger.info(f"Conversation {conversation_id} reset")
