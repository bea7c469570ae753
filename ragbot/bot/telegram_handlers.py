"""Telegram update handling: commands, replies and long polling."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

from ragbot.chat.chat_orchestrator import (
    FALLBACK_ERROR_MESSAGE,
    RESET_CONFIRMATION,
    ChatOrchestrator,
)
from ragbot.clients.telegram_client import TelegramApiError

logger = logging.getLogger(__name__)

# Telegram caps messages at 4096 characters; keep a margin
MAX_MESSAGE_LENGTH = 3800

START_MESSAGE = (
    "Hi! I'm connected to Azure OpenAI with RAG. Send me a message and "
    "I'll try to answer using your indexed sources."
)


class MessagingTransport(Protocol):
    """Bot API calls the update handler depends on."""

    async def send_message(self, chat_id: int, text: str, parse_mode: Optional[str] = None) -> None:
        ...

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> None:
        ...


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Split text into consecutive parts of at most ``limit`` characters."""
    if not text:
        return [text]
    return [text[i:i + limit] for i in range(0, len(text), limit)]


class TelegramUpdateHandler:
    """Routes Telegram updates to the chat orchestrator and sends replies."""

    def __init__(self, transport: MessagingTransport, orchestrator: ChatOrchestrator):
        self._transport = transport
        self._orchestrator = orchestrator

    async def handle_update(self, update: Dict[str, Any]) -> None:
        """
        Handle one update from the webhook or the polling loop.

        Non-message updates, non-text messages and unknown commands are
        ignored. Errors reaching the model are reported to the user with a
        fixed apology.
        """
        message = update.get("message") or update.get("edited_message")
        if not message:
            return

        chat_id = (message.get("chat") or {}).get("id")
        text = (message.get("text") or "").strip()
        if chat_id is None or not text:
            return

        if text.startswith("/"):
            await self._handle_command(chat_id, text)
            return

        try:
            await self._transport.send_chat_action(chat_id, "typing")
        except TelegramApiError as e:
            logger.debug(f"Typing indicator failed for chat {chat_id}: {e}")

        try:
            reply = await self._orchestrator.respond(str(chat_id), text)
        except Exception:
            logger.exception(f"Failed to answer chat {chat_id}")
            await self._transport.send_message(chat_id, FALLBACK_ERROR_MESSAGE)
            return

        for part in split_message(reply.text):
            await self._send_markdown(chat_id, part)

    async def _handle_command(self, chat_id: int, text: str) -> None:
        # "/start@MyBot args" -> "/start"
        command = text.split()[0].split("@")[0].lower()
        if command == "/start":
            await self._transport.send_message(chat_id, START_MESSAGE)
        elif command == "/reset":
            await self._orchestrator.reset(str(chat_id))
            await self._transport.send_message(chat_id, RESET_CONFIRMATION)
        else:
            logger.debug(f"Ignoring unknown command {command} from chat {chat_id}")

    async def _send_markdown(self, chat_id: int, text: str) -> None:
        try:
            await self._transport.send_message(chat_id, text, parse_mode="Markdown")
        except TelegramApiError as e:
            logger.debug(f"Markdown rejected for chat {chat_id}, sending plain text: {e}")
            await self._transport.send_message(chat_id, text)


class TelegramPoller:
    """Long-polls ``getUpdates`` and feeds updates to the handler."""

    def __init__(self, client, handler: TelegramUpdateHandler, timeout: int = 30, error_backoff: float = 5):
        self._client = client
        self._handler = handler
        self._timeout = timeout
        self._error_backoff = error_backoff
        self._offset: Optional[int] = None

    async def run(self) -> None:
        """Poll until cancelled."""
        await self._client.delete_webhook()
        logger.info("Telegram bot is running (long polling)")
        while True:
            try:
                updates = await self._client.get_updates(offset=self._offset, timeout=self._timeout)
            except TelegramApiError as e:
                logger.warning(f"Telegram polling failed: {e}")
                await asyncio.sleep(self._error_backoff)
                continue

            for update in updates:
                self._offset = update["update_id"] + 1
                try:
                    await self._handler.handle_update(update)
                except Exception:
                    logger.exception(f"Failed to handle update {update.get('update_id')}")
