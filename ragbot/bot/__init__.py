"""Telegram bot transport."""

from ragbot.bot.telegram_handlers import (
    MessagingTransport,
    TelegramPoller,
    TelegramUpdateHandler,
    split_message,
)

__all__ = [
    "MessagingTransport",
    "TelegramPoller",
    "TelegramUpdateHandler",
    "split_message",
]
