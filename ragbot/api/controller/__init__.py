"""API controllers."""

from ragbot.api.controller.chat_controller import router as chat_router
from ragbot.api.controller.document_controller import router as document_router
from ragbot.api.controller.health_controller import router as health_router
from ragbot.api.controller.webhook_controller import telegram_webhook

__all__ = ["chat_router", "document_router", "health_router", "telegram_webhook"]
