"""Telegram webhook endpoint."""

import logging

from fastapi import Request

logger = logging.getLogger(__name__)


async def telegram_webhook(request: Request) -> dict:
    """
    Dispatch one Telegram update.

    Always answers 200 so Telegram does not redeliver updates that failed
    on our side.
    """
    handler = request.app.state.container.telegram_handler
    if handler is None:
        logger.warning("Received a webhook update but the Telegram bot is disabled")
        return {"ok": False}

    try:
        update = await request.json()
    except ValueError:
        logger.warning("Ignoring webhook request with invalid JSON")
        return {"ok": False}

    try:
        await handler.handle_update(update)
    except Exception:
        logger.exception(f"Failed to handle Telegram update {update.get('update_id')}")
    return {"ok": True}
