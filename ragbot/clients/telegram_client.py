"""Thin async client for the Telegram Bot API."""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramApiError(Exception):
    """Raised when the Bot API rejects a call or cannot be reached."""
    pass


class TelegramBotClient:
    """Calls Bot API methods over HTTPS and unwraps the ``{"ok", "result"}`` envelope."""

    def __init__(
        self,
        token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30,
    ):
        self._base_url = f"{TELEGRAM_API_BASE}/bot{token}/"
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def _call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._http.post(self._base_url + method, json=payload or {})
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TelegramApiError(f"Telegram {method} failed: {e}") from e

        if not data.get("ok"):
            raise TelegramApiError(f"Telegram {method} rejected: {data.get('description', 'unknown error')}")
        return data.get("result")

    async def send_message(self, chat_id: int, text: str, parse_mode: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        await self._call("sendMessage", payload)

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> None:
        await self._call("sendChatAction", {"chat_id": chat_id, "action": action})

    async def set_webhook(self, url: str) -> None:
        await self._call("setWebhook", {"url": url})
        logger.info(f"Telegram webhook set to {url}")

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook")

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"timeout": timeout}
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", payload) or []

    async def aclose(self) -> None:
        await self._http.aclose()
