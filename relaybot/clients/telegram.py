# relaybot/clients/telegram.py
"""Telegram Bot API client."""
from __future__ import annotations

from typing import Any

import aiohttp

from relaybot.clients.base import ApiClient
from relaybot.errors import PlatformApiError

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramClient(ApiClient):
    platform = "telegram"

    def __init__(self, access_token: str, *, session: aiohttp.ClientSession | None = None) -> None:
        super().__init__(session)
        self._access_token = access_token

    def _bot_url(self, method: str) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self._access_token}/{method}"

    async def call(self, method: str, **params: Any) -> Any:
        payload = {k: v for k, v in params.items() if v is not None}
        body = await self._request("POST", self._bot_url(method), json=payload)
        if not isinstance(body, dict) or not body.get("ok"):
            raise PlatformApiError(self.platform, 200, self._error_message(body))
        return body.get("result")

    async def send_message(self, chat_id: int | str, text: str, **options: Any) -> Any:
        return await self.call("sendMessage", chat_id=chat_id, text=text, **options)

    async def send_photo(self, chat_id: int | str, photo: str, **options: Any) -> Any:
        return await self.call("sendPhoto", chat_id=chat_id, photo=photo, **options)

    async def answer_callback_query(self, callback_query_id: str, **options: Any) -> Any:
        return await self.call("answerCallbackQuery", callback_query_id=callback_query_id, **options)

    async def answer_inline_query(self, inline_query_id: str, results: list, **options: Any) -> Any:
        return await self.call("answerInlineQuery", inline_query_id=inline_query_id, results=results, **options)
