# relaybot/clients/viber.py
"""Viber REST bot API client."""
from __future__ import annotations

from typing import Any

import aiohttp

from relaybot.clients.base import ApiClient
from relaybot.errors import PlatformApiError

VIBER_API_BASE = "https://chatapi.viber.com/pa"


class ViberClient(ApiClient):
    platform = "viber"

    def __init__(
        self,
        access_token: str,
        sender: dict[str, str],
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(session)
        self._access_token = access_token
        self._sender = sender

    @property
    def access_token(self) -> str:
        return self._access_token

    async def call(self, method: str, payload: dict[str, Any]) -> dict:
        body = await self._request(
            "POST",
            f"{VIBER_API_BASE}/{method}",
            json=payload,
            headers={"X-Viber-Auth-Token": self._access_token},
        )
        # Viber signals failures with a non-zero "status" in a 200 response.
        if not isinstance(body, dict) or body.get("status") != 0:
            message = (body or {}).get("status_message", "Unknown error") if isinstance(body, dict) else "Unknown error"
            raise PlatformApiError(self.platform, 200, message)
        return body

    async def send_message(self, receiver: str, message: dict[str, Any]) -> dict:
        return await self.call("send_message", {"receiver": receiver, "sender": self._sender, **message})

    async def send_text(self, receiver: str, text: str, **options: Any) -> dict:
        return await self.send_message(receiver, {"type": "text", "text": text, **options})

    async def send_picture(self, receiver: str, media: str, text: str = "", **options: Any) -> dict:
        return await self.send_message(receiver, {"type": "picture", "media": media, "text": text, **options})
