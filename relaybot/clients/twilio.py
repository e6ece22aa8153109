# relaybot/clients/twilio.py
"""Twilio Messages API client for WhatsApp."""
from __future__ import annotations

from typing import Any

import aiohttp

from relaybot.clients.base import ApiClient

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioClient(ApiClient):
    platform = "whatsapp"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        phone_number: str,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(session)
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._phone_number = phone_number

    @property
    def auth_token(self) -> str:
        return self._auth_token

    @property
    def phone_number(self) -> str:
        return self._phone_number

    @staticmethod
    def whatsapp_address(number: str) -> str:
        return number if number.startswith("whatsapp:") else f"whatsapp:{number}"

    async def create_message(self, to: str, **fields: Any) -> dict:
        form = {"From": self.whatsapp_address(self._phone_number), "To": self.whatsapp_address(to)}
        form.update({k: str(v) for k, v in fields.items() if v is not None})
        return await self._request(
            "POST",
            f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json",
            data=form,
            auth=aiohttp.BasicAuth(self._account_sid, self._auth_token),
        )

    async def send_text(self, to: str, text: str) -> dict:
        return await self.create_message(to, Body=text)

    async def send_media(self, to: str, media_url: str, text: str | None = None) -> dict:
        return await self.create_message(to, Body=text, MediaUrl=media_url)
