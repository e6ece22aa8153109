# relaybot/clients/graph.py
"""Facebook Graph API client used by the Messenger and Facebook connectors."""
from __future__ import annotations

from typing import Any, Sequence

import aiohttp

from relaybot.clients.base import ApiClient

GRAPH_API_BASE = "https://graph.facebook.com"

DEFAULT_PROFILE_FIELDS = ("id", "name", "first_name", "last_name", "profile_pic")


class GraphClient(ApiClient):
    platform = "messenger"

    def __init__(
        self,
        access_token: str,
        *,
        app_secret: str | None = None,
        version: str = "v20.0",
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(session)
        self._access_token = access_token
        self._app_secret = app_secret
        self._version = version

    @property
    def access_token(self) -> str:
        return self._access_token

    def _url(self, path: str) -> str:
        return f"{GRAPH_API_BASE}/{self._version}/{path}"

    def _params(self, extra: dict[str, Any] | None = None) -> dict[str, str]:
        params = {"access_token": self._access_token}
        for key, value in (extra or {}).items():
            if value is not None:
                params[key] = ",".join(value) if isinstance(value, (list, tuple)) else str(value)
        return params

    async def send_message(self, recipient_id: str, message: dict[str, Any], **options: Any) -> dict:
        payload = {"recipient": {"id": recipient_id}, "message": message, **options}
        return await self._request("POST", self._url("me/messages"), params=self._params(), json=payload)

    async def send_text(self, recipient_id: str, text: str, **options: Any) -> dict:
        return await self.send_message(recipient_id, {"text": text}, **options)

    async def send_sender_action(self, recipient_id: str, action: str) -> dict:
        payload = {"recipient": {"id": recipient_id}, "sender_action": action}
        return await self._request("POST", self._url("me/messages"), params=self._params(), json=payload)

    async def get_user_profile(self, user_id: str, fields: Sequence[str] = DEFAULT_PROFILE_FIELDS) -> dict:
        return await self._request("GET", self._url(user_id), params=self._params({"fields": list(fields)}))

    async def get_comment(self, comment_id: str, fields: Sequence[str] = ("id", "parent")) -> dict:
        return await self._request("GET", self._url(comment_id), params=self._params({"fields": list(fields)}))

    async def send_comment(self, object_id: str, message: str) -> dict:
        return await self._request(
            "POST", self._url(f"{object_id}/comments"), params=self._params(), json={"message": message},
        )

    async def send_private_reply(self, comment_id: str, text: str) -> dict:
        payload = {"recipient": {"comment_id": comment_id}, "message": {"text": text}}
        return await self._request("POST", self._url("me/messages"), params=self._params(), json=payload)

    async def send_like(self, object_id: str) -> dict:
        return await self._request("POST", self._url(f"{object_id}/likes"), params=self._params())
