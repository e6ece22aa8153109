# relaybot/clients/slack.py
"""Slack Web API client."""
from __future__ import annotations

from typing import Any

import aiohttp

from relaybot.clients.base import ApiClient
from relaybot.errors import PlatformApiError

SLACK_API_BASE = "https://slack.com/api"


class SlackClient(ApiClient):
    platform = "slack"

    def __init__(self, access_token: str, *, session: aiohttp.ClientSession | None = None) -> None:
        super().__init__(session)
        self._access_token = access_token

    async def call(self, method: str, **params: Any) -> dict:
        # Slack reports failures as 200 {"ok": false, "error": "..."}
        body = await self._request(
            "POST",
            f"{SLACK_API_BASE}/{method}",
            json={k: v for k, v in params.items() if v is not None},
            headers={"Authorization": f"Bearer {self._access_token}"},
        )
        if not isinstance(body, dict) or not body.get("ok"):
            raise PlatformApiError(self.platform, 200, self._error_message(body))
        return body

    async def post_message(self, channel: str, text: str, **options: Any) -> dict:
        return await self.call("chat.postMessage", channel=channel, text=text, **options)

    async def post_ephemeral(self, channel: str, user: str, text: str, **options: Any) -> dict:
        return await self.call("chat.postEphemeral", channel=channel, user=user, text=text, **options)

    async def get_user_info(self, user_id: str) -> dict | None:
        body = await self.call("users.info", user=user_id)
        return body.get("user")
