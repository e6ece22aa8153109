# relaybot/platforms/slack/context.py
from __future__ import annotations

from typing import Any

from relaybot.core.context import Context


class SlackContext(Context):
    platform = "slack"
    capabilities = frozenset({"send_text", "post_message", "post_ephemeral"})

    async def post_message(self, text: str, **options: Any) -> Any:
        channel = self.event.channel_id
        if not channel:
            return None
        return await self.client.post_message(channel, text, **options)

    async def send_text(self, text: str, **options: Any) -> Any:
        return await self.post_message(text, **options)

    async def post_ephemeral(self, text: str, **options: Any) -> Any:
        channel = self.event.channel_id
        user = self.event.user_id
        if not channel or not user:
            return None
        return await self.client.post_ephemeral(channel, user, text, **options)
