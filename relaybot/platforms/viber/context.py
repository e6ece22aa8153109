# relaybot/platforms/viber/context.py
from __future__ import annotations

from typing import Any

from relaybot.core.context import Context


class ViberContext(Context):
    platform = "viber"
    capabilities = frozenset({"send_text", "send_message", "send_picture"})

    async def send_message(self, message: dict[str, Any]) -> Any:
        receiver = self.event.user_id
        if not receiver:
            return None
        return await self.client.send_message(receiver, message)

    async def send_text(self, text: str, **options: Any) -> Any:
        return await self.send_message({"type": "text", "text": text, **options})

    async def send_picture(self, media: str, text: str = "", **options: Any) -> Any:
        return await self.send_message({"type": "picture", "media": media, "text": text, **options})
