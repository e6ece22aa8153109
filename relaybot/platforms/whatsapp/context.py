# relaybot/platforms/whatsapp/context.py
from __future__ import annotations

from typing import Any

from relaybot.core.context import Context


class WhatsappContext(Context):
    platform = "whatsapp"
    capabilities = frozenset({"send_text", "send_media"})

    async def send_text(self, text: str, **options: Any) -> Any:
        to = self.event.user_phone
        if not to:
            return None
        return await self.client.send_text(to, text)

    async def send_media(self, media_url: str, text: str | None = None) -> Any:
        to = self.event.user_phone
        if not to:
            return None
        return await self.client.send_media(to, media_url, text)
