# relaybot/platforms/facebook/context.py
from __future__ import annotations

from typing import Any

from relaybot.core.context import Context


class FacebookContext(Context):
    """Context for feed events. Replies go to the comment that triggered the event."""

    platform = "facebook"
    capabilities = frozenset({"send_text", "send_comment", "send_private_reply", "send_like"})

    def _target_id(self) -> str | None:
        return self.event.comment_id or self.event.post_id

    async def send_comment(self, message: str) -> Any:
        target = self._target_id()
        if not target:
            return None
        return await self.client.send_comment(target, message)

    async def send_text(self, text: str, **options: Any) -> Any:
        return await self.send_comment(text)

    async def send_private_reply(self, text: str) -> Any:
        if not self.event.comment_id:
            return None
        return await self.client.send_private_reply(self.event.comment_id, text)

    async def send_like(self) -> Any:
        target = self._target_id()
        if not target:
            return None
        return await self.client.send_like(target)
