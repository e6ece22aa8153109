# relaybot/platforms/messenger/context.py
from __future__ import annotations

from typing import Any

from relaybot.core.context import Context


class MessengerContext(Context):
    platform = "messenger"
    capabilities = frozenset({
        "send_text",
        "send_message",
        "send_attachment",
        "send_image",
        "send_sender_action",
        "typing_on",
        "typing_off",
        "mark_seen",
    })

    def __init__(self, *, app_id: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._app_id = app_id

    @property
    def app_id(self) -> str | None:
        return self._app_id

    def _recipient(self) -> str | None:
        if self.event.is_echo:
            return self.event.recipient_id
        return self.event.sender_id

    async def send_message(self, message: dict[str, Any], **options: Any) -> Any:
        recipient = self._recipient()
        if not recipient:
            return None
        return await self.client.send_message(recipient, message, **options)

    async def send_text(self, text: str, **options: Any) -> Any:
        return await self.send_message({"text": text}, **options)

    async def send_attachment(self, attachment_type: str, url: str, **options: Any) -> Any:
        attachment = {"type": attachment_type, "payload": {"url": url, "is_reusable": True}}
        return await self.send_message({"attachment": attachment}, **options)

    async def send_image(self, url: str, **options: Any) -> Any:
        return await self.send_attachment("image", url, **options)

    async def send_sender_action(self, action: str) -> Any:
        recipient = self._recipient()
        if not recipient:
            return None
        return await self.client.send_sender_action(recipient, action)

    async def typing_on(self) -> Any:
        return await self.send_sender_action("typing_on")

    async def typing_off(self) -> Any:
        return await self.send_sender_action("typing_off")

    async def mark_seen(self) -> Any:
        return await self.send_sender_action("mark_seen")
