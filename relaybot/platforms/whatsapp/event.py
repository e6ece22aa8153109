# relaybot/platforms/whatsapp/event.py
from __future__ import annotations

from typing import Any

from relaybot.core.event import Event

ADDRESS_PREFIX = "whatsapp:"


def strip_address(value: str | None) -> str | None:
    if value and value.startswith(ADDRESS_PREFIX):
        return value[len(ADDRESS_PREFIX):]
    return value


class WhatsappEvent(Event):
    """One Twilio WhatsApp webhook (form-encoded message or status callback)."""

    __slots__ = ()

    platform = "whatsapp"

    @property
    def id(self) -> str | None:
        sid = self._raw_event.get("MessageSid") or self._raw_event.get("SmsSid")
        if not sid:
            return None
        status = self._raw_event.get("MessageStatus") or self._raw_event.get("SmsStatus")
        return f"{sid}:{status}" if status else sid

    @property
    def status(self) -> str | None:
        return self._raw_event.get("SmsStatus") or self._raw_event.get("MessageStatus")

    @property
    def is_received(self) -> bool:
        return self.status == "received"

    @property
    def is_sent(self) -> bool:
        return self.status == "sent"

    @property
    def is_delivered(self) -> bool:
        return self.status == "delivered"

    @property
    def is_read(self) -> bool:
        return self.status == "read"

    @property
    def is_failed(self) -> bool:
        return self.status in ("failed", "undelivered")

    @property
    def num_media(self) -> int:
        try:
            return int(self._raw_event.get("NumMedia") or 0)
        except (TypeError, ValueError):
            return 0

    @property
    def is_message(self) -> bool:
        return self.is_received

    @property
    def is_text(self) -> bool:
        return self.is_received and self.num_media == 0

    @property
    def text(self) -> str | None:
        return self._raw_event.get("Body") if self.is_text else None

    @property
    def is_media(self) -> bool:
        return self.is_received and self.num_media > 0

    @property
    def media(self) -> list[dict[str, Any]] | None:
        if not self.is_media:
            return None
        return [
            {
                "url": self._raw_event.get(f"MediaUrl{i}"),
                "content_type": self._raw_event.get(f"MediaContentType{i}"),
            }
            for i in range(self.num_media)
        ]

    @property
    def is_payload(self) -> bool:
        return self.is_received and bool(self._raw_event.get("ButtonPayload"))

    @property
    def payload(self) -> str | None:
        return self._raw_event.get("ButtonPayload") if self.is_payload else None

    @property
    def user_phone(self) -> str | None:
        """The user's number: sender of inbound messages, recipient of status callbacks."""
        field = "From" if self.is_received else "To"
        return strip_address(self._raw_event.get(field))

    @property
    def profile_name(self) -> str | None:
        return self._raw_event.get("ProfileName")
