# relaybot/platforms/viber/event.py
from __future__ import annotations

from typing import Any, Mapping

from relaybot.core.event import Event, dig


class ViberEvent(Event):
    """One Viber callback (the whole request body)."""

    __slots__ = ()

    platform = "viber"

    @property
    def event_type(self) -> str | None:
        return self._raw_event.get("event")

    @property
    def id(self) -> str | None:
        token = self._raw_event.get("message_token")
        return str(token) if token is not None else None

    @property
    def timestamp(self) -> int:
        return self._raw_event.get("timestamp") or self._received_at

    @property
    def is_subscribed(self) -> bool:
        return self.event_type == "subscribed"

    @property
    def is_unsubscribed(self) -> bool:
        return self.event_type == "unsubscribed"

    @property
    def is_conversation_started(self) -> bool:
        return self.event_type == "conversation_started"

    @property
    def is_delivered(self) -> bool:
        return self.event_type == "delivered"

    @property
    def is_seen(self) -> bool:
        return self.event_type == "seen"

    @property
    def is_failed(self) -> bool:
        return self.event_type == "failed"

    @property
    def is_message(self) -> bool:
        return self.event_type == "message" and isinstance(self._raw_event.get("message"), Mapping)

    @property
    def message(self) -> Mapping[str, Any] | None:
        return self._raw_event["message"] if self.is_message else None

    def _is_message_type(self, kind: str) -> bool:
        return self.is_message and self._raw_event["message"].get("type") == kind

    @property
    def is_text(self) -> bool:
        return self._is_message_type("text")

    @property
    def text(self) -> str | None:
        return self._raw_event["message"].get("text") if self.is_text else None

    @property
    def is_picture(self) -> bool:
        return self._is_message_type("picture")

    @property
    def is_video(self) -> bool:
        return self._is_message_type("video")

    @property
    def is_file(self) -> bool:
        return self._is_message_type("file")

    @property
    def is_sticker(self) -> bool:
        return self._is_message_type("sticker")

    @property
    def is_contact(self) -> bool:
        return self._is_message_type("contact")

    @property
    def is_url(self) -> bool:
        return self._is_message_type("url")

    @property
    def is_location(self) -> bool:
        return self._is_message_type("location")

    @property
    def tracking_data(self) -> str | None:
        return dig(self._raw_event, "message", "tracking_data")

    @property
    def user(self) -> Mapping[str, Any] | None:
        """Profile object for events that carry one (message, subscribed, conversation_started)."""
        for field in ("sender", "user"):
            value = self._raw_event.get(field)
            if isinstance(value, Mapping) and value.get("id"):
                return value
        return None

    @property
    def user_id(self) -> str | None:
        user = self.user
        if user:
            return user["id"]
        return self._raw_event.get("user_id")
