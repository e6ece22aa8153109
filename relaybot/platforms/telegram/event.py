# relaybot/platforms/telegram/event.py
from __future__ import annotations

from typing import Any, Mapping

from relaybot.core.event import Event, dig

# Update fields, exactly one of which is present on each update.
UPDATE_TYPES = (
    "message",
    "edited_message",
    "channel_post",
    "edited_channel_post",
    "inline_query",
    "chosen_inline_result",
    "callback_query",
    "shipping_query",
    "pre_checkout_query",
    "poll",
    "poll_answer",
    "my_chat_member",
    "chat_member",
    "chat_join_request",
)


class TelegramEvent(Event):
    """One Telegram ``Update`` object."""

    __slots__ = ()

    platform = "telegram"

    @property
    def id(self) -> int | None:
        return self._raw_event.get("update_id")

    @property
    def update_type(self) -> str | None:
        for name in UPDATE_TYPES:
            if name in self._raw_event:
                return name
        return None

    @property
    def timestamp(self) -> int:
        date = dig(self._raw_event, self.update_type or "message", "date")
        return date * 1000 if isinstance(date, int) else self._received_at

    # -- message ---------------------------------------------------------

    @property
    def is_message(self) -> bool:
        return isinstance(self._raw_event.get("message"), Mapping)

    @property
    def message(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("message") if self.is_message else None

    @property
    def is_text(self) -> bool:
        return self.is_message and isinstance(self._raw_event["message"].get("text"), str)

    @property
    def text(self) -> str | None:
        return self._raw_event["message"]["text"] if self.is_text else None

    def _has_message_field(self, name: str) -> bool:
        return self.is_message and bool(self._raw_event["message"].get(name))

    @property
    def is_audio(self) -> bool:
        return self._has_message_field("audio")

    @property
    def is_document(self) -> bool:
        return self._has_message_field("document")

    @property
    def is_photo(self) -> bool:
        return self._has_message_field("photo")

    @property
    def is_sticker(self) -> bool:
        return self._has_message_field("sticker")

    @property
    def is_video(self) -> bool:
        return self._has_message_field("video")

    @property
    def is_voice(self) -> bool:
        return self._has_message_field("voice")

    @property
    def is_contact(self) -> bool:
        return self._has_message_field("contact")

    @property
    def is_location(self) -> bool:
        return self._has_message_field("location")

    # -- other update types ------------------------------------------------

    @property
    def is_edited_message(self) -> bool:
        return isinstance(self._raw_event.get("edited_message"), Mapping)

    @property
    def is_channel_post(self) -> bool:
        return isinstance(self._raw_event.get("channel_post"), Mapping)

    @property
    def is_edited_channel_post(self) -> bool:
        return isinstance(self._raw_event.get("edited_channel_post"), Mapping)

    @property
    def is_inline_query(self) -> bool:
        return isinstance(self._raw_event.get("inline_query"), Mapping)

    @property
    def is_chosen_inline_result(self) -> bool:
        return isinstance(self._raw_event.get("chosen_inline_result"), Mapping)

    @property
    def is_callback_query(self) -> bool:
        return isinstance(self._raw_event.get("callback_query"), Mapping)

    @property
    def callback_query(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("callback_query") if self.is_callback_query else None

    @property
    def is_payload(self) -> bool:
        return self.is_callback_query and isinstance(self._raw_event["callback_query"].get("data"), str)

    @property
    def payload(self) -> str | None:
        return self._raw_event["callback_query"]["data"] if self.is_payload else None

    @property
    def is_shipping_query(self) -> bool:
        return isinstance(self._raw_event.get("shipping_query"), Mapping)

    @property
    def is_pre_checkout_query(self) -> bool:
        return isinstance(self._raw_event.get("pre_checkout_query"), Mapping)

    @property
    def is_poll(self) -> bool:
        return isinstance(self._raw_event.get("poll"), Mapping)

    @property
    def poll(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("poll") if self.is_poll else None

    @property
    def is_poll_answer(self) -> bool:
        return isinstance(self._raw_event.get("poll_answer"), Mapping)

    @property
    def poll_answer(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("poll_answer") if self.is_poll_answer else None

    @property
    def is_my_chat_member(self) -> bool:
        return isinstance(self._raw_event.get("my_chat_member"), Mapping)

    @property
    def is_chat_member(self) -> bool:
        return isinstance(self._raw_event.get("chat_member"), Mapping)

    @property
    def is_chat_join_request(self) -> bool:
        return isinstance(self._raw_event.get("chat_join_request"), Mapping)

    # -- identity ----------------------------------------------------------

    @property
    def chat_id(self) -> int | None:
        for name in ("message", "edited_message", "channel_post", "edited_channel_post",
                     "my_chat_member", "chat_member", "chat_join_request"):
            chat_id = dig(self._raw_event, name, "chat", "id")
            if chat_id is not None:
                return chat_id
        return dig(self._raw_event, "callback_query", "message", "chat", "id")

    @property
    def sender(self) -> Mapping[str, Any] | None:
        update_type = self.update_type
        if update_type is None or update_type == "poll":
            return None
        if update_type == "poll_answer":
            return dig(self._raw_event, "poll_answer", "user")
        return dig(self._raw_event, update_type, "from")
