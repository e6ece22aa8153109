# relaybot/platforms/messenger/event.py
from __future__ import annotations

from typing import Any, Mapping

from relaybot.core.event import Event, dig


class MessengerEvent(Event):
    """One item of an ``entry[].messaging`` or ``entry[].standby`` array."""

    __slots__ = ("_page_id", "_is_standby")

    platform = "messenger"

    def __init__(
        self,
        raw_event: Mapping[str, Any],
        *,
        page_id: str | None = None,
        is_standby: bool = False,
        received_at: int | None = None,
    ):
        super().__init__(raw_event, received_at=received_at)
        object.__setattr__(self, "_page_id", page_id)
        object.__setattr__(self, "_is_standby", is_standby)

    @property
    def page_id(self) -> str | None:
        return self._page_id

    @property
    def is_standby(self) -> bool:
        return self._is_standby

    @property
    def timestamp(self) -> int:
        return self._raw_event.get("timestamp") or self._received_at

    @property
    def id(self) -> str | None:
        return dig(self._raw_event, "message", "mid")

    @property
    def sender_id(self) -> str | None:
        return dig(self._raw_event, "sender", "id")

    @property
    def recipient_id(self) -> str | None:
        return dig(self._raw_event, "recipient", "id")

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

    @property
    def is_echo(self) -> bool:
        return self.is_message and bool(self._raw_event["message"].get("is_echo"))

    @property
    def has_attachment(self) -> bool:
        return self.is_message and bool(self._raw_event["message"].get("attachments"))

    @property
    def attachments(self) -> list | None:
        return self._raw_event["message"].get("attachments") if self.has_attachment else None

    def _is_attachment_type(self, kind: str) -> bool:
        return self.has_attachment and self._raw_event["message"]["attachments"][0].get("type") == kind

    @property
    def is_image(self) -> bool:
        return self._is_attachment_type("image")

    @property
    def is_audio(self) -> bool:
        return self._is_attachment_type("audio")

    @property
    def is_video(self) -> bool:
        return self._is_attachment_type("video")

    @property
    def is_file(self) -> bool:
        return self._is_attachment_type("file")

    @property
    def is_location(self) -> bool:
        return self._is_attachment_type("location")

    @property
    def is_sticker(self) -> bool:
        return self.is_message and "sticker_id" in self._raw_event["message"]

    @property
    def is_quick_reply(self) -> bool:
        return self.is_message and isinstance(self._raw_event["message"].get("quick_reply"), Mapping)

    @property
    def quick_reply(self) -> Mapping[str, Any] | None:
        return self._raw_event["message"]["quick_reply"] if self.is_quick_reply else None

    # -- postback / payload ----------------------------------------------

    @property
    def is_postback(self) -> bool:
        return isinstance(self._raw_event.get("postback"), Mapping)

    @property
    def postback(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("postback") if self.is_postback else None

    @property
    def is_payload(self) -> bool:
        return bool(dig(self._raw_event, "postback", "payload") or dig(self._raw_event, "message", "quick_reply", "payload"))

    @property
    def payload(self) -> str | None:
        return dig(self._raw_event, "postback", "payload") or dig(self._raw_event, "message", "quick_reply", "payload")

    # -- other event kinds -----------------------------------------------

    @property
    def is_account_linking(self) -> bool:
        return isinstance(self._raw_event.get("account_linking"), Mapping)

    @property
    def account_linking(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("account_linking") if self.is_account_linking else None

    @property
    def is_delivery(self) -> bool:
        return isinstance(self._raw_event.get("delivery"), Mapping)

    @property
    def is_read(self) -> bool:
        return isinstance(self._raw_event.get("read"), Mapping)

    @property
    def is_optin(self) -> bool:
        return isinstance(self._raw_event.get("optin"), Mapping)

    @property
    def is_referral(self) -> bool:
        return isinstance(self._raw_event.get("referral"), Mapping) or isinstance(
            dig(self._raw_event, "postback", "referral"), Mapping
        )

    @property
    def ref(self) -> str | None:
        return dig(self._raw_event, "referral", "ref") or dig(self._raw_event, "postback", "referral", "ref")

    @property
    def is_game_play(self) -> bool:
        return isinstance(self._raw_event.get("game_play"), Mapping)

    @property
    def is_pass_thread_control(self) -> bool:
        return isinstance(self._raw_event.get("pass_thread_control"), Mapping)

    @property
    def is_take_thread_control(self) -> bool:
        return isinstance(self._raw_event.get("take_thread_control"), Mapping)

    @property
    def is_request_thread_control(self) -> bool:
        return isinstance(self._raw_event.get("request_thread_control"), Mapping)

    @property
    def is_app_roles(self) -> bool:
        return isinstance(self._raw_event.get("app_roles"), Mapping)

    @property
    def is_policy_enforcement(self) -> bool:
        return isinstance(self._raw_event.get("policy-enforcement"), Mapping)

    @property
    def is_checkout_update(self) -> bool:
        return isinstance(self._raw_event.get("checkout_update"), Mapping)

    @property
    def is_payment(self) -> bool:
        return isinstance(self._raw_event.get("payment"), Mapping)

    @property
    def is_pre_checkout(self) -> bool:
        return isinstance(self._raw_event.get("pre_checkout"), Mapping)

    @property
    def is_reaction(self) -> bool:
        return isinstance(self._raw_event.get("reaction"), Mapping)

    @property
    def reaction(self) -> Mapping[str, Any] | None:
        return self._raw_event.get("reaction") if self.is_reaction else None
