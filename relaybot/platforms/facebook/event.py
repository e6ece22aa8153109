# relaybot/platforms/facebook/event.py
from __future__ import annotations

from typing import Any, Mapping

from relaybot.core.event import Event, dig


class FacebookEvent(Event):
    """One item of an ``entry[].changes`` array (page feed webhooks)."""

    __slots__ = ("_page_id", "_entry_time")

    platform = "facebook"

    def __init__(
        self,
        raw_event: Mapping[str, Any],
        *,
        page_id: str | None = None,
        timestamp: int | None = None,
        received_at: int | None = None,
    ):
        super().__init__(raw_event, received_at=received_at)
        object.__setattr__(self, "_page_id", page_id)
        object.__setattr__(self, "_entry_time", timestamp)

    @property
    def page_id(self) -> str | None:
        return self._page_id

    @property
    def timestamp(self) -> int:
        return self._entry_time or self._received_at

    @property
    def value(self) -> Mapping[str, Any]:
        return self._raw_event.get("value") or {}

    @property
    def id(self) -> str | None:
        comment_id = self.value.get("comment_id")
        if not comment_id:
            return None
        return f"{comment_id}:{self.value.get('verb')}"

    @property
    def is_feed(self) -> bool:
        return self._raw_event.get("field") == "feed"

    @property
    def is_status(self) -> bool:
        return self.is_feed and self.value.get("item") == "status"

    @property
    def is_post(self) -> bool:
        return self.is_feed and self.value.get("item") == "post"

    @property
    def is_comment(self) -> bool:
        return self.is_feed and self.value.get("item") == "comment"

    @property
    def is_comment_add(self) -> bool:
        return self.is_comment and self.value.get("verb") == "add"

    @property
    def is_comment_edited(self) -> bool:
        return self.is_comment and self.value.get("verb") == "edited"

    @property
    def is_comment_remove(self) -> bool:
        return self.is_comment and self.value.get("verb") == "remove"

    @property
    def comment(self) -> Mapping[str, Any] | None:
        return self.value if self.is_comment else None

    @property
    def comment_id(self) -> str | None:
        return self.value.get("comment_id") if self.is_comment else None

    @property
    def parent_id(self) -> str | None:
        return self.value.get("parent_id") if self.is_comment else None

    @property
    def post_id(self) -> str | None:
        return self.value.get("post_id")

    @property
    def sender_id(self) -> str | None:
        return dig(self.value, "from", "id")

    @property
    def is_first_layer_comment(self) -> bool:
        """A comment directly on the post (its parent is the post itself)."""
        if not self.is_comment:
            return False
        parent_id = self.value.get("parent_id")
        return not parent_id or parent_id == self.value.get("post_id")

    @property
    def is_reaction(self) -> bool:
        return self.is_feed and self.value.get("item") == "reaction"

    @property
    def reaction_type(self) -> str | None:
        return self.value.get("reaction_type") if self.is_reaction else None

    @property
    def is_like(self) -> bool:
        return self.is_feed and self.value.get("item") == "like"

    @property
    def is_text(self) -> bool:
        return (self.is_comment or self.is_post or self.is_status) and isinstance(self.value.get("message"), str)

    @property
    def text(self) -> str | None:
        return self.value["message"] if self.is_text else None
