# relaybot/platforms/slack/event.py
from __future__ import annotations

from typing import Any, Mapping

from relaybot.core.event import Event

# https://api.slack.com/events -- each gets an ``is_<type>`` classifier.
EVENT_TYPES = (
    "app_uninstalled",
    "channel_archive",
    "channel_created",
    "channel_deleted",
    "channel_history_changed",
    "channel_rename",
    "channel_unarchive",
    "dnd_updated",
    "dnd_updated_user",
    "email_domain_changed",
    "emoji_changed",
    "file_change",
    "file_comment_added",
    "file_comment_deleted",
    "file_comment_edited",
    "file_created",
    "file_deleted",
    "file_public",
    "file_shared",
    "file_unshared",
    "grid_migration_finished",
    "grid_migration_started",
    "group_archive",
    "group_close",
    "group_history_changed",
    "group_open",
    "group_rename",
    "group_unarchive",
    "im_close",
    "im_created",
    "im_history_changed",
    "im_open",
    "link_shared",
    "member_joined_channel",
    "member_left_channel",
    "pin_added",
    "pin_removed",
    "reaction_added",
    "reaction_removed",
    "star_added",
    "star_removed",
    "subteam_created",
    "subteam_members_changed",
    "subteam_self_added",
    "subteam_self_removed",
    "subteam_updated",
    "team_domain_change",
    "team_join",
    "team_rename",
    "tokens_revoked",
    "url_verification",
    "user_change",
    "app_mention",
)


def _ms(ts: Any) -> int | None:
    try:
        return round(float(ts) * 1000)
    except (TypeError, ValueError):
        return None


class SlackEvent(Event):
    """
    One Slack event: an Events API ``event`` object, an interactive
    ``payload`` or a slash command form.
    """

    __slots__ = ("_event_id",)

    platform = "slack"

    def __init__(self, raw_event: Mapping[str, Any], *, event_id: str | None = None, received_at: int | None = None):
        super().__init__(raw_event, received_at=received_at)
        object.__setattr__(self, "_event_id", event_id)

    @property
    def id(self) -> str | None:
        return self._event_id

    @property
    def type(self) -> str | None:
        return self._raw_event.get("type")

    @property
    def timestamp(self) -> int:
        return _ms(self._raw_event.get("event_ts")) or _ms(self._raw_event.get("ts")) or self._received_at

    # -- messages ----------------------------------------------------------

    @property
    def is_message(self) -> bool:
        return self.type == "message"

    @property
    def message(self) -> Mapping[str, Any] | None:
        return self._raw_event if self.is_message else None

    def _channel_prefix(self, prefix: str) -> bool:
        channel = self._raw_event.get("channel")
        return self.is_message and isinstance(channel, str) and channel.startswith(prefix)

    @property
    def is_channels_message(self) -> bool:
        return self._channel_prefix("C")

    @property
    def is_groups_message(self) -> bool:
        return self._channel_prefix("G")

    @property
    def is_im_message(self) -> bool:
        return self._channel_prefix("D")

    @property
    def is_mpim_message(self) -> bool:
        return self._channel_prefix("G")

    @property
    def is_bot_message(self) -> bool:
        return self._raw_event.get("subtype") == "bot_message"

    @property
    def is_text(self) -> bool:
        return self.is_message and isinstance(self._raw_event.get("text"), str)

    @property
    def text(self) -> str | None:
        if self.is_text or self.is_command:
            return self._raw_event.get("text")
        return None

    # -- interactivity -------------------------------------------------------

    @property
    def is_interactive_message(self) -> bool:
        return self.type == "interactive_message"

    @property
    def is_block_action(self) -> bool:
        return self.type == "block_actions"

    @property
    def is_view_submission(self) -> bool:
        return self.type == "view_submission"

    @property
    def is_view_closed(self) -> bool:
        return self.type == "view_closed"

    @property
    def is_block_action_or_interactive_message(self) -> bool:
        return self.is_block_action or self.is_interactive_message

    @property
    def callback_id(self) -> str | None:
        if self.is_block_action_or_interactive_message:
            return self._raw_event.get("callback_id")
        return None

    @property
    def action(self) -> Mapping[str, Any] | None:
        if not self.is_block_action_or_interactive_message:
            return None
        actions = self._raw_event.get("actions")
        if not isinstance(actions, list) or not actions:
            return None
        return actions[0]

    @property
    def is_payload(self) -> bool:
        action = self.action
        return bool(action and isinstance(action.get("value"), str))

    @property
    def payload(self) -> str | None:
        return self.action["value"] if self.is_payload else None

    # -- slash commands ------------------------------------------------------

    @property
    def is_command(self) -> bool:
        return bool(self._raw_event.get("command"))

    @property
    def command(self) -> str | None:
        return self._raw_event.get("command") or None

    # -- identity ------------------------------------------------------------

    @property
    def channel_id(self) -> str | None:
        channel = self._raw_event.get("channel")
        if isinstance(channel, Mapping):
            return channel.get("id")
        if isinstance(channel, str):
            return channel
        return self._raw_event.get("channel_id")

    @property
    def user_id(self) -> str | None:
        user = self._raw_event.get("user")
        if isinstance(user, Mapping):
            return user.get("id")
        if isinstance(user, str):
            return user
        return self._raw_event.get("user_id")


def _type_classifier(event_type: str) -> property:
    def classifier(self: SlackEvent) -> bool:
        return self.type == event_type

    classifier.__name__ = f"is_{event_type}"
    return property(classifier)


for _event_type in EVENT_TYPES:
    setattr(SlackEvent, f"is_{_event_type}", _type_classifier(_event_type))
