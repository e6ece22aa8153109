# relaybot/platforms/slack/routes.py
from relaybot.core.router import RouteGroup, platform_route
from relaybot.platforms.slack.event import EVENT_TYPES

PLATFORM = "slack"


def command(name: str):
    """Route builder for one slash command, e.g. ``slack.command("/todo")``."""
    return platform_route(PLATFORM, "is_command", lambda event: event.command == name)


slack = RouteGroup(
    platform_route(PLATFORM),
    message=platform_route(PLATFORM, "is_message"),
    channels_message=platform_route(PLATFORM, "is_channels_message"),
    groups_message=platform_route(PLATFORM, "is_groups_message"),
    im_message=platform_route(PLATFORM, "is_im_message"),
    mpim_message=platform_route(PLATFORM, "is_mpim_message"),
    interactive_message=platform_route(PLATFORM, "is_interactive_message"),
    block_action=platform_route(PLATFORM, "is_block_action"),
    view_submission=platform_route(PLATFORM, "is_view_submission"),
    view_closed=platform_route(PLATFORM, "is_view_closed"),
    any_command=platform_route(PLATFORM, "is_command"),
    command=command,
    **{
        event_type: platform_route(PLATFORM, f"is_{event_type}")
        for event_type in EVENT_TYPES
    },
)
