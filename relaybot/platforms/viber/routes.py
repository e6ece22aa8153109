# relaybot/platforms/viber/routes.py
from relaybot.core.router import RouteGroup, platform_route

PLATFORM = "viber"

viber = RouteGroup(
    platform_route(PLATFORM),
    message=platform_route(PLATFORM, "is_message"),
    subscribed=platform_route(PLATFORM, "is_subscribed"),
    unsubscribed=platform_route(PLATFORM, "is_unsubscribed"),
    conversation_started=platform_route(PLATFORM, "is_conversation_started"),
    delivered=platform_route(PLATFORM, "is_delivered"),
    seen=platform_route(PLATFORM, "is_seen"),
    failed=platform_route(PLATFORM, "is_failed"),
)
