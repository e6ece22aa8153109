# relaybot/platforms/whatsapp/routes.py
from relaybot.core.router import RouteGroup, platform_route

PLATFORM = "whatsapp"

whatsapp = RouteGroup(
    platform_route(PLATFORM),
    message=platform_route(PLATFORM, "is_message"),
    media=platform_route(PLATFORM, "is_media"),
    received=platform_route(PLATFORM, "is_received"),
    sent=platform_route(PLATFORM, "is_sent"),
    delivered=platform_route(PLATFORM, "is_delivered"),
    read=platform_route(PLATFORM, "is_read"),
    failed=platform_route(PLATFORM, "is_failed"),
)
