# relaybot/platforms/facebook/routes.py
from relaybot.core.router import RouteGroup, platform_route

PLATFORM = "facebook"

facebook = RouteGroup(
    platform_route(PLATFORM),
    feed=platform_route(PLATFORM, "is_feed"),
    status=platform_route(PLATFORM, "is_status"),
    post=platform_route(PLATFORM, "is_post"),
    comment=RouteGroup(
        platform_route(PLATFORM, "is_comment"),
        add=platform_route(PLATFORM, "is_comment_add"),
        edited=platform_route(PLATFORM, "is_comment_edited"),
        remove=platform_route(PLATFORM, "is_comment_remove"),
    ),
    reaction=platform_route(PLATFORM, "is_reaction"),
    like=platform_route(PLATFORM, "is_like"),
)
