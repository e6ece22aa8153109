# relaybot/platforms/telegram/routes.py
from relaybot.core.router import RouteGroup, platform_route

PLATFORM = "telegram"

telegram = RouteGroup(
    platform_route(PLATFORM),
    message=platform_route(PLATFORM, "is_message"),
    edited_message=platform_route(PLATFORM, "is_edited_message"),
    channel_post=platform_route(PLATFORM, "is_channel_post"),
    edited_channel_post=platform_route(PLATFORM, "is_edited_channel_post"),
    inline_query=platform_route(PLATFORM, "is_inline_query"),
    chosen_inline_result=platform_route(PLATFORM, "is_chosen_inline_result"),
    callback_query=platform_route(PLATFORM, "is_callback_query"),
    shipping_query=platform_route(PLATFORM, "is_shipping_query"),
    pre_checkout_query=platform_route(PLATFORM, "is_pre_checkout_query"),
    poll=platform_route(PLATFORM, "is_poll"),
    poll_answer=platform_route(PLATFORM, "is_poll_answer"),
    my_chat_member=platform_route(PLATFORM, "is_my_chat_member"),
    chat_member=platform_route(PLATFORM, "is_chat_member"),
    chat_join_request=platform_route(PLATFORM, "is_chat_join_request"),
)
