# relaybot/platforms/messenger/routes.py
from relaybot.core.router import RouteGroup, platform_route

PLATFORM = "messenger"


def _kind(flag, condition=None):
    return platform_route(PLATFORM, flag, condition)


messenger = RouteGroup(
    platform_route(PLATFORM),
    message=_kind("is_message"),
    account_linking=RouteGroup(
        _kind("is_account_linking"),
        linked=_kind("is_account_linking", lambda e: (e.account_linking or {}).get("status") == "linked"),
        unlinked=_kind("is_account_linking", lambda e: (e.account_linking or {}).get("status") == "unlinked"),
    ),
    checkout_update=_kind("is_checkout_update"),
    delivery=_kind("is_delivery"),
    echo=_kind("is_echo"),
    game_play=_kind("is_game_play"),
    pass_thread_control=_kind("is_pass_thread_control"),
    take_thread_control=_kind("is_take_thread_control"),
    request_thread_control=_kind("is_request_thread_control"),
    app_roles=_kind("is_app_roles"),
    optin=_kind("is_optin"),
    payment=_kind("is_payment"),
    policy_enforcement=_kind("is_policy_enforcement"),
    postback=_kind("is_postback"),
    pre_checkout=_kind("is_pre_checkout"),
    read=_kind("is_read"),
    referral=_kind("is_referral"),
    standby=_kind("is_standby"),
    reaction=RouteGroup(
        _kind("is_reaction"),
        react=_kind("is_reaction", lambda e: (e.reaction or {}).get("action") == "react"),
        unreact=_kind("is_reaction", lambda e: (e.reaction or {}).get("action") == "unreact"),
    ),
)
