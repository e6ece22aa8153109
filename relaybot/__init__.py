# relaybot/__init__.py
"""
Platform-agnostic dispatch core for webhook chat bots.

Canonical imports:
    from relaybot import Bot, router, route, text, payload
    from relaybot.sessions import MemorySessionStore, get_session_store
    from relaybot.platforms.messenger import MessengerConnector, messenger
"""
from relaybot.core.bot import Bot  # noqa: F401
from relaybot.core.context import Context  # noqa: F401
from relaybot.core.connector import Connector, PreprocessResult, RequestContext  # noqa: F401
from relaybot.core.event import Event  # noqa: F401
from relaybot.core.router import (  # noqa: F401
    Props,
    RouteNode,
    payload,
    platform,
    route,
    router,
    text,
)

__version__ = "0.4.0"
