# relaybot/platforms/facebook/__init__.py
from relaybot.platforms.facebook.connector import FacebookConnector  # noqa: F401
from relaybot.platforms.facebook.context import FacebookContext  # noqa: F401
from relaybot.platforms.facebook.event import FacebookEvent  # noqa: F401
from relaybot.platforms.facebook.routes import facebook  # noqa: F401
from relaybot.platforms.facebook.threads import CommentThreadResolver  # noqa: F401
