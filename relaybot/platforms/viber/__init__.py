# relaybot/platforms/viber/__init__.py
from relaybot.platforms.viber.connector import ViberConnector  # noqa: F401
from relaybot.platforms.viber.context import ViberContext  # noqa: F401
from relaybot.platforms.viber.event import ViberEvent  # noqa: F401
from relaybot.platforms.viber.routes import viber  # noqa: F401
