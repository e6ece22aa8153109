# relaybot/platforms/messenger/__init__.py
from relaybot.platforms.messenger.connector import MessengerConnector  # noqa: F401
from relaybot.platforms.messenger.context import MessengerContext  # noqa: F401
from relaybot.platforms.messenger.event import MessengerEvent  # noqa: F401
from relaybot.platforms.messenger.routes import messenger  # noqa: F401
