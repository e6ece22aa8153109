# relaybot/platforms/telegram/__init__.py
from relaybot.platforms.telegram.connector import TelegramConnector  # noqa: F401
from relaybot.platforms.telegram.context import TelegramContext  # noqa: F401
from relaybot.platforms.telegram.event import TelegramEvent  # noqa: F401
from relaybot.platforms.telegram.routes import telegram  # noqa: F401
