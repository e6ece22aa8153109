# relaybot/platforms/whatsapp/__init__.py
from relaybot.platforms.whatsapp.connector import WhatsappConnector  # noqa: F401
from relaybot.platforms.whatsapp.context import WhatsappContext  # noqa: F401
from relaybot.platforms.whatsapp.event import WhatsappEvent  # noqa: F401
from relaybot.platforms.whatsapp.routes import whatsapp  # noqa: F401
