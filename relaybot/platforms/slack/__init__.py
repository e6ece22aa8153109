# relaybot/platforms/slack/__init__.py
from relaybot.platforms.slack.connector import SlackConnector  # noqa: F401
from relaybot.platforms.slack.context import SlackContext  # noqa: F401
from relaybot.platforms.slack.event import SlackEvent  # noqa: F401
from relaybot.platforms.slack.routes import slack  # noqa: F401
