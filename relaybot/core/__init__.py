# relaybot/core/__init__.py
"""
Core dispatch -- platform-agnostic pipeline pieces.

Canonical imports:
    from relaybot.core.bot import Bot
    from relaybot.core.connector import Connector, RequestContext, PreprocessResult
    from relaybot.core.router import route, router, text, payload
"""
