# relaybot/transport/__init__.py
"""
HTTP mount for bots.

    from relaybot.transport.http_app import create_app
    app = create_app({"/webhooks/messenger": messenger_bot})
"""
