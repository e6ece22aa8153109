# relaybot/clients/__init__.py
"""
Thin outbound API clients (aiohttp).

Contexts and connectors call these; every failure surfaces as
``relaybot.errors.PlatformApiError``.
"""
