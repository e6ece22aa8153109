# relaybot/platforms/__init__.py
"""
Platform connectors.

Each subpackage provides ``<Platform>Event``, ``<Platform>Connector``,
``<Platform>Context`` and a ``<platform>`` route namespace.
"""
