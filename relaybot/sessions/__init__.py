# relaybot/sessions/__init__.py
from __future__ import annotations

from relaybot.errors import ConfigurationError
from relaybot.sessions.base import SessionStore
from relaybot.sessions.file import FileSessionStore
from relaybot.sessions.memory import MemorySessionStore

__all__ = [
    "SessionStore",
    "MemorySessionStore",
    "FileSessionStore",
    "get_session_store",
]


def get_session_store(config) -> SessionStore:
    """
    Build a session store from a ``StoreConfig`` (see ``relaybot.config``).

    Remote backends are imported lazily so their client libraries are only
    loaded when selected.
    """
    driver = config.driver

    if driver == "memory":
        return MemorySessionStore(max_size=config.max_size, expires_in=config.expires_in)

    if driver == "file":
        return FileSessionStore(dirname=config.dirname, expires_in=config.expires_in)

    if driver == "redis":
        from relaybot.sessions.redis import RedisSessionStore

        return RedisSessionStore(
            host=config.host,
            port=config.port,
            password=config.password,
            db=config.db,
            socket_timeout=config.socket_timeout,
            key_prefix=config.key_prefix,
            expires_in=config.expires_in,
        )

    if driver == "mongo":
        from relaybot.sessions.mongo import MongoSessionStore

        return MongoSessionStore(
            url=config.url,
            collection_name=config.collection_name,
            timeout_ms=config.timeout_ms,
            expires_in=config.expires_in,
        )

    if driver == "postgres":
        from relaybot.sessions.postgres import PostgresSessionStore

        return PostgresSessionStore(
            dsn=config.dsn,
            table=config.table,
            command_timeout=config.command_timeout,
            expires_in=config.expires_in,
        )

    raise ConfigurationError(f"Unknown session driver: {driver!r}")
