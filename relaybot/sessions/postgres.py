# relaybot/sessions/postgres.py
"""
Session store backed by a PostgreSQL table (asyncpg).

One row per session, document in a jsonb column::

    CREATE TABLE bot_sessions (
        id         TEXT PRIMARY KEY,
        doc        JSONB NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

The table is created on ``init`` if it does not exist.
"""
from __future__ import annotations

import json
import re

import asyncpg

from relaybot.core.session import Session
from relaybot.errors import ConfigurationError
from relaybot.infra.logging_config import get_logger
from relaybot.sessions.base import SessionStore

logger = get_logger(__name__)

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def is_transient_error(exc: Exception) -> bool:
    """
    Check if a database error is transient (connection loss, pool exhaustion,
    deadlock) rather than a bug in the query or data.
    """
    if isinstance(exc, (asyncpg.PostgresConnectionError, asyncpg.TooManyConnectionsError,
                        asyncpg.DeadlockDetectedError)):
        return True
    if isinstance(exc, (ConnectionError, OSError, TimeoutError)):
        return True

    error_message = str(exc).lower()
    transient_patterns = [
        "connection",
        "timeout",
        "closed",
        "network",
        "deadlock",
        "too many connections",
    ]
    return any(pattern in error_message for pattern in transient_patterns)


class PostgresSessionStore(SessionStore):
    driver = "postgres"

    def __init__(
        self,
        dsn: str,
        table: str = "bot_sessions",
        command_timeout: float = 10.0,
        expires_in: int | None = None,
        pool: asyncpg.Pool | None = None,
    ) -> None:
        super().__init__(expires_in)
        if not _TABLE_NAME_RE.match(table):
            raise ConfigurationError(f"Invalid session table name: {table!r}")
        self._dsn = dsn
        self._table = table
        self._command_timeout = command_timeout
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        self._require_initialized()
        return self._pool

    async def _connect(self) -> None:
        if self._pool is None:
            logger.info("Initializing asyncpg connection pool for sessions")
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                min_size=1,
                max_size=5,
                command_timeout=self._command_timeout,
                server_settings={"application_name": "relaybot"},
            )
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    id TEXT PRIMARY KEY,
                    doc JSONB NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
                """
            )

    async def _disconnect(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _get(self, key: str) -> Session | None:
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(f"SELECT doc::text AS doc FROM {self._table} WHERE id=$1", key)
        except Exception as exc:
            self._log_db_error("read", exc)
            raise
        if not row:
            return None
        return json.loads(row["doc"])

    async def _set(self, key: str, session: Session) -> None:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO {self._table}(id, doc)
                    VALUES ($1, $2::jsonb)
                    ON CONFLICT (id)
                    DO UPDATE SET doc = EXCLUDED.doc, updated_at = now()
                    """,
                    key, json.dumps(session),
                )
        except Exception as exc:
            self._log_db_error("write", exc)
            raise

    async def _delete(self, key: str) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(f"DELETE FROM {self._table} WHERE id=$1", key)

    async def _all(self) -> list[Session]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT doc::text AS doc FROM {self._table}")
        return [json.loads(row["doc"]) for row in rows]

    def _log_db_error(self, operation: str, exc: Exception) -> None:
        if is_transient_error(exc):
            logger.warning(f"Transient database error during session {operation}: {type(exc).__name__}")
