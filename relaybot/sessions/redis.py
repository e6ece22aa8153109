# relaybot/sessions/redis.py
from __future__ import annotations

import json

import redis.asyncio as aioredis

from relaybot.core.session import Session
from relaybot.sessions.base import SessionStore


class RedisSessionStore(SessionStore):
    """
    Session store backed by Redis.

    Each session is a JSON string under ``<key_prefix><session key>``. When
    ``expires_in`` is set the key also carries a native TTL, so Redis evicts
    idle sessions on its own; the lazy check in ``read`` still applies.
    """

    driver = "redis"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        db: int = 0,
        socket_timeout: float = 5.0,
        key_prefix: str = "session:",
        expires_in: int | None = None,
        client: aioredis.Redis | None = None,
    ) -> None:
        super().__init__(expires_in)
        self._host = host
        self._port = port
        self._password = password
        self._db = db
        self._socket_timeout = socket_timeout
        self._key_prefix = key_prefix
        self._client = client

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    @property
    def redis(self) -> aioredis.Redis:
        self._require_initialized()
        return self._client

    async def _connect(self) -> None:
        if self._client is None:
            self._client = aioredis.Redis(
                host=self._host,
                port=self._port,
                password=self._password,
                db=self._db,
                socket_timeout=self._socket_timeout,
                decode_responses=True,
            )
        await self._client.ping()

    async def _disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, key: str) -> Session | None:
        raw = await self.redis.get(self._full_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def _set(self, key: str, session: Session) -> None:
        ttl = self._expires_in * 60 if self._expires_in else None
        await self.redis.set(self._full_key(key), json.dumps(session), ex=ttl)

    async def _delete(self, key: str) -> None:
        await self.redis.delete(self._full_key(key))

    async def _all(self) -> list[Session]:
        documents = []
        async for full_key in self.redis.scan_iter(match=f"{self._key_prefix}*"):
            raw = await self.redis.get(full_key)
            if raw is not None:
                documents.append(json.loads(raw))
        return documents
