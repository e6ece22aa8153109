# relaybot/core/dedupe.py
"""
Duplicate delivery guard.

Platforms retry webhooks that time out, so the same delivery can arrive
more than once. ``InboundDedupe`` remembers delivery ids in an auxiliary
SessionStore (same TTL and eviction rules as sessions) and reports repeats.
Best-effort only: a store failure reads as "not seen".
"""
from __future__ import annotations

from relaybot.infra.logging_config import get_logger
from relaybot.sessions.base import SessionStore
from relaybot.sessions.memory import MemorySessionStore

logger = get_logger(__name__)


class InboundDedupe:
    """
    Remembers delivery ids so a platform retry is dispatched at most once.

    A delivery is marked as seen before it is processed. If the handler then
    fails and no error handler is registered, the platform's retry of that
    delivery is skipped as a duplicate and the event is lost.
    """

    def __init__(self, store: SessionStore | None = None, ttl_minutes: int = 60 * 24) -> None:
        self._store = store or MemorySessionStore(max_size=5000, expires_in=ttl_minutes)

    @property
    def store(self) -> SessionStore:
        return self._store

    async def init(self) -> None:
        await self._store.init()

    @staticmethod
    def key(platform: str, event_id: str) -> str:
        return f"dedupe:{platform}:{event_id}"

    async def seen_or_mark(self, platform: str, event_id: str | int | None) -> bool:
        """
        Returns True if this delivery was already processed.
        Otherwise records it and returns False.
        """
        if event_id is None or event_id == "":
            return False

        key = self.key(platform, str(event_id))
        if await self._store.read(key) is not None:
            logger.info(f"Duplicate delivery skipped: platform={platform}, id={event_id}")
            return True

        await self._store.write(key, {"platform": platform, "id": str(event_id)})
        return False
