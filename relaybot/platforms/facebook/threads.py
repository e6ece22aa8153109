# relaybot/platforms/facebook/threads.py
"""
Comment thread identity resolution.

Feed webhooks for replies carry only the reply's immediate ``parent_id``.
All comments in one thread share the session of the thread's first-layer
comment (the root), so a reply's root is found by walking parent links:

1. Cached resolution for the comment itself or any ancestor ends the walk.
2. Otherwise the Graph API is asked for the ancestor's own parent, until a
   comment without a parent (the root) is found.
3. Every comment visited is cached with the root's id, so later replies in
   the same thread resolve from the cache without any API call.

The cache is a SessionStore, so entries expire with the store's TTL.
"""
from __future__ import annotations

from typing import Any

from relaybot.clients.graph import GraphClient
from relaybot.core.event import dig
from relaybot.errors import IdentityResolutionError, PlatformApiError
from relaybot.infra.logging_config import get_logger
from relaybot.sessions.base import SessionStore

logger = get_logger(__name__)

MAX_THREAD_DEPTH = 50


class CommentThreadResolver:
    def __init__(self, client: GraphClient, cache: SessionStore) -> None:
        self._client = client
        self._cache = cache

    @property
    def cache(self) -> SessionStore:
        return self._cache

    @staticmethod
    def cache_key(comment_id: str) -> str:
        return f"facebook:comment:{comment_id}"

    async def _cached(self, comment_id: str) -> dict[str, Any] | None:
        record = await self._cache.read(self.cache_key(comment_id))
        if record and record.get("session_id"):
            return record
        return None

    async def _remember(self, comment_id: str, session_id: str, level: int) -> None:
        await self._cache.write(
            self.cache_key(comment_id),
            {"comment_id": comment_id, "session_id": session_id, "level": level},
        )

    async def _fetch_parent(self, comment_id: str) -> str | None:
        try:
            data = await self._client.get_comment(comment_id, fields=["parent"])
        except PlatformApiError as exc:
            raise IdentityResolutionError(f"Failed to look up comment {comment_id}: {exc}") from exc
        parent_id = dig(data, "parent", "id")
        if not parent_id or parent_id == comment_id:
            return None
        return parent_id

    async def resolve(
        self,
        comment_id: str,
        parent_id: str | None = None,
        post_id: str | None = None,
    ) -> str:
        """Return the session id (root comment id) for ``comment_id``."""
        await self._cache.init()

        cached = await self._cached(comment_id)
        if cached:
            return cached["session_id"]

        if not parent_id or parent_id == post_id:
            await self._remember(comment_id, comment_id, 1)
            return comment_id

        # Leaf first; ``path`` ends with the topmost node visited.
        path = [comment_id]
        visited = {comment_id}
        current = parent_id

        while True:
            cached = await self._cached(current)
            if cached:
                session_id = cached["session_id"]
                top_level = cached.get("level", 1)
                break

            if current in visited:
                raise IdentityResolutionError(f"Comment thread cycle detected at {current}")
            if len(path) >= MAX_THREAD_DEPTH:
                raise IdentityResolutionError(f"Comment thread deeper than {MAX_THREAD_DEPTH}")

            visited.add(current)
            path.append(current)
            next_parent = await self._fetch_parent(current)
            if next_parent is None or next_parent == post_id:
                session_id = current
                top_level = 0
                break
            current = next_parent

        # Levels count from the root (1) downwards.
        for depth, node_id in enumerate(reversed(path), start=1):
            await self._remember(node_id, session_id, top_level + depth)

        logger.debug(f"Resolved comment thread: comment={comment_id}, root={session_id}, walked={len(path) - 1}")
        return session_id
