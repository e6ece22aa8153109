# relaybot/sessions/base.py
"""
SessionStore contract shared by every backend.

Backends implement only connection setup and the raw storage calls
(``_connect``, ``_get``, ``_set``, ``_delete``, ``_all``). Expiry and the
error policy live here so every backend behaves the same:

- ``read`` returns None for absent *or* expired documents (lazy expiry) and
  treats any backend error as a miss.
- ``write`` refreshes ``lastActivity``; errors are logged and swallowed,
  never retried.
- ``destroy`` tolerates absent keys.
- ``all`` returns only non-expired documents.
"""
from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod

from relaybot.core.session import Session
from relaybot.errors import SessionStoreNotInitializedError
from relaybot.infra.logging_config import get_logger, mask_identity
from relaybot.infra.metrics import AppMetrics

logger = get_logger(__name__)

MINUTE_MS = 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionStore(ABC):
    driver: str = "base"

    def __init__(self, expires_in: int | None = None) -> None:
        # Minutes of inactivity before a session reads as absent. 0/None = never.
        self._expires_in = expires_in or 0
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def expires_in(self) -> int:
        return self._expires_in

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> "SessionStore":
        """Acquire the backend connection once; concurrent callers share one attempt."""
        if self._initialized:
            return self
        async with self._init_lock:
            if not self._initialized:
                await self._connect()
                self._initialized = True
                logger.info(f"Session store initialized: driver={self.driver}, expires_in={self._expires_in}m")
        return self

    async def close(self) -> None:
        async with self._init_lock:
            if self._initialized:
                await self._disconnect()
                self._initialized = False

    async def read(self, key: str) -> Session | None:
        try:
            document = await self._get(key)
        except Exception:
            logger.error(f"Failed to read session: driver={self.driver}, key={mask_identity(key)}", exc_info=True)
            AppMetrics.store_error("read")
            return None

        if document is None or self._expired(document):
            return None
        return document

    async def write(self, key: str, session: Session) -> None:
        session["lastActivity"] = _now_ms()
        try:
            await self._set(key, session)
        except Exception:
            logger.error(f"Failed to write session: driver={self.driver}, key={mask_identity(key)}", exc_info=True)
            AppMetrics.store_error("write")

    async def destroy(self, key: str) -> None:
        try:
            await self._delete(key)
        except Exception:
            logger.error(f"Failed to destroy session: driver={self.driver}, key={mask_identity(key)}", exc_info=True)
            AppMetrics.store_error("destroy")

    async def all(self) -> list[Session]:
        try:
            documents = await self._all()
        except Exception:
            logger.error(f"Failed to list sessions: driver={self.driver}", exc_info=True)
            AppMetrics.store_error("all")
            return []
        return [doc for doc in documents if not self._expired(doc)]

    def _expired(self, session: Session) -> bool:
        if not self._expires_in:
            return False
        last_activity = session.get("lastActivity")
        if last_activity is None:
            return False
        return last_activity < _now_ms() - self._expires_in * MINUTE_MS

    @abstractmethod
    async def _connect(self) -> None: ...

    async def _disconnect(self) -> None:
        return None

    @abstractmethod
    async def _get(self, key: str) -> Session | None: ...

    @abstractmethod
    async def _set(self, key: str, session: Session) -> None: ...

    @abstractmethod
    async def _delete(self, key: str) -> None: ...

    @abstractmethod
    async def _all(self) -> list[Session]: ...

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise SessionStoreNotInitializedError(
                f"{type(self).__name__}: must call `init` before any operation."
            )
