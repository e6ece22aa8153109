# relaybot/sessions/memory.py
from __future__ import annotations

from collections import OrderedDict
from copy import deepcopy

from relaybot.core.session import Session
from relaybot.sessions.base import SessionStore


class MemorySessionStore(SessionStore):
    """
    Process-local LRU session store.

    Documents are deep-copied on the way in and out, so callers never share
    references with the store. Not shared between processes.
    """

    driver = "memory"

    def __init__(self, max_size: int = 500, expires_in: int | None = None) -> None:
        super().__init__(expires_in)
        self._max_size = max_size
        self._data: OrderedDict[str, Session] = OrderedDict()

    async def _connect(self) -> None:
        return None

    async def _get(self, key: str) -> Session | None:
        document = self._data.get(key)
        if document is None:
            return None
        self._data.move_to_end(key)
        return deepcopy(document)

    async def _set(self, key: str, session: Session) -> None:
        self._data[key] = deepcopy(session)
        self._data.move_to_end(key)
        while len(self._data) > self._max_size:
            self._data.popitem(last=False)

    async def _delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def _all(self) -> list[Session]:
        return [deepcopy(doc) for doc in self._data.values()]

    async def _disconnect(self) -> None:
        self._data.clear()
