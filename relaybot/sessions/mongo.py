# relaybot/sessions/mongo.py
from __future__ import annotations

from pymongo import ASCENDING, AsyncMongoClient

from relaybot.core.session import Session
from relaybot.sessions.base import SessionStore


class MongoSessionStore(SessionStore):
    """
    Session store backed by a MongoDB collection.

    Documents are stored as ``{"id": <session key>, "doc": <session>}`` with a
    unique index on ``id``; writes are upserts.
    """

    driver = "mongo"

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        collection_name: str = "sessions",
        timeout_ms: int = 5000,
        expires_in: int | None = None,
        client: AsyncMongoClient | None = None,
    ) -> None:
        super().__init__(expires_in)
        self._url = url
        self._collection_name = collection_name
        self._timeout_ms = timeout_ms
        self._client = client
        self._collection = None

    @property
    def sessions(self):
        self._require_initialized()
        return self._collection

    async def _connect(self) -> None:
        if self._client is None:
            self._client = AsyncMongoClient(self._url, serverSelectionTimeoutMS=self._timeout_ms)
        database = self._client.get_default_database("relaybot")
        self._collection = database[self._collection_name]
        await self._collection.create_index([("id", ASCENDING)], unique=True)

    async def _disconnect(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
            self._collection = None

    async def _get(self, key: str) -> Session | None:
        record = await self.sessions.find_one({"id": key})
        if record is None:
            return None
        return record.get("doc")

    async def _set(self, key: str, session: Session) -> None:
        await self.sessions.update_one({"id": key}, {"$set": {"id": key, "doc": session}}, upsert=True)

    async def _delete(self, key: str) -> None:
        await self.sessions.delete_one({"id": key})

    async def _all(self) -> list[Session]:
        records = await self.sessions.find({}).to_list(length=None)
        return [record["doc"] for record in records if record.get("doc") is not None]
