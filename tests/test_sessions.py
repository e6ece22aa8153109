# tests/test_sessions.py
"""Tests for relaybot.sessions: the store contract and each backend."""
from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from relaybot.errors import SessionStoreNotInitializedError
from relaybot.sessions import FileSessionStore, MemorySessionStore, get_session_store

T0 = 1_700_000_000_000
MINUTE = 60 * 1000


# ============================================================================
# Contract (memory backend)
# ============================================================================

class TestStoreContract:
    @pytest.mark.asyncio
    async def test_round_trip_refreshes_last_activity(self):
        store = MemorySessionStore()
        await store.init()
        session = {"user": {"id": "u1"}, "lastActivity": 1}

        with patch("relaybot.sessions.base._now_ms", return_value=T0):
            await store.write("fake:u1", session)

        stored = await store.read("fake:u1")
        assert stored == {"user": {"id": "u1"}, "lastActivity": T0}

    @pytest.mark.asyncio
    async def test_read_absent_returns_none(self):
        store = MemorySessionStore()
        await store.init()
        assert await store.read("fake:missing") is None

    @pytest.mark.asyncio
    async def test_expired_session_reads_as_absent(self):
        store = MemorySessionStore(expires_in=1)
        await store.init()

        with patch("relaybot.sessions.base._now_ms", return_value=T0):
            await store.write("fake:u1", {"user": {"id": "u1"}})
        with patch("relaybot.sessions.base._now_ms", return_value=T0 + 2 * MINUTE):
            assert await store.read("fake:u1") is None

    @pytest.mark.asyncio
    async def test_session_within_ttl_is_returned(self):
        store = MemorySessionStore(expires_in=5)
        await store.init()

        with patch("relaybot.sessions.base._now_ms", return_value=T0):
            await store.write("fake:u1", {"user": {"id": "u1"}})
        with patch("relaybot.sessions.base._now_ms", return_value=T0 + 2 * MINUTE):
            assert await store.read("fake:u1") is not None

    @pytest.mark.asyncio
    async def test_zero_expiry_never_expires(self):
        store = MemorySessionStore(expires_in=0)
        await store.init()

        with patch("relaybot.sessions.base._now_ms", return_value=T0):
            await store.write("fake:u1", {})
        with patch("relaybot.sessions.base._now_ms", return_value=T0 + 365 * 24 * 60 * MINUTE):
            assert await store.read("fake:u1") is not None

    @pytest.mark.asyncio
    async def test_destroy_tolerates_absent_key(self):
        store = MemorySessionStore()
        await store.init()
        await store.write("fake:u1", {})

        await store.destroy("fake:u1")
        await store.destroy("fake:u1")

        assert await store.read("fake:u1") is None

    @pytest.mark.asyncio
    async def test_all_skips_expired(self):
        store = MemorySessionStore(expires_in=1)
        await store.init()

        with patch("relaybot.sessions.base._now_ms", return_value=T0):
            await store.write("fake:old", {"name": "old"})
        with patch("relaybot.sessions.base._now_ms", return_value=T0 + 2 * MINUTE):
            await store.write("fake:new", {"name": "new"})
            documents = await store.all()

        assert [doc["name"] for doc in documents] == ["new"]

    @pytest.mark.asyncio
    async def test_read_error_is_a_miss(self):
        store = MemorySessionStore()
        await store.init()

        with patch.object(store, "_get", AsyncMock(side_effect=ConnectionError("down"))):
            assert await store.read("fake:u1") is None

    @pytest.mark.asyncio
    async def test_write_error_is_swallowed(self):
        store = MemorySessionStore()
        await store.init()

        with patch.object(store, "_set", AsyncMock(side_effect=ConnectionError("down"))):
            await store.write("fake:u1", {})

        from relaybot.infra.metrics import get_metrics_collector
        counters = get_metrics_collector().get_metrics()["counters"]
        assert counters["session_store_errors_total{operation=write}"] == 1

    @pytest.mark.asyncio
    async def test_all_error_returns_empty(self):
        store = MemorySessionStore()
        await store.init()

        with patch.object(store, "_all", AsyncMock(side_effect=OSError("disk"))):
            assert await store.all() == []

    @pytest.mark.asyncio
    async def test_init_is_single_flight(self):
        store = MemorySessionStore()
        calls = 0

        async def slow_connect():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)

        with patch.object(store, "_connect", side_effect=slow_connect):
            await asyncio.gather(store.init(), store.init(), store.init())

        assert calls == 1
        assert store.initialized is True


class TestMemorySessionStore:
    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self):
        store = MemorySessionStore()
        await store.init()
        await store.write("fake:u1", {"state": {"count": 1}})

        first = await store.read("fake:u1")
        first["state"]["count"] = 99

        assert (await store.read("fake:u1"))["state"]["count"] == 1

    @pytest.mark.asyncio
    async def test_lru_eviction(self):
        store = MemorySessionStore(max_size=2)
        await store.init()

        await store.write("fake:a", {})
        await store.write("fake:b", {})
        await store.read("fake:a")
        await store.write("fake:c", {})

        assert await store.read("fake:b") is None
        assert await store.read("fake:a") is not None
        assert await store.read("fake:c") is not None


# ============================================================================
# File backend
# ============================================================================

class TestFileSessionStore:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        store = FileSessionStore(dirname=tmp_path / "sessions")
        await store.init()

        await store.write("messenger:12345", {"user": {"id": "12345"}})
        stored = await store.read("messenger:12345")

        assert stored["user"] == {"id": "12345"}
        assert (tmp_path / "sessions" / "messenger%3A12345.json").exists()

    @pytest.mark.asyncio
    async def test_destroy_and_all(self, tmp_path):
        store = FileSessionStore(dirname=tmp_path)
        await store.init()
        await store.write("viber:a", {"id": "a"})
        await store.write("viber:b", {"id": "b"})

        await store.destroy("viber:a")
        await store.destroy("viber:missing")

        assert [doc["id"] for doc in await store.all()] == ["b"]

    @pytest.mark.asyncio
    async def test_corrupt_file_skipped_in_all(self, tmp_path):
        store = FileSessionStore(dirname=tmp_path)
        await store.init()
        await store.write("viber:a", {"id": "a"})
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        assert [doc["id"] for doc in await store.all()] == ["a"]

    @pytest.mark.asyncio
    async def test_use_before_init_reads_as_miss(self, tmp_path):
        store = FileSessionStore(dirname=tmp_path)
        assert await store.read("viber:a") is None

    @pytest.mark.asyncio
    async def test_backend_guard_raises_until_init(self, tmp_path):
        store = FileSessionStore(dirname=tmp_path)
        with pytest.raises(SessionStoreNotInitializedError):
            store._require_initialized()

        await store.init()

        assert store._require_initialized() is None


# ============================================================================
# Redis backend (mocked client)
# ============================================================================

class FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttl = {}
        self.closed = False

    async def ping(self):
        return True

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttl[key] = ex

    async def delete(self, key):
        self.data.pop(key, None)

    async def scan_iter(self, match=None):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def aclose(self):
        self.closed = True


class TestRedisSessionStore:
    @pytest.mark.asyncio
    async def test_round_trip_with_native_ttl(self):
        from relaybot.sessions.redis import RedisSessionStore

        client = FakeRedis()
        store = RedisSessionStore(client=client, expires_in=30)
        await store.init()

        await store.write("telegram:42", {"user": {"id": 42}})

        assert json.loads(client.data["session:telegram:42"])["user"] == {"id": 42}
        assert client.ttl["session:telegram:42"] == 30 * 60
        assert (await store.read("telegram:42"))["user"] == {"id": 42}

    @pytest.mark.asyncio
    async def test_all_and_destroy(self):
        from relaybot.sessions.redis import RedisSessionStore

        client = FakeRedis()
        client.data["other:key"] = "{}"
        store = RedisSessionStore(client=client)
        await store.init()
        await store.write("telegram:1", {"n": 1})
        await store.write("telegram:2", {"n": 2})

        await store.destroy("telegram:1")

        assert [doc["n"] for doc in await store.all()] == [2]

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        from relaybot.sessions.redis import RedisSessionStore

        client = FakeRedis()
        store = RedisSessionStore(client=client)
        await store.init()
        await store.close()

        assert client.closed is True
        assert store.initialized is False

    @pytest.mark.asyncio
    async def test_unreachable_server_reads_as_miss(self):
        from relaybot.sessions.redis import RedisSessionStore

        client = FakeRedis()
        client.get = AsyncMock(side_effect=ConnectionError("refused"))
        store = RedisSessionStore(client=client)
        await store.init()

        assert await store.read("telegram:1") is None


# ============================================================================
# Mongo backend (mocked collection)
# ============================================================================

class FakeCursor:
    def __init__(self, records):
        self._records = records

    async def to_list(self, length=None):
        return list(self._records)


class FakeCollection:
    def __init__(self):
        self.records = {}
        self.indexes = []

    async def create_index(self, keys, unique=False):
        self.indexes.append((keys, unique))

    async def find_one(self, query):
        return self.records.get(query["id"])

    async def update_one(self, query, update, upsert=False):
        self.records[query["id"]] = dict(update["$set"])

    async def delete_one(self, query):
        self.records.pop(query["id"], None)

    def find(self, query):
        return FakeCursor(self.records.values())


class TestMongoSessionStore:
    def _client(self, collection):
        client = MagicMock()
        client.get_default_database.return_value = {"sessions": collection}
        client.close = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_round_trip(self):
        from relaybot.sessions.mongo import MongoSessionStore

        collection = FakeCollection()
        store = MongoSessionStore(client=self._client(collection))
        await store.init()

        await store.write("viber:abc", {"user": {"id": "abc"}})

        assert collection.records["viber:abc"]["doc"]["user"] == {"id": "abc"}
        assert collection.indexes == [([("id", 1)], True)]
        assert (await store.read("viber:abc"))["user"] == {"id": "abc"}

    @pytest.mark.asyncio
    async def test_all_and_destroy(self):
        from relaybot.sessions.mongo import MongoSessionStore

        store = MongoSessionStore(client=self._client(FakeCollection()))
        await store.init()
        await store.write("viber:a", {"n": 1})
        await store.write("viber:b", {"n": 2})
        await store.destroy("viber:a")

        assert [doc["n"] for doc in await store.all()] == [2]


# ============================================================================
# Postgres backend (mocked pool)
# ============================================================================

class FakeAcquire:
    def __init__(self, conn):
        self._conn = conn

    async def __aenter__(self):
        return self._conn

    async def __aexit__(self, *exc):
        return False


class TestPostgresSessionStore:
    def _pool(self, conn):
        pool = MagicMock()
        pool.acquire.side_effect = lambda: FakeAcquire(conn)
        pool.close = AsyncMock()
        return pool

    @pytest.mark.asyncio
    async def test_init_creates_table(self):
        from relaybot.sessions.postgres import PostgresSessionStore

        conn = MagicMock()
        conn.execute = AsyncMock()
        store = PostgresSessionStore(dsn="postgresql://x", pool=self._pool(conn))
        await store.init()

        sql = conn.execute.await_args.args[0]
        assert "CREATE TABLE IF NOT EXISTS bot_sessions" in sql

    @pytest.mark.asyncio
    async def test_read_parses_jsonb(self):
        from relaybot.sessions.postgres import PostgresSessionStore

        conn = MagicMock()
        conn.execute = AsyncMock()
        conn.fetchrow = AsyncMock(return_value={"doc": '{"user": {"id": "1"}}'})
        store = PostgresSessionStore(dsn="postgresql://x", pool=self._pool(conn))
        await store.init()

        assert await store.read("slack:C1") == {"user": {"id": "1"}}
        assert conn.fetchrow.await_args.args[1] == "slack:C1"

    @pytest.mark.asyncio
    async def test_write_upserts(self):
        from relaybot.sessions.postgres import PostgresSessionStore

        conn = MagicMock()
        conn.execute = AsyncMock()
        store = PostgresSessionStore(dsn="postgresql://x", pool=self._pool(conn))
        await store.init()

        await store.write("slack:C1", {"user": {"id": "1"}})

        sql, key, payload = conn.execute.await_args.args
        assert "ON CONFLICT (id)" in sql
        assert key == "slack:C1"
        assert json.loads(payload)["user"] == {"id": "1"}

    def test_invalid_table_name_rejected(self):
        from relaybot.errors import ConfigurationError
        from relaybot.sessions.postgres import PostgresSessionStore

        with pytest.raises(ConfigurationError):
            PostgresSessionStore(dsn="postgresql://x", table="sessions; DROP TABLE users")

    def test_transient_error_detection(self):
        from relaybot.sessions.postgres import is_transient_error

        assert is_transient_error(ConnectionResetError("connection reset")) is True
        assert is_transient_error(ValueError("invalid input syntax")) is False


# ============================================================================
# Factory
# ============================================================================

class TestGetSessionStore:
    def test_memory_from_config(self):
        from relaybot.config import MemoryStoreConfig

        store = get_session_store(MemoryStoreConfig(max_size=10, expires_in=15))

        assert isinstance(store, MemorySessionStore)
        assert store.expires_in == 15

    def test_file_from_config(self, tmp_path):
        from relaybot.config import FileStoreConfig

        store = get_session_store(FileStoreConfig(dirname=str(tmp_path)))
        assert isinstance(store, FileSessionStore)

    def test_redis_from_config(self):
        from relaybot.config import RedisStoreConfig
        from relaybot.sessions.redis import RedisSessionStore

        store = get_session_store(RedisStoreConfig(host="cache", expires_in=60))

        assert isinstance(store, RedisSessionStore)
        assert store.expires_in == 60

    def test_unknown_driver(self):
        from relaybot.errors import ConfigurationError

        config = MagicMock()
        config.driver = "cassandra"
        with pytest.raises(ConfigurationError):
            get_session_store(config)
