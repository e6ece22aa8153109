# tests/test_bot.py
"""Tests for the Bot request pipeline."""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from relaybot.core.bot import Bot
from relaybot.core.connector import Connector, PreprocessResult, RequestContext
from relaybot.core.context import Context
from relaybot.core.dedupe import InboundDedupe
from relaybot.core.event import Event
from relaybot.core.session import assign_once
from relaybot.errors import ConfigurationError, MissingHandlerError
from relaybot.sessions import MemorySessionStore


class FakeEvent(Event):
    platform = "fake"

    @property
    def id(self):
        return self.raw_event.get("id")

    @property
    def is_text(self) -> bool:
        return "text" in self.raw_event

    @property
    def text(self):
        return self.raw_event.get("text")


class FakeContext(Context):
    platform = "fake"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.sent: list[str] = []

    async def send_text(self, text: str, **options: Any) -> Any:
        self.sent.append(text)


class FakeConnector(Connector):
    platform = "fake"

    def __init__(self, profile=None, preprocess_result=None):
        self.profile = profile
        self.profile_calls = 0
        self.preprocess_result = preprocess_result or PreprocessResult.proceed()
        self.contexts: list[FakeContext] = []

    def map_request_to_events(self, body):
        return [FakeEvent(raw) for raw in body.get("events", [])]

    async def get_unique_session_key(self, event):
        return event.raw_event.get("user")

    async def update_session(self, session, event):
        session.setdefault("updates", 0)
        session["updates"] += 1

    async def get_user_profile(self, event):
        self.profile_calls += 1
        if isinstance(self.profile, Exception):
            raise self.profile
        return self.profile

    async def create_context(self, *, event, session, initial_state=None, request_context=None):
        context = FakeContext(
            client=None,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
        )
        self.contexts.append(context)
        return context

    async def preprocess(self, request_context):
        return self.preprocess_result


def body(*events):
    return {"events": list(events)}


async def make_store():
    store = MemorySessionStore()
    await store.init()
    return store


class TestConstruction:
    def test_requires_connector(self):
        with pytest.raises(ConfigurationError):
            Bot(None)

    def test_request_handler_requires_on_event(self):
        with pytest.raises(MissingHandlerError):
            Bot(FakeConnector()).create_request_handler()

    def test_fluent_configuration(self):
        bot = Bot(FakeConnector())
        assert bot.on_event(lambda c, p: None) is bot
        assert bot.set_initial_state({"a": 1}) is bot
        assert bot.use(lambda c: None) is bot

    def test_on_event_keeps_callable_as_is(self):
        handler = AsyncMock(return_value=None)

        bot = Bot(FakeConnector()).on_event(handler)

        assert bot.handler is handler

    @pytest.mark.asyncio
    async def test_callable_with_build_attribute_is_invoked(self):
        # Mocks answer every attribute lookup, including `build`.
        handler = AsyncMock(return_value=None)
        bot = Bot(FakeConnector()).on_event(handler)

        await bot.create_request_handler()(body({"user": "u1"}))

        handler.assert_awaited_once()

    def test_on_event_rejects_non_callable(self):
        with pytest.raises(TypeError):
            Bot(FakeConnector()).on_event("not an action")


class TestRequestHandler:
    @pytest.mark.asyncio
    async def test_session_persisted_and_reused(self):
        store = await make_store()

        async def handler(context, props):
            context.set_state({"count": context.state.get("count", 0) + 1})

        bot = Bot(FakeConnector(), session_store=store).on_event(handler)
        handle = bot.create_request_handler()

        await handle(body({"id": "1", "user": "u1", "text": "hi"}))
        await handle(body({"id": "2", "user": "u1", "text": "again"}))

        session = await store.read("fake:u1")
        assert session["_state"] == {"count": 2}
        assert session["updates"] == 2
        assert "lastActivity" in session

    @pytest.mark.asyncio
    async def test_returns_none_after_processing(self):
        bot = Bot(FakeConnector()).on_event(lambda c, p: None)
        result = await bot.create_request_handler()(body({"user": "u1"}))
        assert result is None

    @pytest.mark.asyncio
    async def test_empty_body_raises_value_error(self):
        bot = Bot(FakeConnector()).on_event(lambda c, p: None)
        with pytest.raises(ValueError):
            await bot.create_request_handler()({})

    @pytest.mark.asyncio
    async def test_preprocess_short_circuit_skips_store(self):
        store = await make_store()
        connector = FakeConnector(preprocess_result=PreprocessResult.respond(403, "Forbidden"))
        handler = AsyncMock(return_value=None)
        bot = Bot(connector, session_store=store).on_event(handler)

        with patch.object(store, "read", AsyncMock()) as read:
            result = await bot.create_request_handler()(
                body({"user": "u1"}), RequestContext(method="POST")
            )

        assert result == {"status": 403, "body": "Forbidden"}
        read.assert_not_awaited()
        handler.assert_not_awaited()
        assert bot.initialized is False

    @pytest.mark.asyncio
    async def test_events_processed_in_order(self):
        seen = []

        async def handler(context, props):
            seen.append(context.event.text)

        bot = Bot(FakeConnector()).on_event(handler)
        await bot.create_request_handler()(
            body({"user": "a", "text": "one"}, {"user": "b", "text": "two"}, {"user": "a", "text": "three"})
        )

        assert seen == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_sessionless_event_not_persisted(self):
        store = await make_store()
        contexts = []

        async def handler(context, props):
            contexts.append(context)

        bot = Bot(FakeConnector(), session_store=store).on_event(handler)
        await bot.create_request_handler()(body({"id": "x", "text": "anonymous"}))

        assert len(contexts) == 1
        assert await store.all() == []

    @pytest.mark.asyncio
    async def test_initial_state_copied_per_session(self):
        store = await make_store()

        async def handler(context, props):
            context.state["items"].append(context.event.text)

        bot = (
            Bot(FakeConnector(), session_store=store)
            .set_initial_state({"items": []})
            .on_event(handler)
        )
        handle = bot.create_request_handler()
        await handle(body({"user": "a", "text": "x"}))
        await handle(body({"user": "b", "text": "y"}))

        assert (await store.read("fake:a"))["_state"] == {"items": ["x"]}
        assert (await store.read("fake:b"))["_state"] == {"items": ["y"]}


class TestProfileEnrichment:
    @pytest.mark.asyncio
    async def test_profile_fetched_once_per_session(self):
        store = await make_store()
        connector = FakeConnector(profile={"first_name": "Kim"})
        bot = Bot(connector, session_store=store).on_event(lambda c, p: None)
        handle = bot.create_request_handler()

        await handle(body({"user": "u1"}))
        await handle(body({"user": "u1"}))

        session = await store.read("fake:u1")
        assert connector.profile_calls == 1
        assert session["user"]["first_name"] == "Kim"
        assert session["user"]["id"] == "u1"
        assert "_updatedAt" in session["user"]

    @pytest.mark.asyncio
    async def test_profile_failure_still_assigns_identity(self):
        store = await make_store()
        connector = FakeConnector(profile=RuntimeError("graph down"))
        handler = AsyncMock(return_value=None)
        bot = Bot(connector, session_store=store).on_event(handler)

        await bot.create_request_handler()(body({"user": "u1"}))

        handler.assert_awaited_once()
        assert (await store.read("fake:u1"))["user"]["id"] == "u1"

    @pytest.mark.asyncio
    async def test_existing_user_not_overwritten(self):
        store = await make_store()
        session = {}
        assign_once(session, "user", {"id": "u1", "name": "First"})
        await store.write("fake:u1", session)

        connector = FakeConnector(profile={"name": "Changed"})
        bot = Bot(connector, session_store=store).on_event(lambda c, p: None)
        await bot.create_request_handler()(body({"user": "u1"}))

        assert connector.profile_calls == 0
        assert (await store.read("fake:u1"))["user"]["name"] == "First"


class TestActions:
    @pytest.mark.asyncio
    async def test_continuations_are_followed(self):
        calls = []

        async def second(context, props):
            calls.append("second")

        def first(context, props):
            calls.append("first")
            return second

        bot = Bot(FakeConnector()).on_event(first)
        await bot.create_request_handler()(body({"user": "u1"}))

        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_plugins_run_in_order_before_handler(self):
        calls = []

        async def async_plugin(context):
            calls.append("async_plugin")

        bot = (
            Bot(FakeConnector())
            .use(lambda context: calls.append("plugin"))
            .use(async_plugin)
            .on_event(lambda c, p: calls.append("handler"))
        )
        await bot.create_request_handler()(body({"user": "u1"}))

        assert calls == ["plugin", "async_plugin", "handler"]


class TestErrorHandling:
    @pytest.mark.asyncio
    async def test_error_handler_receives_error_and_session_saved(self):
        store = await make_store()
        received = []

        async def handler(context, props):
            context.set_state({"touched": True})
            raise RuntimeError("boom")

        async def on_error(context, props):
            received.append(props.error)
            await context.send_text("Something went wrong")

        connector = FakeConnector()
        bot = Bot(connector, session_store=store).on_event(handler).on_error(on_error)
        await bot.create_request_handler()(body({"user": "u1"}))

        assert isinstance(received[0], RuntimeError)
        assert connector.contexts[0].sent == ["Something went wrong"]
        assert (await store.read("fake:u1"))["_state"] == {"touched": True}

    @pytest.mark.asyncio
    async def test_error_propagates_without_error_handler(self):
        async def handler(context, props):
            raise RuntimeError("boom")

        bot = Bot(FakeConnector()).on_event(handler)
        with pytest.raises(RuntimeError, match="boom"):
            await bot.create_request_handler()(body({"user": "u1"}))

    @pytest.mark.asyncio
    async def test_error_before_context_propagates(self):
        connector = FakeConnector()
        connector.update_session = AsyncMock(side_effect=KeyError("bad"))
        on_error = AsyncMock()
        bot = Bot(connector).on_event(lambda c, p: None).on_error(on_error)

        with pytest.raises(KeyError):
            await bot.create_request_handler()(body({"user": "u1"}))
        on_error.assert_not_awaited()


class TestInitialization:
    @pytest.mark.asyncio
    async def test_concurrent_requests_initialize_store_once(self):
        store = MemorySessionStore()
        calls = 0

        async def slow_connect():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)

        bot = Bot(FakeConnector(), session_store=store).on_event(lambda c, p: None)
        handle = bot.create_request_handler()

        with patch.object(store, "_connect", side_effect=slow_connect):
            await asyncio.gather(*(handle(body({"user": f"u{i}"})) for i in range(5)))

        assert calls == 1
        assert bot.initialized is True


class TestDedupe:
    @pytest.mark.asyncio
    async def test_duplicate_delivery_dispatched_once(self):
        handler = AsyncMock(return_value=None)
        bot = Bot(FakeConnector(), dedupe=InboundDedupe()).on_event(handler)
        handle = bot.create_request_handler()

        await handle(body({"id": "evt-1", "user": "u1"}))
        await handle(body({"id": "evt-1", "user": "u1"}))
        await handle(body({"id": "evt-2", "user": "u1"}))

        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_events_without_id_never_deduplicated(self):
        handler = AsyncMock(return_value=None)
        bot = Bot(FakeConnector(), dedupe=InboundDedupe()).on_event(handler)
        handle = bot.create_request_handler()

        await handle(body({"user": "u1"}))
        await handle(body({"user": "u1"}))

        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_failed_delivery_retry_is_skipped(self):
        handler = AsyncMock(side_effect=[RuntimeError("boom"), None])
        bot = Bot(FakeConnector(), dedupe=InboundDedupe()).on_event(handler)
        handle = bot.create_request_handler()

        with pytest.raises(RuntimeError):
            await handle(body({"id": "evt-1", "user": "u1"}))
        await handle(body({"id": "evt-1", "user": "u1"}))

        assert handler.await_count == 1
