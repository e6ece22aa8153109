# tests/test_telegram.py
"""Tests for the Telegram connector, events and context"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from relaybot.errors import ConfigurationError
from relaybot.platforms.telegram import TelegramConnector, TelegramContext, TelegramEvent

USER = {"id": 313534466, "first_name": "first", "last_name": "last", "username": "username", "language_code": "zh-TW"}

message_update = {
    "update_id": 141921689,
    "message": {
        "message_id": 666,
        "from": USER,
        "chat": {"id": 427770117, "type": "private"},
        "date": 1499402829,
        "text": "hi",
    },
}

callback_query_update = {
    "update_id": 141921690,
    "callback_query": {
        "id": "1068230107531367617",
        "from": USER,
        "message": {
            "message_id": 3300,
            "chat": {"id": 427770117, "type": "private"},
            "date": 1499402829,
            "text": "choose",
        },
        "chat_instance": "-1828607021492040088",
        "data": "COLOR_RED",
    },
}

inline_query_update = {
    "update_id": 141921691,
    "inline_query": {"id": "1837258670654537434", "from": USER, "query": "123", "offset": ""},
}

poll_update = {
    "update_id": 141921692,
    "poll": {"id": "5145349385420734469", "question": "q", "options": [], "is_closed": False},
}

poll_answer_update = {
    "update_id": 141921693,
    "poll_answer": {"poll_id": "5145349385420734469", "user": USER, "option_ids": [0]},
}


def make_connector(**kwargs):
    return TelegramConnector(access_token="ACCESS_TOKEN", **kwargs)


class TestTelegramEvent:
    def test_message(self):
        event = TelegramEvent(message_update)
        assert event.update_type == "message"
        assert event.is_text is True
        assert event.text == "hi"
        assert event.id == 141921689
        assert event.timestamp == 1499402829000
        assert event.chat_id == 427770117

    def test_media_classifiers(self):
        base = {k: v for k, v in message_update["message"].items() if k != "text"}
        photo = TelegramEvent({"update_id": 2, "message": {**base, "photo": [{"file_id": "p1"}]}})
        voice = TelegramEvent({"update_id": 3, "message": {**base, "voice": {"file_id": "v1"}}})
        document = TelegramEvent({"update_id": 4, "message": {**base, "document": {"file_id": "d1"}}})

        assert photo.is_photo is True and photo.is_text is False
        assert voice.is_voice is True and voice.is_photo is False
        assert document.is_document is True
        assert TelegramEvent(callback_query_update).is_photo is False

    def test_callback_query_payload(self):
        event = TelegramEvent(callback_query_update)
        assert event.is_callback_query is True
        assert event.is_payload is True
        assert event.payload == "COLOR_RED"
        assert event.is_text is False
        assert event.chat_id == 427770117

    def test_poll_has_no_sender(self):
        event = TelegramEvent(poll_update)
        assert event.is_poll is True
        assert event.sender is None
        assert event.chat_id is None

    def test_poll_answer_sender(self):
        assert TelegramEvent(poll_answer_update).sender == USER


class TestTelegramConnector:
    def test_requires_access_token(self):
        with pytest.raises(ConfigurationError):
            TelegramConnector()

    def test_single_update_body(self):
        events = make_connector().map_request_to_events(message_update)
        assert len(events) == 1
        assert isinstance(events[0], TelegramEvent)

    def test_get_updates_result_fan_in(self):
        body = {"ok": True, "result": [message_update, callback_query_update, {"update_id": 1, "unknown": {}}]}
        events = make_connector().map_request_to_events(body)
        assert [e.update_type for e in events] == ["message", "callback_query"]

    @pytest.mark.asyncio
    async def test_chat_keyed_updates(self):
        connector = make_connector()
        assert await connector.get_unique_session_key(TelegramEvent(message_update)) == "427770117"
        assert await connector.get_unique_session_key(TelegramEvent(callback_query_update)) == "427770117"

    @pytest.mark.asyncio
    async def test_user_keyed_updates(self):
        connector = make_connector()
        assert await connector.get_unique_session_key(TelegramEvent(inline_query_update)) == "313534466"
        assert await connector.get_unique_session_key(TelegramEvent(poll_answer_update)) == "313534466"

    @pytest.mark.asyncio
    async def test_poll_is_sessionless(self):
        assert await make_connector().get_unique_session_key(TelegramEvent(poll_update)) is None

    @pytest.mark.asyncio
    async def test_update_session_sets_user_once(self):
        connector = make_connector()
        session = {}

        await connector.update_session(session, TelegramEvent(message_update))
        changed = {**message_update, "message": {**message_update["message"], "from": {**USER, "first_name": "other"}}}
        await connector.update_session(session, TelegramEvent(changed))

        assert session["user"]["id"] == 313534466
        assert session["user"]["first_name"] == "first"
        assert "_updatedAt" in session["user"]


class TestSecretToken:
    @pytest.mark.asyncio
    async def test_no_secret_configured_proceeds(self, make_request_context):
        result = await make_connector().preprocess(make_request_context(raw_body="{}"))
        assert result.should_next is True

    @pytest.mark.asyncio
    async def test_matching_secret(self, make_request_context):
        rc = make_request_context(raw_body="{}", headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"})
        result = await make_connector(secret_token="s3cret").preprocess(rc)
        assert result.should_next is True

    @pytest.mark.asyncio
    async def test_wrong_secret_forbidden(self, make_request_context):
        rc = make_request_context(raw_body="{}", headers={"X-Telegram-Bot-Api-Secret-Token": "nope"})
        result = await make_connector(secret_token="s3cret").preprocess(rc)

        assert result.should_next is False
        assert result.response["status"] == 403
        assert result.response["body"]["error"]["message"] == "Telegram Secret Token Validation Failed!"

    @pytest.mark.asyncio
    async def test_non_ascii_secret_header_forbidden(self, make_request_context):
        rc = make_request_context(raw_body="{}", headers={"X-Telegram-Bot-Api-Secret-Token": "s3crét"})
        result = await make_connector(secret_token="s3cret").preprocess(rc)

        assert result.should_next is False
        assert result.response["status"] == 403


class TestTelegramContext:
    def _context(self, update):
        client = MagicMock()
        client.send_message = AsyncMock(return_value={"message_id": 1})
        client.answer_callback_query = AsyncMock(return_value=True)
        client.call = AsyncMock(return_value={})
        return client, TelegramContext(client=client, event=TelegramEvent(update), session={})

    @pytest.mark.asyncio
    async def test_send_text_to_chat(self):
        client, context = self._context(message_update)
        await context.send_text("hello")
        client.send_message.assert_awaited_once_with(427770117, "hello")

    @pytest.mark.asyncio
    async def test_answer_callback_query(self):
        client, context = self._context(callback_query_update)
        await context.answer_callback_query(text="ok")
        client.answer_callback_query.assert_awaited_once_with("1068230107531367617", text="ok")

    @pytest.mark.asyncio
    async def test_send_poll(self):
        client, context = self._context(message_update)
        await context.call("send_poll", "Lunch?", ["pizza", "sushi"])
        client.call.assert_awaited_once_with(
            "sendPoll", chat_id=427770117, question="Lunch?", options=["pizza", "sushi"],
        )

    @pytest.mark.asyncio
    async def test_send_text_without_chat_is_noop(self):
        client, context = self._context(poll_update)
        assert await context.send_text("hello") is None
        client.send_message.assert_not_awaited()
