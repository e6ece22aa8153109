# relaybot/platforms/telegram/context.py
from __future__ import annotations

from typing import Any, Sequence

from relaybot.core.context import Context


class TelegramContext(Context):
    platform = "telegram"
    capabilities = frozenset({
        "send_text",
        "send_message",
        "send_photo",
        "send_poll",
        "answer_callback_query",
        "answer_inline_query",
    })

    def _chat_id(self) -> int | None:
        return self.event.chat_id

    async def send_message(self, text: str, **options: Any) -> Any:
        chat_id = self._chat_id()
        if chat_id is None:
            return None
        return await self.client.send_message(chat_id, text, **options)

    async def send_text(self, text: str, **options: Any) -> Any:
        return await self.send_message(text, **options)

    async def send_photo(self, photo: str, **options: Any) -> Any:
        chat_id = self._chat_id()
        if chat_id is None:
            return None
        return await self.client.send_photo(chat_id, photo, **options)

    async def send_poll(self, question: str, options: Sequence[str], **extra: Any) -> Any:
        chat_id = self._chat_id()
        if chat_id is None:
            return None
        return await self.client.call("sendPoll", chat_id=chat_id, question=question, options=list(options), **extra)

    async def answer_callback_query(self, **options: Any) -> Any:
        callback_query = self.event.callback_query
        if not callback_query:
            return None
        return await self.client.answer_callback_query(callback_query["id"], **options)

    async def answer_inline_query(self, results: list, **options: Any) -> Any:
        inline_query = self.event.raw_event.get("inline_query")
        if not inline_query:
            return None
        return await self.client.answer_inline_query(inline_query["id"], results, **options)
