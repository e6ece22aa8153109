# relaybot/platforms/telegram/connector.py
from __future__ import annotations

from typing import Any, Mapping, Sequence

from relaybot.clients.telegram import TelegramClient
from relaybot.core.connector import (
    Connector,
    PreprocessResult,
    RequestContext,
    signatures_match,
    verification_failure,
)
from relaybot.core.session import Session, assign_once
from relaybot.errors import ConfigurationError
from relaybot.infra.logging_config import get_logger
from relaybot.infra.metrics import AppMetrics
from relaybot.platforms.telegram.context import TelegramContext
from relaybot.platforms.telegram.event import TelegramEvent

logger = get_logger(__name__)

SECRET_TOKEN_HEADER = "x-telegram-bot-api-secret-token"

# Updates not bound to a chat are keyed by the acting user.
_USER_KEYED_TYPES = frozenset({
    "inline_query",
    "chosen_inline_result",
    "shipping_query",
    "pre_checkout_query",
    "poll_answer",
})


class TelegramConnector(Connector):
    """
    Telegram Bot API webhooks.

    A webhook body is a single Update. A ``getUpdates`` response
    (``{"ok": true, "result": [...]}``) is also accepted and yields one event
    per update.
    """

    platform = "telegram"

    def __init__(
        self,
        *,
        access_token: str | None = None,
        secret_token: str | None = None,
        client: TelegramClient | None = None,
    ) -> None:
        if client is None and not access_token:
            raise ConfigurationError("telegram: access_token is required")
        self._client = client or TelegramClient(access_token)
        self._secret_token = secret_token

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "TelegramConnector":
        options = {
            "access_token": settings.telegram_access_token,
            "secret_token": settings.telegram_secret_token,
        }
        options.update(overrides)
        return cls(**options)

    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[TelegramEvent]:
        updates = body.get("result") if isinstance(body.get("result"), list) else [body]
        events = [TelegramEvent(update) for update in updates if isinstance(update, Mapping)]
        return [event for event in events if event.update_type is not None]

    async def get_unique_session_key(self, event: TelegramEvent) -> str | None:
        update_type = event.update_type
        if update_type == "poll":
            return None

        if update_type in _USER_KEYED_TYPES:
            sender = event.sender
            identity = sender.get("id") if sender else None
        else:
            identity = event.chat_id

        return str(identity) if identity is not None else None

    async def update_session(self, session: Session, event: TelegramEvent) -> None:
        sender = event.sender
        if sender and sender.get("id") is not None:
            assign_once(session, "user", dict(sender))

    async def create_context(
        self,
        *,
        event: TelegramEvent,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> TelegramContext:
        return TelegramContext(
            client=self._client,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
        )

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        if not self._secret_token:
            return PreprocessResult.proceed()

        header_token = request_context.header(SECRET_TOKEN_HEADER) or ""
        if signatures_match(header_token, self._secret_token):
            return PreprocessResult.proceed()

        logger.warning("Telegram webhook: secret token verification failed")
        AppMetrics.verification_failed(self.platform)
        return verification_failure(
            "Telegram Secret Token Validation Failed!",
            request_context,
            (),
            status=403,
        )
