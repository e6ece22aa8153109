# relaybot/platforms/viber/connector.py
from __future__ import annotations

import hashlib
import hmac
from typing import Any, Mapping, Sequence

from relaybot.clients.viber import ViberClient
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
from relaybot.platforms.viber.context import ViberContext
from relaybot.platforms.viber.event import ViberEvent

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-viber-content-signature"


class ViberConnector(Connector):
    platform = "viber"

    def __init__(
        self,
        *,
        access_token: str | None = None,
        sender: dict[str, str] | None = None,
        client: ViberClient | None = None,
    ) -> None:
        if client is None and not access_token:
            raise ConfigurationError("viber: access_token is required")
        self._client = client or ViberClient(access_token, sender or {"name": "bot"})
        self._access_token = access_token or self._client.access_token

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "ViberConnector":
        options = {
            "access_token": settings.viber_access_token,
            "sender": {"name": settings.viber_sender_name},
        }
        options.update(overrides)
        return cls(**options)

    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[ViberEvent]:
        # "webhook" is the callback Viber sends when the webhook is registered.
        if not body.get("event") or body.get("event") == "webhook":
            return []
        return [ViberEvent(body)]

    async def get_unique_session_key(self, event: ViberEvent) -> str | None:
        return event.user_id

    async def update_session(self, session: Session, event: ViberEvent) -> None:
        user = event.user
        if user:
            assign_once(session, "user", dict(user))
        elif event.user_id:
            assign_once(session, "user", {"id": event.user_id})

    async def create_context(
        self,
        *,
        event: ViberEvent,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> ViberContext:
        return ViberContext(
            client=self._client,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
        )

    def verify_signature(self, raw_body: str, signature: str) -> bool:
        expected = hmac.new(
            self._access_token.encode("utf-8"),
            raw_body.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return signatures_match(signature, expected)

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        if request_context.method != "POST":
            return PreprocessResult.proceed()

        signature = request_context.header(SIGNATURE_HEADER) or ""
        if self.verify_signature(request_context.raw_body, signature):
            return PreprocessResult.proceed()

        logger.warning("Viber webhook: signature validation failed")
        AppMetrics.verification_failed(self.platform)
        return verification_failure(
            "Viber Signature Validation Failed!",
            request_context,
            (SIGNATURE_HEADER,),
        )
