# relaybot/platforms/whatsapp/connector.py
from __future__ import annotations

from typing import Any, Mapping, Sequence

from twilio.request_validator import RequestValidator

from relaybot.clients.twilio import TwilioClient
from relaybot.core.connector import Connector, PreprocessResult, RequestContext, verification_failure
from relaybot.core.session import Session, assign_once
from relaybot.errors import ConfigurationError
from relaybot.infra.logging_config import get_logger
from relaybot.infra.metrics import AppMetrics
from relaybot.platforms.whatsapp.context import WhatsappContext
from relaybot.platforms.whatsapp.event import WhatsappEvent

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-twilio-signature"


class WhatsappConnector(Connector):
    """
    WhatsApp through Twilio Programmable Messaging.

    ``webhook_url`` overrides the URL used for signature validation when the
    app runs behind a proxy and the request URL differs from the public one.
    """

    platform = "whatsapp"

    def __init__(
        self,
        *,
        account_sid: str | None = None,
        auth_token: str | None = None,
        phone_number: str | None = None,
        client: TwilioClient | None = None,
        webhook_url: str | None = None,
    ) -> None:
        if client is None:
            missing = [
                name for name, value in (
                    ("account_sid", account_sid),
                    ("auth_token", auth_token),
                    ("phone_number", phone_number),
                ) if not value
            ]
            if missing:
                raise ConfigurationError(f"whatsapp: missing {', '.join(missing)}")
            client = TwilioClient(account_sid, auth_token, phone_number)

        self._client = client
        self._validator = RequestValidator(auth_token or client.auth_token)
        self._webhook_url = webhook_url

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "WhatsappConnector":
        options = {
            "account_sid": settings.whatsapp_account_sid,
            "auth_token": settings.whatsapp_auth_token,
            "phone_number": settings.whatsapp_phone_number,
        }
        options.update(overrides)
        return cls(**options)

    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[WhatsappEvent]:
        if not body.get("MessageSid") and not body.get("SmsSid"):
            return []
        return [WhatsappEvent(body)]

    async def get_unique_session_key(self, event: WhatsappEvent) -> str | None:
        return event.user_phone

    async def update_session(self, session: Session, event: WhatsappEvent) -> None:
        phone = event.user_phone
        if not phone:
            return
        user = {"id": phone}
        if event.is_received and event.profile_name:
            user["name"] = event.profile_name
        assign_once(session, "user", user)

    async def create_context(
        self,
        *,
        event: WhatsappEvent,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> WhatsappContext:
        return WhatsappContext(
            client=self._client,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
        )

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        if request_context.method != "POST":
            return PreprocessResult.proceed()

        url = self._webhook_url or request_context.url
        params = dict(request_context.body) if isinstance(request_context.body, Mapping) else {}
        signature = request_context.header(SIGNATURE_HEADER) or ""

        if signature and self._validator.validate(url, params, signature):
            return PreprocessResult.proceed()

        logger.warning("WhatsApp webhook: Twilio signature validation failed", extra={"url": url})
        AppMetrics.verification_failed(self.platform)
        return verification_failure(
            "WhatsApp Signature Validation Failed!",
            request_context,
            (SIGNATURE_HEADER,),
        )
