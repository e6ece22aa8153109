# relaybot/platforms/slack/connector.py
from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any, Mapping, Sequence

from relaybot.clients.slack import SlackClient
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
from relaybot.platforms.slack.context import SlackContext
from relaybot.platforms.slack.event import SlackEvent

logger = get_logger(__name__)

SIGNATURE_HEADERS = ("x-slack-request-timestamp", "x-slack-signature")

# Maximum age for signed requests (replay protection)
SIGNATURE_MAX_AGE_SECONDS = 60 * 5


def compute_slack_signature(signing_secret: str, timestamp: str, raw_body: str) -> str:
    basestring = f"v0:{timestamp}:{raw_body}"
    digest = hmac.new(signing_secret.encode("utf-8"), basestring.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"v0={digest}"


class SlackConnector(Connector):
    """
    Slack Events API, interactive components and slash commands.

    Sessions are per channel, falling back to the user for events that
    carry no channel.
    """

    platform = "slack"

    def __init__(
        self,
        *,
        access_token: str | None = None,
        signing_secret: str | None = None,
        client: SlackClient | None = None,
        skip_profile: bool = False,
    ) -> None:
        if client is None and not access_token:
            raise ConfigurationError("slack: access_token is required")
        self._client = client or SlackClient(access_token)
        self._signing_secret = signing_secret
        self._skip_profile = skip_profile

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "SlackConnector":
        options = {
            "access_token": settings.slack_access_token,
            "signing_secret": settings.slack_signing_secret,
        }
        options.update(overrides)
        return cls(**options)

    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[SlackEvent]:
        if body.get("type") == "event_callback" and isinstance(body.get("event"), Mapping):
            return [SlackEvent(body["event"], event_id=body.get("event_id"))]

        payload = body.get("payload")
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError:
                logger.warning("Slack webhook: unparseable interactive payload")
                return []
        if isinstance(payload, Mapping):
            return [SlackEvent(payload)]

        if body.get("command"):
            return [SlackEvent(body, event_id=body.get("trigger_id"))]

        return []

    async def get_unique_session_key(self, event: SlackEvent) -> str | None:
        return event.channel_id or event.user_id

    async def update_session(self, session: Session, event: SlackEvent) -> None:
        channel_id = event.channel_id
        if channel_id:
            assign_once(session, "channel", {"id": channel_id})

    async def get_user_profile(self, event: SlackEvent) -> dict[str, Any] | None:
        if self._skip_profile or not event.user_id:
            return None
        return await self._client.get_user_info(event.user_id)

    async def create_context(
        self,
        *,
        event: SlackEvent,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> SlackContext:
        return SlackContext(
            client=self._client,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
        )

    def is_valid_signature(self, request_context: RequestContext) -> bool:
        timestamp = request_context.header("x-slack-request-timestamp")
        signature = request_context.header("x-slack-signature")
        if not timestamp or not signature:
            return False

        try:
            age = abs(int(time.time()) - int(timestamp))
        except ValueError:
            return False
        if age > SIGNATURE_MAX_AGE_SECONDS:
            logger.warning(f"Slack webhook: request expired (age: {age}s)")
            return False

        expected = compute_slack_signature(self._signing_secret, timestamp, request_context.raw_body)
        return signatures_match(signature, expected)

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        if self._signing_secret and not self.is_valid_signature(request_context):
            logger.warning("Slack webhook: signature validation failed")
            AppMetrics.verification_failed(self.platform)
            return verification_failure(
                "Slack Signing Secret Validation Failed!",
                request_context,
                SIGNATURE_HEADERS,
            )

        body = request_context.body
        if isinstance(body, Mapping) and body.get("type") == "url_verification":
            return PreprocessResult.respond(200, {"challenge": body.get("challenge")})

        return PreprocessResult.proceed()
