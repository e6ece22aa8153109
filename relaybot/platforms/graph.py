# relaybot/platforms/graph.py
"""
Facebook Graph webhook helper shared by the Messenger and Facebook connectors.

Both connectors own a ``GraphWebhook`` instead of inheriting from a common
base: it holds the app credentials, answers the GET verify-token handshake,
checks ``X-Hub-Signature-256`` / ``X-Hub-Signature`` on POST, and builds
Graph clients.
"""
from __future__ import annotations

import hashlib
import hmac
from typing import Any, Awaitable, Callable, Iterator, Mapping

from relaybot.clients.graph import GraphClient
from relaybot.core.connector import (
    PreprocessResult,
    RequestContext,
    signatures_match,
    verification_failure,
)
from relaybot.errors import ConfigurationError
from relaybot.infra.logging_config import get_logger
from relaybot.infra.metrics import AppMetrics

logger = get_logger(__name__)

SIGNATURE_HEADERS = ("x-hub-signature-256", "x-hub-signature")

MapPageToAccessToken = Callable[[str], Awaitable[str | None]]


def iter_entries(body: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    """``entry`` items of a page webhook; anything that is not an object is skipped."""
    return _objects(body.get("entry"))


def entry_items(entry: Mapping[str, Any], field: str) -> Iterator[Mapping[str, Any]]:
    """Object items of ``entry[field]`` (``messaging``, ``standby``, ``changes``)."""
    return _objects(entry.get(field))


def _objects(value: Any) -> Iterator[Mapping[str, Any]]:
    if not isinstance(value, list):
        return iter(())
    return (item for item in value if isinstance(item, Mapping))


def compute_hub_signature(app_secret: str, raw_body: str, algorithm: str = "sha256") -> str:
    """``<algorithm>=<hex digest>`` as sent in X-Hub-Signature(-256)."""
    digestmod = hashlib.sha256 if algorithm == "sha256" else hashlib.sha1
    digest = hmac.new(app_secret.encode("utf-8"), raw_body.encode("utf-8"), digestmod).hexdigest()
    return f"{algorithm}={digest}"


class GraphWebhook:
    def __init__(
        self,
        platform: str,
        *,
        app_secret: str | None,
        access_token: str | None = None,
        verify_token: str | None = None,
        client: GraphClient | None = None,
        map_page_to_access_token: MapPageToAccessToken | None = None,
        graph_api_version: str = "v20.0",
    ) -> None:
        if client is None and not access_token and map_page_to_access_token is None:
            raise ConfigurationError(
                f"{platform}: access_token or map_page_to_access_token is required"
            )
        if not app_secret:
            raise ConfigurationError(f"{platform}: app_secret is required")

        self.platform = platform
        self._app_secret = app_secret
        self._verify_token = verify_token
        self._graph_api_version = graph_api_version
        self._map_page_to_access_token = map_page_to_access_token
        self._client = client or GraphClient(
            access_token or "", app_secret=app_secret, version=graph_api_version,
        )

    @property
    def client(self) -> GraphClient:
        return self._client

    def is_valid_signature(self, request_context: RequestContext) -> bool:
        signature_256 = request_context.header("x-hub-signature-256")
        if signature_256:
            expected = compute_hub_signature(self._app_secret, request_context.raw_body, "sha256")
            return signatures_match(signature_256, expected)

        signature = request_context.header("x-hub-signature")
        if signature:
            expected = compute_hub_signature(self._app_secret, request_context.raw_body, "sha1")
            return signatures_match(signature, expected)

        return False

    def verify_handshake(self, request_context: RequestContext) -> PreprocessResult:
        """
        Answer the subscription handshake (GET).

        Facebook sends hub.mode=subscribe, hub.verify_token and hub.challenge;
        the challenge is echoed back on success, 403 otherwise.
        """
        mode = request_context.query.get("hub.mode")
        token = request_context.query.get("hub.verify_token")
        challenge = request_context.query.get("hub.challenge")

        if mode == "subscribe" and self._verify_token and token == self._verify_token:
            logger.info(f"{self.platform} webhook verification successful")
            return PreprocessResult.respond(200, challenge)

        logger.warning(
            f"{self.platform} webhook verification failed: mode={mode}, "
            f"token_match={token == self._verify_token}"
        )
        AppMetrics.verification_failed(self.platform)
        return PreprocessResult.respond(403, "Forbidden")

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        if request_context.method == "GET":
            return self.verify_handshake(request_context)

        if request_context.method != "POST" or self.is_valid_signature(request_context):
            return PreprocessResult.proceed()

        logger.warning(f"{self.platform} webhook: signature validation failed")
        AppMetrics.verification_failed(self.platform)
        return verification_failure(
            "Messenger Signature Validation Failed!",
            request_context,
            SIGNATURE_HEADERS,
        )

    async def client_for_page(self, page_id: str | None) -> tuple[GraphClient, str | None]:
        """
        Pick the client for a page.

        With ``map_page_to_access_token`` configured, a per-page client is
        built; any mapping failure falls back to the default client.
        """
        if self._map_page_to_access_token is None:
            return self._client, None
        if not page_id:
            logger.warning(f"{self.platform}: could not find page id in request body")
            return self._client, None

        try:
            token = await self._map_page_to_access_token(page_id)
        except Exception as exc:
            logger.warning(
                f"{self.platform}: access token mapping failed for page {page_id}: "
                f"{type(exc).__name__}: {exc}"
            )
            return self._client, None

        if not token:
            return self._client, None

        client = GraphClient(token, app_secret=self._app_secret, version=self._graph_api_version)
        return client, token
