# relaybot/clients/base.py
"""
Shared request path for outbound platform clients.

Error classification (PlatformApiError.retryable):
- Auth failure (401/403)     → NOT retryable
- Client error (other 4xx)   → NOT retryable
- Rate limiting (429)        → retryable
- Network / timeout          → retryable
- Server error (5xx)         → retryable

HTTP session lifecycle:
- Uses the shared api session from relaybot.infra.http_client.
- Call close_all_sessions() during application shutdown.
"""
from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from relaybot.errors import PlatformApiError
from relaybot.infra.http_client import get_api_session
from relaybot.infra.logging_config import get_logger
from relaybot.infra.metrics import AppMetrics

logger = get_logger(__name__)


async def _safe_response_json(resp: aiohttp.ClientResponse) -> Any:
    """Parse JSON from response, returning None if body is not valid JSON."""
    try:
        return await resp.json(content_type=None)
    except Exception:
        logger.warning(f"API returned non-JSON body: status={resp.status}")
        return None


class ApiClient:
    platform: str = "unknown"

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        self._session = session

    @property
    def session(self) -> aiohttp.ClientSession:
        return self._session or get_api_session()

    def _error_message(self, body: Any) -> str:
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                return str(error.get("message", "Unknown error"))
            if error:
                return str(error)
            if body.get("description"):
                return str(body["description"])
        return "Unknown error"

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            async with self.session.request(method, url, **kwargs) as resp:
                body = await _safe_response_json(resp)

                if 200 <= resp.status < 300:
                    AppMetrics.outbound_request(self.platform, "ok")
                    return body

                message = self._error_message(body)
                retryable = resp.status == 429 or resp.status >= 500
                if resp.status in (401, 403):
                    logger.error(f"{self.platform} API auth error: status={resp.status}")
                else:
                    logger.warning(f"{self.platform} API error: status={resp.status}, message={message[:200]}")
                AppMetrics.outbound_request(self.platform, "error")
                raise PlatformApiError(self.platform, resp.status, message, retryable=retryable)

        except PlatformApiError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning(f"{self.platform} API network error: {type(exc).__name__}")
            AppMetrics.outbound_request(self.platform, "network_error")
            raise PlatformApiError(self.platform, 0, f"{type(exc).__name__}: {exc}", retryable=True) from exc
