# relaybot/infra/http_client.py
"""
The aiohttp session shared by every outbound platform client.

Created on first use inside the running event loop and reused afterwards, so
Graph, Telegram, Slack, Viber and Twilio calls share one connection pool.
``close_all_sessions()`` belongs in application shutdown; a later call to
``get_api_session()`` opens a fresh session.
"""
from __future__ import annotations

import aiohttp

from relaybot.infra.logging_config import get_logger

logger = get_logger(__name__)

# Profile and comment-thread lookups sit on the request path; keep them short.
API_TIMEOUT = aiohttp.ClientTimeout(total=25, connect=5)
API_POOL_LIMIT = 20

_api_session: aiohttp.ClientSession | None = None


def get_api_session() -> aiohttp.ClientSession:
    global _api_session
    if _api_session is None or _api_session.closed:
        connector = aiohttp.TCPConnector(
            limit=API_POOL_LIMIT,
            keepalive_timeout=30,
            enable_cleanup_closed=True,
        )
        _api_session = aiohttp.ClientSession(timeout=API_TIMEOUT, connector=connector)
        logger.debug(f"Outbound HTTP session opened (pool limit={API_POOL_LIMIT})")
    return _api_session


async def close_all_sessions() -> None:
    global _api_session
    session, _api_session = _api_session, None
    if session is not None and not session.closed:
        await session.close()
        logger.debug("Outbound HTTP session closed")
