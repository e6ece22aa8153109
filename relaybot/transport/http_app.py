# relaybot/transport/http_app.py
"""
FastAPI application mounting one webhook route per bot.

Each route accepts GET (subscription handshakes) and POST (deliveries),
builds a RequestContext from the raw request and runs the bot's request
handler. A short-circuit response from ``preprocess`` is returned as is;
otherwise the route answers ``{"ok": true}``.
"""
from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, Mapping
from urllib.parse import parse_qsl

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from relaybot.config import Settings, get_settings
from relaybot.core.bot import Bot
from relaybot.core.connector import RequestContext
from relaybot.infra.http_client import close_all_sessions
from relaybot.infra.logging_config import get_logger, setup_logging
from relaybot.infra.metrics import get_metrics_collector
from relaybot.transport.middleware import (
    ErrorHandlingMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
)

logger = get_logger(__name__)


async def build_request_context(request: Request) -> RequestContext:
    """Snapshot a request: exact raw body text plus parsed JSON or form body."""
    raw = await request.body()
    raw_body = raw.decode("utf-8", errors="replace")
    content_type = request.headers.get("content-type", "")

    body: Any = None
    if "application/x-www-form-urlencoded" in content_type:
        body = dict(parse_qsl(raw_body, keep_blank_values=True))
    elif raw_body:
        try:
            body = json.loads(raw_body)
        except ValueError:
            logger.warning(f"Webhook body is not valid JSON: path={request.url.path}")

    return RequestContext(
        method=request.method,
        path=request.url.path,
        query=dict(request.query_params),
        headers=dict(request.headers),
        raw_body=raw_body,
        body=body,
        params=dict(request.path_params),
        url=str(request.url),
        id=getattr(request.state, "request_id", None),
    )


def render_response(response: Mapping[str, Any]) -> Response:
    status = response.get("status", 200)
    body = response.get("body")
    if isinstance(body, str):
        return PlainTextResponse(content=body, status_code=status)
    return JSONResponse(content=body, status_code=status)


def _make_endpoint(bot: Bot):
    handler = bot.create_request_handler()

    async def endpoint(request: Request) -> Response:
        request_context = await build_request_context(request)
        body = request_context.body if isinstance(request_context.body, Mapping) else {}
        try:
            response = await handler(body, request_context)
        except ValueError as exc:
            if body:
                raise
            logger.info(f"Ignoring webhook request without body: {request.method} {request.url.path} ({exc})")
            return JSONResponse(content={"ok": True})

        if response is not None:
            return render_response(response)
        return JSONResponse(content={"ok": True})

    return endpoint


def bots_from_settings(
    settings: Settings,
    action: Any,
    *,
    error_action: Any = None,
    prefix: str = "/webhooks",
) -> dict[str, Bot]:
    """
    One Bot per enabled platform, mounted at ``<prefix>/<platform>``.

    All bots share the configured session store and, when enabled, one
    duplicate-delivery guard.
    """
    from relaybot.core.dedupe import InboundDedupe
    from relaybot.platforms.facebook import FacebookConnector
    from relaybot.platforms.slack import SlackConnector
    from relaybot.platforms.telegram import TelegramConnector
    from relaybot.platforms.viber import ViberConnector
    from relaybot.platforms.whatsapp import WhatsappConnector
    from relaybot.sessions import get_session_store

    connectors = []
    if settings.messenger_enabled:
        connectors.append(FacebookConnector.from_settings(settings))
    if settings.telegram_enabled:
        connectors.append(TelegramConnector.from_settings(settings))
    if settings.slack_enabled:
        connectors.append(SlackConnector.from_settings(settings))
    if settings.viber_enabled:
        connectors.append(ViberConnector.from_settings(settings))
    if settings.whatsapp_enabled:
        connectors.append(WhatsappConnector.from_settings(settings))

    store = get_session_store(settings.session)
    dedupe = InboundDedupe(ttl_minutes=settings.dedupe_ttl_minutes) if settings.dedupe_enabled else None

    bots: dict[str, Bot] = {}
    for connector in connectors:
        bot = Bot(connector, session_store=store, dedupe=dedupe).on_event(action)
        if error_action is not None:
            bot.on_error(error_action)
        bots[f"{prefix}/{connector.platform}"] = bot
    return bots


def create_app(bots: Mapping[str, Bot], *, settings: Settings | None = None) -> FastAPI:
    """Build a FastAPI app with a webhook route per ``{path: bot}`` entry."""
    settings = settings or get_settings()
    setup_logging(level=settings.log_level, use_json=settings.log_json or settings.is_production)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        for path, bot in bots.items():
            await bot.init_session_store()
            logger.info(f"Bot mounted: path={path}, platform={bot.connector.platform}")
        yield
        await close_all_sessions()
        for bot in bots.values():
            await bot.sessions.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="relaybot",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware, enabled=not settings.is_production, webhook_paths=frozenset(bots))
    app.add_middleware(RequestIDMiddleware)

    for path, bot in bots.items():
        app.add_api_route(
            path,
            _make_endpoint(bot),
            methods=["GET", "POST"],
            name=f"webhook_{bot.connector.platform}",
            include_in_schema=False,
        )

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    @app.get("/metrics")
    def metrics():
        return get_metrics_collector().get_metrics()

    return app


def run(app: FastAPI, host: str = "0.0.0.0", port: int = 8099, settings: Settings | None = None) -> None:
    import uvicorn

    settings = settings or get_settings()
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        access_log=not settings.is_production,
        server_header=False,
        date_header=False,
    )
