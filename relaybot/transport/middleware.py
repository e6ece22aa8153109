# relaybot/transport/middleware.py
"""
ASGI middleware for the webhook app.

Order (outermost first): request id, access log, error boundary. The id is
taken from ``X-Request-ID`` when a proxy supplied a sane one and is echoed
back on every response, including the 500 produced by the error boundary.
"""
import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from relaybot.infra.logging_config import LogContext, get_logger
from relaybot.infra.metrics import AppMetrics

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "-"


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request.state.request_id = incoming if _REQUEST_ID_RE.match(incoming) else uuid.uuid4().hex

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log and ``webhook_requests_total`` for webhook routes only."""

    def __init__(self, app: ASGIApp, enabled: bool = True, webhook_paths: frozenset = frozenset()):
        super().__init__(app)
        self.enabled = enabled
        self.webhook_paths = webhook_paths

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path not in self.webhook_paths:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        AppMetrics.webhook_request(path, response.status_code)
        if self.enabled or response.status_code >= 400:
            LogContext(logger, request_id=_request_id(request)).info(
                f"{request.method} {path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
                extra={"status_code": response.status_code, "duration_ms": round(elapsed_ms, 1)},
            )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn an exception escaping a route into a JSON 500."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            request_id = _request_id(request)
            LogContext(logger, request_id=request_id).error(
                f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "request_id": request_id},
            )
