# relaybot/core/context.py
"""
Context -- the event-bound facade handed to route actions.

Each platform context declares the outbound operations it supports in
``capabilities``. ``call()`` dispatches to a supported operation and routes
everything else through ``send_fallback()``, the single default behaviour
for operations a platform cannot perform.
"""
from __future__ import annotations

import json
from copy import deepcopy
from typing import Any, ClassVar, Mapping

from relaybot.core.connector import RequestContext
from relaybot.core.event import Event
from relaybot.core.session import Session
from relaybot.infra.logging_config import get_logger

logger = get_logger(__name__)

STATE_FIELD = "_state"


class Context:
    platform: ClassVar[str] = "unknown"
    capabilities: ClassVar[frozenset[str]] = frozenset({"send_text"})

    def __init__(
        self,
        *,
        client: Any,
        event: Event,
        session: Session | None = None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
        custom_access_token: str | None = None,
    ) -> None:
        self._client = client
        self._event = event
        self._session = session
        self._request_context = request_context
        self._custom_access_token = custom_access_token

        if session is not None:
            if STATE_FIELD not in session:
                session[STATE_FIELD] = deepcopy(dict(initial_state or {}))
            self._state = session[STATE_FIELD]
        else:
            self._state = deepcopy(dict(initial_state or {}))
        self._initial_state = deepcopy(dict(initial_state or {}))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} platform={self.platform} event={self._event!r}>"

    @property
    def client(self) -> Any:
        return self._client

    @property
    def event(self) -> Event:
        return self._event

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def request_context(self) -> RequestContext | None:
        return self._request_context

    @property
    def custom_access_token(self) -> str | None:
        return self._custom_access_token

    @property
    def state(self) -> dict[str, Any]:
        return self._state

    def set_state(self, partial: Mapping[str, Any]) -> None:
        """Shallow-merge ``partial`` into the conversation state."""
        self._state.update(partial)

    def reset_state(self) -> None:
        self._state.clear()
        self._state.update(deepcopy(self._initial_state))

    async def send_text(self, text: str, **options: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not implement send_text")

    def supports(self, operation: str) -> bool:
        return operation in self.capabilities

    async def call(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke a declared capability, or fall back to a text dump."""
        if self.supports(operation):
            return await getattr(self, operation)(*args, **kwargs)
        return await self.send_fallback(operation, *args, **kwargs)

    async def send_fallback(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        """Render an unsupported operation and its arguments as plain text."""
        logger.warning(
            "%s: '%s' is not supported on %s, sending text fallback",
            type(self).__name__, operation, self.platform,
        )
        rendered = json.dumps(
            {"args": list(args), "kwargs": kwargs}, default=str, ensure_ascii=False,
        )
        return await self.send_text(f"{operation}: {rendered}")
