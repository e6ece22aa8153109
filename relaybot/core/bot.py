# relaybot/core/bot.py
"""
Bot -- the per-request orchestration pipeline.

For every inbound body:

1. ``connector.preprocess`` may short-circuit with a canned response; the
   store is not touched in that case.
2. The session store is initialized once (single-flight).
3. ``connector.map_request_to_events`` normalizes the body.
4. Each event, in order: duplicate check, session key, ``store.read``,
   ``connector.update_session``, profile enrichment (first run only),
   ``connector.create_context``, plugins, handler, ``store.write``.

A handler error is passed to the error handler when one is registered, and
otherwise propagates to the transport.
"""
from __future__ import annotations

import asyncio
import inspect
from copy import deepcopy
from typing import Any, Awaitable, Callable, Mapping

from relaybot.core.connector import Connector, RequestContext
from relaybot.core.context import Context
from relaybot.core.dedupe import InboundDedupe
from relaybot.core.event import Event
from relaybot.core.router import Action, Props, run_action
from relaybot.core.session import Session, assign_once, make_session_key
from relaybot.errors import ConfigurationError, MissingHandlerError
from relaybot.infra.logging_config import LogContext, get_logger
from relaybot.infra.metrics import AppMetrics
from relaybot.sessions.base import SessionStore
from relaybot.sessions.memory import MemorySessionStore

logger = get_logger(__name__)

Plugin = Callable[[Context], Any]
RequestHandler = Callable[..., Awaitable[dict[str, Any] | None]]


def _as_action(action: Any) -> Action:
    if not callable(action):
        raise TypeError(f"Expected an action, got {action!r}")
    return action


class Bot:
    def __init__(
        self,
        connector: Connector,
        session_store: SessionStore | None = None,
        dedupe: InboundDedupe | None = None,
    ) -> None:
        if connector is None:
            raise ConfigurationError("Bot: connector is required")

        self._connector = connector
        self._sessions = session_store or MemorySessionStore(max_size=500)
        self._dedupe = dedupe
        self._initialized = False
        self._init_lock = asyncio.Lock()

        self._handler: Action | None = None
        self._error_handler: Action | None = None
        self._initial_state: dict[str, Any] = {}
        self._plugins: list[Plugin] = []

    @property
    def connector(self) -> Connector:
        return self._connector

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def handler(self) -> Action | None:
        return self._handler

    @property
    def initialized(self) -> bool:
        return self._initialized

    def on_event(self, action: Any) -> "Bot":
        self._handler = _as_action(action)
        return self

    def on_error(self, action: Any) -> "Bot":
        self._error_handler = _as_action(action)
        return self

    def set_initial_state(self, state: Mapping[str, Any]) -> "Bot":
        self._initial_state = deepcopy(dict(state))
        return self

    def use(self, plugin: Plugin) -> "Bot":
        self._plugins.append(plugin)
        return self

    async def init_session_store(self) -> None:
        """Initialize the session store (and dedupe store) exactly once."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self._sessions.init()
            if self._dedupe is not None:
                await self._dedupe.init()
            self._initialized = True

    def create_request_handler(self) -> RequestHandler:
        if self._handler is None:
            raise MissingHandlerError("Bot: missing on_event handler, call on_event() first")

        async def request_handler(
            body: Mapping[str, Any] | None,
            request_context: RequestContext | None = None,
        ) -> dict[str, Any] | None:
            if request_context is not None:
                result = await self._connector.preprocess(request_context)
                if not result.should_next:
                    return result.response

            if not body:
                raise ValueError("Bot.create_request_handler: missing argument `body`.")

            await self.init_session_store()

            events = self._connector.map_request_to_events(body)
            for event in events:
                await self._handle_event(event, request_context)
            return None

        return request_handler

    async def _handle_event(self, event: Event, request_context: RequestContext | None) -> None:
        platform = self._connector.platform
        AppMetrics.event_received(platform)

        if self._dedupe is not None and await self._dedupe.seen_or_mark(platform, event.id):
            AppMetrics.duplicate_delivery(platform)
            return

        with AppMetrics.track_processing_time(platform):
            await self._process_event(event, request_context)

    async def _process_event(self, event: Event, request_context: RequestContext | None) -> None:
        connector = self._connector
        context: Context | None = None
        session_key: str | None = None
        session: Session = {}

        try:
            identity = await connector.get_unique_session_key(event)
            if identity:
                session_key = make_session_key(connector.platform, identity)
                # Not serialized per key: for concurrent requests on one key the last write wins.
                session = await self._sessions.read(session_key) or {}
                if not session:
                    AppMetrics.session_created(connector.platform)

            log = LogContext(
                logger,
                platform=connector.platform,
                session_key=session_key,
                event_id=str(event.id) if event.id is not None else None,
                request_id=request_context.id if request_context else None,
            )

            await connector.update_session(session, event)

            if identity and not session.get("user"):
                profile = await self._fetch_profile(event) or {}
                assign_once(session, "user", {**profile, "id": profile.get("id") or identity})

            context = await connector.create_context(
                event=event,
                session=session,
                initial_state=self._initial_state,
                request_context=request_context,
            )

            for plugin in self._plugins:
                result = plugin(context)
                if inspect.isawaitable(result):
                    await result

            log.debug("Dispatching event")
            await run_action(self._handler, context, Props())
        except Exception as exc:
            if self._error_handler is None or context is None:
                raise
            logger.error(
                f"Handler error: platform={connector.platform}, error={type(exc).__name__}: {exc}",
                exc_info=True,
            )
            AppMetrics.handler_error(connector.platform)
            await run_action(self._error_handler, context, Props(error=exc))

        if session_key is not None:
            await self._sessions.write(session_key, session)

    async def _fetch_profile(self, event: Event) -> dict[str, Any] | None:
        try:
            return await self._connector.get_user_profile(event)
        except Exception as exc:
            logger.warning(
                f"Failed to fetch user profile: platform={self._connector.platform}, "
                f"error={type(exc).__name__}: {exc}"
            )
            return None
