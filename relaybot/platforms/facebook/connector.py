# relaybot/platforms/facebook/connector.py
from __future__ import annotations

from typing import Any, Mapping, Sequence, Union

from relaybot.clients.graph import GraphClient
from relaybot.core.connector import Connector, PreprocessResult, RequestContext
from relaybot.core.context import Context
from relaybot.core.session import Session, assign_once
from relaybot.errors import IdentityResolutionError
from relaybot.infra.logging_config import get_logger
from relaybot.platforms.facebook.context import FacebookContext
from relaybot.platforms.facebook.event import FacebookEvent
from relaybot.platforms.facebook.threads import CommentThreadResolver
from relaybot.platforms.graph import GraphWebhook, MapPageToAccessToken, entry_items, iter_entries
from relaybot.platforms.messenger.connector import MessengerConnector
from relaybot.platforms.messenger.event import MessengerEvent
from relaybot.sessions.base import SessionStore
from relaybot.sessions.memory import MemorySessionStore

logger = get_logger(__name__)

AnyFacebookEvent = Union[FacebookEvent, MessengerEvent]

COMMENT_CACHE_MINUTES = 60 * 24 * 2


class FacebookConnector(Connector):
    """
    Page webhooks carrying both feed changes and Messenger events.

    ``entry[].changes`` items become FacebookEvents; ``messaging``/``standby``
    entries are handed to an owned MessengerConnector, which also handles
    their session keys, profile lookups and contexts. Comment events are
    keyed by their thread root (see ``CommentThreadResolver``).
    """

    platform = "facebook"

    def __init__(
        self,
        *,
        access_token: str | None = None,
        app_secret: str | None = None,
        verify_token: str | None = None,
        app_id: str | None = None,
        client: GraphClient | None = None,
        map_page_to_access_token: MapPageToAccessToken | None = None,
        skip_profile: bool = False,
        graph_api_version: str = "v20.0",
        comment_cache: SessionStore | None = None,
        comment_cache_minutes: int = COMMENT_CACHE_MINUTES,
    ) -> None:
        self._webhook = GraphWebhook(
            self.platform,
            app_secret=app_secret,
            access_token=access_token,
            verify_token=verify_token,
            client=client,
            map_page_to_access_token=map_page_to_access_token,
            graph_api_version=graph_api_version,
        )
        self._client = self._webhook.client
        self._app_id = app_id
        self._messenger = MessengerConnector(
            app_id=app_id,
            skip_profile=skip_profile,
            webhook=self._webhook,
        )
        self._threads = CommentThreadResolver(
            self._client,
            comment_cache or MemorySessionStore(max_size=10000, expires_in=comment_cache_minutes),
        )

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "FacebookConnector":
        options = {
            "access_token": settings.messenger_access_token,
            "app_secret": settings.messenger_app_secret,
            "verify_token": settings.messenger_verify_token,
            "app_id": settings.messenger_app_id,
            "skip_profile": settings.messenger_skip_profile,
            "graph_api_version": settings.graph_api_version,
            "comment_cache_minutes": settings.facebook_comment_cache_minutes,
        }
        options.update(overrides)
        return cls(**options)

    @property
    def messenger(self) -> MessengerConnector:
        return self._messenger

    @property
    def threads(self) -> CommentThreadResolver:
        return self._threads

    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[AnyFacebookEvent]:
        if body.get("object") != "page":
            return []

        events: list[AnyFacebookEvent] = []
        for entry in iter_entries(body):
            events.extend(self._messenger.map_entry_to_events(entry))
            events.extend(
                FacebookEvent(change, page_id=entry.get("id"), timestamp=entry.get("time"))
                for change in entry_items(entry, "changes")
            )
        return events

    async def get_unique_session_key(self, event: AnyFacebookEvent) -> str | None:
        if isinstance(event, MessengerEvent):
            return await self._messenger.get_unique_session_key(event)

        if not event.is_comment or not event.comment_id:
            return None

        try:
            return await self._threads.resolve(event.comment_id, event.parent_id, event.post_id)
        except IdentityResolutionError as exc:
            logger.warning(f"Comment thread resolution aborted, handling as sessionless: {exc}")
            return None

    async def update_session(self, session: Session, event: AnyFacebookEvent) -> None:
        if isinstance(event, MessengerEvent):
            await self._messenger.update_session(session, event)
            return

        if event.page_id:
            assign_once(session, "page", {"id": event.page_id})
        sender = event.value.get("from")
        if isinstance(sender, Mapping) and sender.get("id"):
            assign_once(session, "user", dict(sender))

    async def get_user_profile(self, event: AnyFacebookEvent) -> dict[str, Any] | None:
        if isinstance(event, MessengerEvent):
            return await self._messenger.get_user_profile(event)
        return None

    async def create_context(
        self,
        *,
        event: AnyFacebookEvent,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> Context:
        if isinstance(event, MessengerEvent):
            return await self._messenger.create_context(
                event=event,
                session=session,
                initial_state=initial_state,
                request_context=request_context,
            )

        client, custom_access_token = await self._webhook.client_for_page(event.page_id)
        return FacebookContext(
            client=client,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
            custom_access_token=custom_access_token,
        )

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        return await self._webhook.preprocess(request_context)
