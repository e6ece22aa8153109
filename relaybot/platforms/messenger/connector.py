# relaybot/platforms/messenger/connector.py
from __future__ import annotations

from typing import Any, Mapping, Sequence

from relaybot.clients.graph import GraphClient
from relaybot.core.connector import Connector, PreprocessResult, RequestContext
from relaybot.core.session import Session, assign_once
from relaybot.infra.logging_config import get_logger, mask_identity
from relaybot.platforms.graph import GraphWebhook, MapPageToAccessToken, entry_items, iter_entries
from relaybot.platforms.messenger.context import MessengerContext
from relaybot.platforms.messenger.event import MessengerEvent

logger = get_logger(__name__)


class MessengerConnector(Connector):
    """
    Messenger Platform webhooks (``object == "page"``).

    Every item of ``entry[].messaging`` and ``entry[].standby`` becomes one
    MessengerEvent. Echoes are keyed by the recipient (the user the page
    wrote to), everything else by the sender.
    """

    platform = "messenger"

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
        webhook: GraphWebhook | None = None,
    ) -> None:
        self._webhook = webhook or GraphWebhook(
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
        self._skip_profile = skip_profile

    @classmethod
    def from_settings(cls, settings, **overrides: Any) -> "MessengerConnector":
        options = {
            "access_token": settings.messenger_access_token,
            "app_secret": settings.messenger_app_secret,
            "verify_token": settings.messenger_verify_token,
            "app_id": settings.messenger_app_id,
            "skip_profile": settings.messenger_skip_profile,
            "graph_api_version": settings.graph_api_version,
        }
        options.update(overrides)
        return cls(**options)

    @property
    def webhook(self) -> GraphWebhook:
        return self._webhook

    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[MessengerEvent]:
        if body.get("object") != "page":
            return []

        events: list[MessengerEvent] = []
        for entry in iter_entries(body):
            events.extend(self.map_entry_to_events(entry))
        return events

    def map_entry_to_events(self, entry: Mapping[str, Any]) -> list[MessengerEvent]:
        """Events for one ``entry`` item; entries without messaging/standby yield none."""
        page_id = entry.get("id")
        events = [
            MessengerEvent(item, page_id=page_id, is_standby=False)
            for item in entry_items(entry, "messaging")
        ]
        events.extend(
            MessengerEvent(item, page_id=page_id, is_standby=True)
            for item in entry_items(entry, "standby")
        )
        return events

    async def get_unique_session_key(self, event: MessengerEvent) -> str | None:
        if event.is_echo:
            return event.recipient_id
        return event.sender_id

    async def update_session(self, session: Session, event: MessengerEvent) -> None:
        if event.page_id:
            assign_once(session, "page", {"id": event.page_id})

    async def get_user_profile(self, event: MessengerEvent) -> dict[str, Any] | None:
        if self._skip_profile:
            return None

        user_id = await self.get_unique_session_key(event)
        if not user_id:
            return None

        client, _ = await self._webhook.client_for_page(event.page_id)
        profile = await client.get_user_profile(user_id)
        logger.debug(f"Fetched Messenger profile: user={mask_identity(user_id)}")
        return profile

    async def create_context(
        self,
        *,
        event: MessengerEvent,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> MessengerContext:
        client, custom_access_token = await self._webhook.client_for_page(event.page_id)
        return MessengerContext(
            client=client,
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
            custom_access_token=custom_access_token,
            app_id=self._app_id,
        )

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        return await self._webhook.preprocess(request_context)
