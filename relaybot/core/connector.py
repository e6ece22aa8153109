# relaybot/core/connector.py
"""
Connector contract -- one implementation per messaging platform.

A connector normalizes a webhook body into Events, derives the session
identity for each event, merges identity fields into the session, builds the
platform Context, and optionally gates the request in ``preprocess()``.
"""
from __future__ import annotations

import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping, Sequence

from relaybot.core.event import Event
from relaybot.core.session import Session

if TYPE_CHECKING:
    from relaybot.core.context import Context


@dataclass
class RequestContext:
    """Transport-neutral view of one inbound webhook request.

    ``raw_body`` is the exact unparsed body (needed for signature checks),
    ``body`` the parsed JSON or form document. Header names are lowercase.
    """
    method: str
    path: str = "/"
    query: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    raw_body: str = ""
    body: Any = None
    params: dict[str, str] = field(default_factory=dict)
    url: str = ""
    id: str | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())


@dataclass
class PreprocessResult:
    """Outcome of the pre-dispatch gate.

    When ``should_next`` is False the pipeline stops and ``response``
    (``{"status": int, "body": ...}``) is returned verbatim to the transport.
    """
    should_next: bool
    response: dict[str, Any] | None = None

    @classmethod
    def proceed(cls) -> "PreprocessResult":
        return cls(should_next=True)

    @classmethod
    def respond(cls, status: int, body: Any) -> "PreprocessResult":
        return cls(should_next=False, response={"status": status, "body": body})


def signatures_match(provided: str | None, expected: str) -> bool:
    """Constant-time comparison of a header value against the expected one.

    Compared as UTF-8 bytes: header values may hold any character.
    """
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def verification_failure(
    message: str,
    request_context: RequestContext,
    header_names: Iterable[str],
    *,
    status: int = 400,
) -> PreprocessResult:
    """Canned short-circuit response for a failed authenticity check."""
    headers = {
        name: request_context.headers[name]
        for name in header_names
        if name in request_context.headers
    }
    return PreprocessResult.respond(status, {
        "error": {
            "message": message,
            "request": {
                "headers": headers,
                "rawBody": request_context.raw_body,
            },
        },
    })


class Connector(ABC):
    platform: ClassVar[str]

    @property
    def client(self) -> Any:
        return getattr(self, "_client", None)

    @abstractmethod
    def map_request_to_events(self, body: Mapping[str, Any]) -> Sequence[Event]:
        """Normalize a webhook body into events; unclassifiable entries are dropped."""

    @abstractmethod
    async def get_unique_session_key(self, event: Event) -> str | None:
        """Stable identity for session partitioning, or None for a stateless event."""

    @abstractmethod
    async def update_session(self, session: Session, event: Event) -> None:
        """Merge identity fields from the event into the session (write-once)."""

    @abstractmethod
    async def create_context(
        self,
        *,
        event: Event,
        session: Session | None,
        initial_state: Mapping[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> "Context":
        """Build the platform Context passed to route actions."""

    async def preprocess(self, request_context: RequestContext) -> PreprocessResult:
        return PreprocessResult.proceed()

    async def get_user_profile(self, event: Event) -> dict[str, Any] | None:
        """Fetch platform profile fields for the event's sender, if supported."""
        return None
