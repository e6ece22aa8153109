# relaybot/core/event.py
"""
Event base class.

An Event wraps exactly one platform-native payload fragment plus the time it
was received. Accessors are pure functions of the raw fragment: classifiers
return ``False`` and extractors return ``None`` when they do not apply.
"""
from __future__ import annotations

import time
from typing import Any, Mapping


def dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, (list, tuple)) or len(current) <= step:
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


class Event:
    """Immutable classified view over one inbound payload fragment."""

    __slots__ = ("_raw_event", "_received_at")

    platform: str = "unknown"

    def __init__(self, raw_event: Mapping[str, Any], *, received_at: int | None = None):
        object.__setattr__(self, "_raw_event", raw_event)
        object.__setattr__(
            self, "_received_at",
            received_at if received_at is not None else int(time.time() * 1000),
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"

    @property
    def raw_event(self) -> Mapping[str, Any]:
        """Underlying platform payload fragment (never mutated)."""
        return self._raw_event

    @property
    def received_at(self) -> int:
        """Capture time in epoch milliseconds."""
        return self._received_at

    @property
    def timestamp(self) -> int:
        """Platform timestamp in epoch milliseconds, falling back to capture time."""
        return self._received_at

    @property
    def id(self) -> str | None:
        """Platform delivery id used for duplicate detection."""
        return None

    @property
    def is_message(self) -> bool:
        return False

    @property
    def is_text(self) -> bool:
        return False

    @property
    def text(self) -> str | None:
        return None

    @property
    def is_payload(self) -> bool:
        return False

    @property
    def payload(self) -> str | None:
        return None
