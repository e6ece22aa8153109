# relaybot/core/session.py
"""
Session documents and the write-once identity guard.

A session is a plain JSON-compatible dict keyed ``"<platform>:<identity>"``
in a SessionStore. ``user`` and ``page`` are identity fields: once populated
they are never overwritten for the lifetime of the session.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from relaybot.infra.logging_config import get_logger

logger = get_logger(__name__)

Session = Dict[str, Any]

IDENTITY_FIELDS = ("user", "page")


def make_session_key(platform: str, identity: str) -> str:
    return f"{platform}:{identity}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def assign_once(session: Session, field: str, value: dict[str, Any]) -> bool:
    """
    Write-once guard for identity fields.

    Stores ``value`` (stamped with ``_updatedAt``) under ``field`` only if the
    field is unset. Returns True if the value was written, False if an
    existing value was kept.
    """
    if session.get(field):
        if any(session[field].get(k) != v for k, v in value.items() if k != "_updatedAt"):
            logger.debug("Rejected overwrite of session field '%s'", field)
        return False

    document = dict(value)
    document.setdefault("_updatedAt", utc_now_iso())
    session[field] = document
    return True
