# relaybot/errors.py
"""Exception taxonomy shared by connectors, stores and the bot pipeline."""
from __future__ import annotations


class RelayBotError(Exception):
    """Base class for every error raised by relaybot."""


class ConfigurationError(RelayBotError, ValueError):
    """Missing or inconsistent identity/credential configuration.

    Raised synchronously from constructors, before any network I/O.
    """


class MissingHandlerError(ConfigurationError):
    """``create_request_handler()`` was called before ``on_event()``."""


class SessionStoreNotInitializedError(RelayBotError, RuntimeError):
    """A store backend was used before ``init()`` completed."""


class IdentityResolutionError(RelayBotError):
    """A session identity could not be resolved (e.g. comment thread walk)."""


class PlatformApiError(RelayBotError):
    """Error returned by an outbound platform API call.

    Attributes:
        platform:  Platform name ("messenger", "slack", ...).
        status:    HTTP status code (0 for connection-level errors).
        retryable: Whether a caller could reasonably retry.
    """

    def __init__(self, platform: str, status: int, message: str, *, retryable: bool = False):
        self.platform = platform
        self.status = status
        self.retryable = retryable
        super().__init__(f"{platform} API error {status}: {message}")
