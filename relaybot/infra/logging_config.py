# relaybot/infra/logging_config.py
"""
Logging setup: JSON lines in production, colored single lines in development.

Records may carry the per-event context fields listed in ``CONTEXT_FIELDS``
(attached through ``LogContext``); both formatters render them, with session
keys masked.
"""
import json
import logging
import sys
from datetime import datetime, timezone

CONTEXT_FIELDS = ("platform", "session_key", "event_id", "request_id")

# Short names used by the console formatter.
_CONSOLE_LABELS = {"platform": "platform", "session_key": "session", "event_id": "event", "request_id": "req"}

_QUIET_LOGGERS = ("uvicorn.access", "aiohttp.access", "twilio.http_client", "pymongo", "asyncio")


def mask_identity(value: str | None) -> str:
    """Mask a session key or user id for logging.

    ``"whatsapp:+12345678900"`` -> ``"whatsapp:+123***8900"``. The platform
    prefix of a session key is kept so log lines stay greppable.
    """
    if not value:
        return "***"
    prefix, sep, ident = value.rpartition(":")
    if not sep:
        prefix, ident = "", value
    else:
        prefix = prefix + sep
    if len(ident) <= 6:
        return f"{prefix}***"
    return f"{prefix}{ident[:4]}***{ident[-4:]}"


def record_context(record: logging.LogRecord) -> dict:
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is None:
            continue
        context[name] = mask_identity(str(value)) if name == "session_key" else value
    return context


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            **record_context(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        pairs = " ".join(f"{_CONSOLE_LABELS[k]}={v}" for k, v in record_context(record).items())
        context = f" [{pairs}]" if pairs else ""

        line = f"{clock} {color}{record.levelname:<8}{self.RESET} {record.name}{context}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", use_json: bool = False) -> None:
    """Replace root handlers with one stdout handler using the chosen format."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter())
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured: level={level}, json={use_json}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext(logging.LoggerAdapter):
    """Logger adapter attaching per-event context; ``None`` values are omitted.

        log = LogContext(logger, platform="slack", session_key=key)
        log.info("Dispatching event")
    """

    def __init__(self, logger: logging.Logger, **context):
        super().__init__(logger, {k: v for k, v in context.items() if v is not None})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs
