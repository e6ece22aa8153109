# relaybot/config.py
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from relaybot.infra.logging_config import get_logger

logger = get_logger(__name__)


# ============================================================================
# SESSION STORE CONFIGS (discriminated on ``driver``)
# ============================================================================

class _StoreConfigBase(BaseModel):
    # Minutes of inactivity before a session reads as absent. 0 = never expire.
    expires_in: int = Field(default=0, ge=0)


class MemoryStoreConfig(_StoreConfigBase):
    driver: Literal["memory"] = "memory"
    max_size: int = Field(default=500, gt=0)


class FileStoreConfig(_StoreConfigBase):
    driver: Literal["file"] = "file"
    dirname: str = ".sessions"


class RedisStoreConfig(_StoreConfigBase):
    driver: Literal["redis"] = "redis"
    host: str = "localhost"
    port: int = 6379
    password: str | None = None
    db: int = 0
    socket_timeout: float = 5.0
    key_prefix: str = "session:"


class MongoStoreConfig(_StoreConfigBase):
    driver: Literal["mongo"] = "mongo"
    url: str = "mongodb://localhost:27017"
    collection_name: str = "sessions"
    timeout_ms: int = 5000


class PostgresStoreConfig(_StoreConfigBase):
    driver: Literal["postgres"] = "postgres"
    dsn: str = "postgresql://postgres@localhost:5432/postgres"
    table: str = "bot_sessions"
    command_timeout: float = 10.0


StoreConfig = Annotated[
    Union[
        MemoryStoreConfig,
        FileStoreConfig,
        RedisStoreConfig,
        MongoStoreConfig,
        PostgresStoreConfig,
    ],
    Field(discriminator="driver"),
]


# ============================================================================
# APPLICATION SETTINGS
# ============================================================================

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"
    log_json: bool = False

    # Session store, e.g. SESSION__DRIVER=redis SESSION__HOST=cache SESSION__EXPIRES_IN=60
    session: StoreConfig = Field(default_factory=MemoryStoreConfig)

    # Duplicate delivery guard
    dedupe_enabled: bool = True
    dedupe_ttl_minutes: int = 60 * 24

    # Messenger / Facebook (Graph API)
    messenger_app_id: str | None = None
    messenger_app_secret: str | None = None
    messenger_access_token: str | None = None
    messenger_verify_token: str | None = None
    messenger_skip_profile: bool = False
    graph_api_version: str = "v20.0"
    facebook_comment_cache_minutes: int = 60 * 24 * 2  # 2 days

    # Telegram
    telegram_access_token: str | None = None
    telegram_secret_token: str | None = None  # X-Telegram-Bot-Api-Secret-Token

    # Slack
    slack_access_token: str | None = None
    slack_signing_secret: str | None = None

    # Viber
    viber_access_token: str | None = None
    viber_sender_name: str = "bot"

    # WhatsApp via Twilio
    whatsapp_account_sid: str | None = None
    whatsapp_auth_token: str | None = None
    whatsapp_phone_number: str | None = None  # e.g. "whatsapp:+14155238886"

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def messenger_enabled(self) -> bool:
        return bool(self.messenger_access_token and self.messenger_app_secret)

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_access_token)

    @property
    def slack_enabled(self) -> bool:
        return bool(self.slack_access_token)

    @property
    def viber_enabled(self) -> bool:
        return bool(self.viber_access_token)

    @property
    def whatsapp_enabled(self) -> bool:
        return bool(self.whatsapp_account_sid and self.whatsapp_auth_token)

    def validate_required_for_production(self) -> list[str]:
        """Validate that verification secrets exist for every enabled channel in prod"""
        if not self.is_production:
            return []

        missing = []
        required_fields = []

        if self.messenger_enabled:
            required_fields.append(("messenger_verify_token", self.messenger_verify_token))
        if self.telegram_enabled:
            required_fields.append(("telegram_secret_token", self.telegram_secret_token))
        if self.slack_enabled:
            required_fields.append(("slack_signing_secret", self.slack_signing_secret))
        if self.whatsapp_enabled:
            required_fields.append(("whatsapp_phone_number", self.whatsapp_phone_number))

        for field_name, value in required_fields:
            if not value:
                missing.append(field_name)

        return missing


def warn_on_risky_config(s: Settings) -> list[str]:
    warnings: list[str] = []

    if s.session.driver == "memory" and s.is_production:
        warnings.append("prod: session driver is 'memory' (sessions are lost on restart).")

    if s.session.expires_in == 0:
        warnings.append("session.expires_in=0: sessions never expire.")

    if s.messenger_enabled and not s.messenger_verify_token:
        warnings.append("messenger: verify token is not set (webhook subscription handshake will fail).")

    if s.telegram_enabled and not s.telegram_secret_token:
        warnings.append("telegram: secret token is not set (webhook requests are not authenticated).")

    if s.slack_enabled and not s.slack_signing_secret:
        warnings.append("slack: signing secret is not set (webhook requests are not authenticated).")

    if not s.dedupe_enabled:
        warnings.append("dedupe_enabled=False: retried webhook deliveries will be dispatched twice.")

    return warnings


def validate_or_warn(s: Settings) -> None:
    """
    In prod: enforce required settings (hard fail).
    In non-prod: warn only.
    """
    missing = s.validate_required_for_production()

    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")

    for msg in warn_on_risky_config(s):
        logger.warning(f"[config] {msg}")


def get_settings() -> Settings:
    """Load settings from the environment and validate them."""
    s = Settings()
    validate_or_warn(s)
    return s
