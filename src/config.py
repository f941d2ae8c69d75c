"""
Configuration for the Contest Hub content API.

Settings are read from the environment (and ``.env``) by pydantic-settings,
grouped by concern, and validated once at startup:

    from src.config import get_settings

    page_size = get_settings().content.content_page_size
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


class SecuritySettings(BaseSettings):
    """Deployment mode, identity resolution and CORS."""

    model_config = _ENV_CONFIG

    environment: Literal["development", "staging", "production"] = "development"
    dev_mode: bool = Field(
        default=False,
        description="Requests without a valid API key act as the development user",
    )
    dev_user_role: Literal["user", "admin"] = "user"
    api_key_storage_path: str = Field(
        default="./data/api_keys.json",
        description="JSON file holding hashed API keys",
    )
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        description="Comma-separated CORS origins",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


class ContentSettings(BaseSettings):
    """Listing page size and preview length."""

    model_config = _ENV_CONFIG

    content_page_size: int = Field(default=12, ge=1, le=100)
    content_preview_length: int = Field(
        default=200,
        ge=1,
        description="Characters of plain text kept in list-view bodies",
    )


class StorageSettings(BaseSettings):
    """Which document store backs the content collection."""

    model_config = _ENV_CONFIG

    content_storage_backend: Literal["memory", "redis"] = "memory"
    content_key_prefix: str = Field(
        default="contesthub:contents:",
        description="Prefix for every content key in Redis",
    )


class RedisSettings(BaseSettings):
    model_config = _ENV_CONFIG

    redis_url: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.redis_url)


class LoggingSettings(BaseSettings):
    model_config = _ENV_CONFIG

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format_json: bool = Field(
        default=False,
        description="JSON log lines outside production too",
    )
    request_logging_enabled: bool = True


class SentrySettings(BaseSettings):
    """Error reporting. Disabled unless ``SENTRY_DSN`` is set."""

    model_config = _ENV_CONFIG

    sentry_dsn: Optional[str] = None
    sentry_environment: str = "development"
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    sentry_release: str = "contest-hub@1.0.0"
    server_name: str = "contest-hub-api"

    @property
    def is_configured(self) -> bool:
        return bool(self.sentry_dsn)


class Settings(BaseSettings):
    """All configuration groups."""

    model_config = _ENV_CONFIG

    security: SecuritySettings = Field(default_factory=SecuritySettings)
    content: ContentSettings = Field(default_factory=ContentSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    @property
    def is_production(self) -> bool:
        return self.security.is_production

    @property
    def is_dev_mode(self) -> bool:
        return self.security.dev_mode

    def get_config_summary(self) -> dict:
        """Configuration state for logs and /config-status; never includes secrets."""
        return {
            "environment": self.security.environment,
            "dev_mode": self.is_dev_mode,
            "storage_backend": self.storage.content_storage_backend,
            "redis_configured": self.redis.is_configured,
            "sentry_configured": self.sentry.is_configured,
            "page_size": self.content.content_page_size,
            "preview_length": self.content.content_preview_length,
            "allowed_origins": self.security.origins_list,
            "log_level": self.logging.log_level,
        }


@lru_cache()
def get_settings() -> Settings:
    """Settings singleton; see ``reload_settings``."""
    return Settings()


def reload_settings() -> Settings:
    """Re-read the environment, e.g. after a test changes it."""
    get_settings.cache_clear()
    return get_settings()
