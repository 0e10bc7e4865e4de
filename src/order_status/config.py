"""Application configuration via pydantic-settings BaseSettings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings for environment-driven configuration.

    Read once at startup and treated as read-only afterwards.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    shopify_domain: str | None = None
    shopify_admin_token: str | None = None
    shopify_api_version: str = "2025-10"

    slack_bot_token: str | None = None
    slack_signing_secret: str | None = None

    # When unset, messages from every channel are eligible
    order_channel_id: str | None = None

    http_timeout_seconds: float = 10.0
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
