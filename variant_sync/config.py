"""Variant stock sync configuration."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Environment-driven settings (``SHOPIFY_STORE_DOMAIN``, ``REDIS_URL``, ...)."""

    shopify_store_domain: str = ""
    shopify_access_token: str = ""
    shopify_api_version: str = "2024-10"
    shopify_webhook_secret: str = ""

    # Public base URL of this service, used for webhook registration
    app_url: str = ""

    # Webhook delivery dedup
    redis_url: str = "redis://localhost:6379/0"

    # Transport timeout (seconds). The sync engine sets none of its own.
    http_timeout: float = 30.0

    # Rate-limit retry policy
    retry_max_attempts: int = 5
    retry_base_delay: float = 2.0
    retry_max_delay: float = 30.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
