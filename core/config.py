"""
Application configuration using Pydantic Settings.

This module provides typed and validated settings for the application,
with support for environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RYE_STAGING_URL = "https://staging.api.rye.com"
RYE_PRODUCTION_URL = "https://api.rye.com"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class GeminiSettings(BaseSettings):
    """Google Gemini API settings."""

    model_config = SettingsConfigDict(env_prefix="GEMINI_")

    api_key: SecretStr = Field(default=SecretStr(""), description="Gemini API Key")
    model: str = Field(default="gemini-2.0-flash", description="Gemini model to use")

    @property
    def is_configured(self) -> bool:
        """Check if Gemini API key is configured."""
        return bool(self.api_key.get_secret_value())


class CatalogSettings(BaseSettings):
    """Product catalog source settings."""

    model_config = SettingsConfigDict(env_prefix="CATALOG_")

    source: Literal["amazon", "mock"] = Field(
        default="amazon",
        description="Catalog adapter used by the search tool",
    )
    base_url: str = Field(
        default="https://www.amazon.com",
        description="Marketplace origin used for search and relative product URLs",
    )
    timeout: float = Field(default=15.0, description="Request timeout in seconds", gt=0)
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="Browser user agent")


class RyeSettings(BaseSettings):
    """Rye commerce API settings."""

    model_config = SettingsConfigDict(env_prefix="RYE_")

    api_key: SecretStr = Field(default=SecretStr(""), description="Rye API key")
    environment: Literal["staging", "production"] = Field(
        default="staging", description="Rye environment"
    )
    api_base: str | None = Field(
        default=None,
        description="Explicit API base URL (takes precedence over environment)",
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds", gt=0)

    @property
    def base_url(self) -> str:
        """Resolve the API base URL for the configured environment."""
        if self.api_base:
            return self.api_base.rstrip("/")
        if self.environment == "production":
            return RYE_PRODUCTION_URL
        return RYE_STAGING_URL

    @property
    def is_configured(self) -> bool:
        """Check if the Rye API key is configured."""
        return bool(self.api_key.get_secret_value())


class ChatSettings(BaseSettings):
    """Conversation loop settings."""

    model_config = SettingsConfigDict(env_prefix="CHAT_")

    max_steps: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum reasoning/tool rounds per assistant turn",
    )
    enhance_products: bool = Field(
        default=True,
        description="Generate badges and review summaries for search results",
    )


class CheckoutSettings(BaseSettings):
    """Checkout polling settings."""

    model_config = SettingsConfigDict(env_prefix="CHECKOUT_")

    offer_poll_interval: float = Field(default=2.0, ge=0, description="Seconds between offer polls")
    order_poll_interval: float = Field(default=1.0, ge=0, description="Seconds between order polls")
    max_poll_attempts: int = Field(
        default=120, ge=1, description="Maximum polls before a checkout is treated as stuck"
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides environment-specific
    settings loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")
    secret_key: SecretStr = Field(
        default=SecretStr("django-insecure-change-me-in-production"),
        description="Django secret key",
    )
    allowed_hosts: list[str] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"],
        description="Allowed hosts",
    )

    # Sub-settings
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    rye: RyeSettings = Field(default_factory=RyeSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    checkout: CheckoutSettings = Field(default_factory=CheckoutSettings)

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: str | list[str]) -> list[str]:
        """Parse allowed hosts from comma-separated string or list."""
        if isinstance(v, str):
            return [h.strip() for h in v.split(",") if h.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Configured Settings instance.
    """
    return Settings()
