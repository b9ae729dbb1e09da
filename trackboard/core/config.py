"""
Application configuration models and helpers.

Centralizes settings management so the API routes, the token manager and the
Hubstaff client share a consistent configuration surface.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HubstaffSettings(BaseSettings):
    """Configuration required for interacting with the Hubstaff API."""

    model_config = SettingsConfigDict(
        env_prefix="HUBSTAFF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    org_id: Optional[str] = Field(
        None,
        description="Organization whose members, projects and activities are read.",
    )
    refresh_token: Optional[str] = Field(
        None,
        description="Bootstrap refresh token used when no token has been persisted yet.",
    )
    api_base_url: str = Field("https://api.hubstaff.com/v2")
    auth_url: str = Field("https://account.hubstaff.com/access_tokens")
    cache_ttl_seconds: int = Field(3600, ge=0)
    page_limit: int = Field(500, ge=1, le=500)
    request_timeout_seconds: float = Field(5.0, gt=0)
    max_retries: int = Field(3, ge=0)
    refresh_margin_seconds: int = Field(
        300,
        description="Tokens expiring sooner than this are refreshed before use.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    token_db_path: str = Field("data/trackboard.db", validation_alias="TOKEN_DB_PATH")
    token_account: str = Field(
        "hubstaff",
        validation_alias="TOKEN_ACCOUNT",
        description="Key of the single token row shared by this service account.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    hubstaff: HubstaffSettings = Field(default_factory=HubstaffSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "HubstaffSettings",
    "SecuritySettings",
    "get_settings",
]
