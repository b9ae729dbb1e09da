"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Optional

from trackboard.clients import HubstaffClient, HubstaffOAuthClient, SQLiteTokenStore
from trackboard.core.config import get_settings
from trackboard.services import HubstaffTokenService, TokenCipherService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_cipher_service() -> Optional[TokenCipherService]:
    """Provide symmetric encryption for stored tokens when a secret is configured."""
    secret = _settings().security.token_encryption_secret
    if not secret:
        return None
    return TokenCipherService(secret=secret)


@lru_cache()
def get_token_store() -> SQLiteTokenStore:
    """Provide the durable store holding the Hubstaff token row."""
    settings = _settings()
    return SQLiteTokenStore(
        settings.token_db_path,
        account=settings.token_account,
        cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_hubstaff_oauth_client() -> HubstaffOAuthClient:
    """Create a singleton Hubstaff OAuth client."""
    return HubstaffOAuthClient(_settings().hubstaff)


@lru_cache()
def get_hubstaff_token_service() -> HubstaffTokenService:
    """Provide the process-wide Hubstaff token manager."""
    hubstaff = _settings().hubstaff
    return HubstaffTokenService(
        store=get_token_store(),
        oauth_client=get_hubstaff_oauth_client(),
        bootstrap_refresh_token=hubstaff.refresh_token,
        refresh_margin_seconds=hubstaff.refresh_margin_seconds,
    )


@lru_cache()
def get_hubstaff_client() -> HubstaffClient:
    """Provide the Hubstaff API client; its caches live as long as the process."""
    return HubstaffClient(_settings().hubstaff, get_hubstaff_token_service())


__all__ = [
    "get_hubstaff_client",
    "get_hubstaff_oauth_client",
    "get_hubstaff_token_service",
    "get_token_cipher_service",
    "get_token_store",
]
