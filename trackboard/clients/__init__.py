"""Expose constructed client wrappers."""

from .hubstaff import (
    HubstaffAPIError,
    HubstaffAuthUnavailableError,
    HubstaffClient,
    HubstaffConfigurationError,
    HubstaffRateLimitError,
)
from .hubstaff_auth import HubstaffOAuthClient, OAuthTokenExchangeError
from .sqlite_store import SQLiteTokenStore

__all__ = [
    "HubstaffAPIError",
    "HubstaffAuthUnavailableError",
    "HubstaffClient",
    "HubstaffConfigurationError",
    "HubstaffOAuthClient",
    "HubstaffRateLimitError",
    "OAuthTokenExchangeError",
    "SQLiteTokenStore",
]
