"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_hubstaff_client,
    get_hubstaff_oauth_client,
    get_hubstaff_token_service,
    get_token_cipher_service,
    get_token_store,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_hubstaff_client",
    "get_hubstaff_oauth_client",
    "get_hubstaff_token_service",
    "get_token_cipher_service",
    "get_token_store",
]
