"""
Hubstaff OAuth utilities.

Exchanges refresh tokens for new access/refresh token pairs.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Callable, Optional

import httpx

from trackboard.core.config import HubstaffSettings
from trackboard.schemas import TokenGrant


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class HubstaffOAuthClient:
    """Refresh Hubstaff access tokens against the account service."""

    def __init__(
        self,
        settings: HubstaffSettings,
        *,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=settings.request_timeout_seconds)
        )

    @property
    def token_url(self) -> str:
        return self._settings.auth_url

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """
        Exchange a refresh token for a new token pair.

        Hubstaff rotates refresh tokens, so the returned refresh token must
        replace the one that was sent.
        """
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }

        async with self._client_factory() as client:
            response = await client.post(self.token_url, data=payload)

        if response.status_code != HTTPStatus.OK:
            raise OAuthTokenExchangeError(
                f"Token refresh failed: {response.status_code} {response.text}"
            )

        token_payload = response.json()
        access_token = token_payload.get("access_token")
        new_refresh_token = token_payload.get("refresh_token")
        expires_in = token_payload.get("expires_in") or 3600

        if not access_token or not new_refresh_token:
            raise OAuthTokenExchangeError(
                "Incomplete refresh payload returned from Hubstaff."
            )

        return TokenGrant(
            access_token=access_token,
            refresh_token=new_refresh_token,
            expires_in=int(expires_in),
        )


__all__ = ["HubstaffOAuthClient", "OAuthTokenExchangeError"]
