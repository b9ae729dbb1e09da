"""
Lifecycle management for the Hubstaff bearer token.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

from trackboard.clients.hubstaff_auth import HubstaffOAuthClient
from trackboard.schemas import TokenRecord

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    def load(self) -> Optional[TokenRecord]: ...

    def save(self, record: TokenRecord) -> None: ...


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class HubstaffTokenService:
    """Keeps one valid Hubstaff access token per process.

    The record is mirrored in memory and in a durable store. Refreshes are
    single-flight: callers arriving while a refresh is running await the same
    task instead of spending the (rotating) refresh token a second time.
    """

    def __init__(
        self,
        store: TokenStore,
        oauth_client: HubstaffOAuthClient,
        *,
        bootstrap_refresh_token: Optional[str] = None,
        refresh_margin_seconds: int = 300,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._bootstrap_refresh_token = bootstrap_refresh_token
        self._margin_ms = refresh_margin_seconds * 1000
        self._clock = clock
        self._cached: Optional[TokenRecord] = None
        self._refresh_task: Optional[asyncio.Task[Optional[str]]] = None

    async def get_valid_access_token(self) -> Optional[str]:
        """Return a usable access token, or ``None`` when authentication is unavailable."""
        cached = await self._load()
        if cached and cached.expires_at > self._clock() + self._margin_ms:
            return cached.access_token

        if self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh(cached))
        else:
            logger.debug("Awaiting in-flight Hubstaff token refresh")
        return await asyncio.shield(self._refresh_task)

    def invalidate(self, access_token: Optional[str] = None) -> None:
        """Treat the current access token as expired so the next call refreshes it.

        When ``access_token`` is given, only that token is invalidated; a
        rejection reported for a token that has since been replaced is ignored.
        """
        current = self._cached
        if current is None:
            return
        if access_token is not None and access_token != current.access_token:
            return
        logger.info("Hubstaff access token rejected; forcing refresh")
        self._cached = current.model_copy(update={"expires_at": 0})

    async def _refresh(self, cached: Optional[TokenRecord]) -> Optional[str]:
        try:
            latest = self._cached or cached
            refresh_token = (
                latest.refresh_token if latest else None
            ) or self._bootstrap_refresh_token
            if not refresh_token:
                logger.error("No Hubstaff refresh token available")
                return None

            logger.info("Refreshing Hubstaff access token...")
            grant = await self._oauth.refresh_token(refresh_token)
            record = TokenRecord(
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                expires_at=int(self._clock() + grant.expires_in * 1000),
            )
            await self._save(record)
            logger.info("Successfully refreshed Hubstaff token")
            return record.access_token
        except Exception:
            logger.exception("Hubstaff token refresh failed")
            return None
        finally:
            self._refresh_task = None

    async def _load(self) -> Optional[TokenRecord]:
        if self._cached is not None:
            return self._cached
        try:
            record = await asyncio.to_thread(self._store.load)
        except Exception:
            logger.exception("Failed to read persisted Hubstaff token")
            return self._cached
        # A refresh may have completed while the store was being read.
        if self._cached is not None:
            return self._cached
        if record is not None:
            self._cached = record
        return record

    async def _save(self, record: TokenRecord) -> None:
        self._cached = record
        try:
            await asyncio.to_thread(self._store.save, record)
        except Exception:
            logger.exception("Failed to persist refreshed Hubstaff token")


__all__ = ["HubstaffTokenService", "TokenStore", "wall_clock_ms"]
