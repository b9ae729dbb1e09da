"""HTTP utilities providing rate-limit aware retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RetryConfig:
    def __init__(
        self,
        *,
        retries: int = 3,
        rate_limit_backoff_seconds: float = 2.0,
        network_backoff_seconds: float = 1.0,
    ) -> None:
        self.retries = retries
        self.rate_limit_backoff_seconds = rate_limit_backoff_seconds
        self.network_backoff_seconds = network_backoff_seconds


def retry_after_seconds(response: httpx.Response) -> float | None:
    """Parse a numeric ``Retry-After`` header, ignoring HTTP-date forms."""
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return max(value, 0.0)


async def request_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    retry_config: RetryConfig | None = None,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """Issue ``send()`` until it is not rate limited or the retry budget runs out.

    A 429 waits for ``Retry-After`` when present, otherwise for
    ``rate_limit_backoff_seconds * n`` where ``n`` counts the retries so far.
    Transport errors wait ``network_backoff_seconds``. Once retries are
    exhausted the last response is returned (possibly still a 429) or the
    last transport error is raised.
    """
    config = retry_config or RetryConfig()
    retries_remaining = config.retries
    attempt = 0

    while True:
        attempt += 1
        try:
            response = await send()
        except httpx.TransportError as exc:
            if retries_remaining <= 0:
                raise
            retries_remaining -= 1
            logger.warning(
                "Request failed (%s); retrying in %.1fs (%d retries left)",
                exc.__class__.__name__,
                config.network_backoff_seconds,
                retries_remaining,
            )
            await sleep(config.network_backoff_seconds)
            continue

        if response.status_code != HTTPStatus.TOO_MANY_REQUESTS or retries_remaining <= 0:
            return response

        retries_remaining -= 1
        wait = retry_after_seconds(response)
        if wait is None:
            wait = config.rate_limit_backoff_seconds * attempt
        logger.warning(
            "Hubstaff rate limit hit on attempt %d. Waiting %.1fs...", attempt, wait
        )
        await sleep(wait)


__all__ = ["RetryConfig", "Sleep", "request_with_retry", "retry_after_seconds"]
