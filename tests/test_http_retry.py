from __future__ import annotations

import httpx
import pytest

from trackboard.utils.http import RetryConfig, request_with_retry, retry_after_seconds


class SleepRecorder:
    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


class ScriptedSender:
    """Plays back responses (or raises exceptions) in order."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.attempts = 0

    async def __call__(self) -> httpx.Response:
        self.attempts += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.mark.asyncio
async def test_rate_limited_twice_then_success_honours_retry_after() -> None:
    sleep = SleepRecorder()
    send = ScriptedSender(
        httpx.Response(429, headers={"Retry-After": "1"}),
        httpx.Response(429, headers={"Retry-After": "1"}),
        httpx.Response(200, json={"ok": True}),
    )

    response = await request_with_retry(send, sleep=sleep)

    assert response.status_code == 200
    assert send.attempts == 3
    assert sleep.waits == [1.0, 1.0]
    assert all(wait >= 1 for wait in sleep.waits)


@pytest.mark.asyncio
async def test_exhausted_rate_limit_returns_last_response_with_growing_backoff() -> None:
    sleep = SleepRecorder()
    send = ScriptedSender(*[httpx.Response(429) for _ in range(4)])

    response = await request_with_retry(send, retry_config=RetryConfig(retries=3), sleep=sleep)

    assert response.status_code == 429
    assert send.attempts == 4
    assert sleep.waits == [2.0, 4.0, 6.0]


@pytest.mark.asyncio
async def test_network_errors_are_retried_after_one_second() -> None:
    sleep = SleepRecorder()
    send = ScriptedSender(
        httpx.ConnectError("boom"),
        httpx.ReadTimeout("slow"),
        httpx.Response(200),
    )

    response = await request_with_retry(send, sleep=sleep)

    assert response.status_code == 200
    assert sleep.waits == [1.0, 1.0]


@pytest.mark.asyncio
async def test_network_error_propagates_once_retries_are_spent() -> None:
    sleep = SleepRecorder()
    send = ScriptedSender(*[httpx.ConnectError("down") for _ in range(3)])

    with pytest.raises(httpx.ConnectError):
        await request_with_retry(send, retry_config=RetryConfig(retries=2), sleep=sleep)

    assert send.attempts == 3
    assert len(sleep.waits) == 2


@pytest.mark.asyncio
async def test_non_rate_limit_errors_are_not_retried() -> None:
    sleep = SleepRecorder()
    send = ScriptedSender(httpx.Response(500))

    response = await request_with_retry(send, sleep=sleep)

    assert response.status_code == 500
    assert send.attempts == 1
    assert sleep.waits == []


def test_retry_after_parsing() -> None:
    assert retry_after_seconds(httpx.Response(429, headers={"Retry-After": " 3 "})) == 3.0
    assert retry_after_seconds(httpx.Response(429)) is None
    assert (
        retry_after_seconds(
            httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
        )
        is None
    )
