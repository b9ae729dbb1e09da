from __future__ import annotations

import asyncio
import time
from urllib.parse import parse_qs

import httpx
import pytest

from trackboard.clients.hubstaff_auth import HubstaffOAuthClient, OAuthTokenExchangeError
from trackboard.core.config import HubstaffSettings
from trackboard.schemas import TokenGrant, TokenRecord
from trackboard.services.hubstaff_tokens import HubstaffTokenService

NOW_MS = 1_700_000_000_000


class FakeTokenStore:
    def __init__(self, record: TokenRecord | None = None) -> None:
        self.record = record
        self.saved: list[TokenRecord] = []
        self.loads = 0

    def load(self) -> TokenRecord | None:
        self.loads += 1
        return self.record

    def save(self, record: TokenRecord) -> None:
        self.record = record
        self.saved.append(record)


class DummyOAuthClient:
    def __init__(self, *, fail: bool = False, gate: asyncio.Event | None = None) -> None:
        self.calls: list[str] = []
        self.fail = fail
        self.gate = gate

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        self.calls.append(refresh_token)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise OAuthTokenExchangeError("invalid_grant")
        return TokenGrant(
            access_token=f"access-{len(self.calls)}",
            refresh_token=f"refresh-{len(self.calls)}",
            expires_in=3600,
        )


async def _settle(store: FakeTokenStore, callers: int) -> None:
    while store.loads < callers:
        await asyncio.sleep(0.005)
    for _ in range(5):
        await asyncio.sleep(0.005)


def _service(store, oauth, *, bootstrap: str | None = "bootstrap-refresh") -> HubstaffTokenService:
    return HubstaffTokenService(
        store=store,
        oauth_client=oauth,
        bootstrap_refresh_token=bootstrap,
        clock=lambda: NOW_MS,
    )


@pytest.mark.asyncio
async def test_fresh_token_is_returned_without_refresh() -> None:
    store = FakeTokenStore(
        TokenRecord(access_token="cached", refresh_token="r", expires_at=NOW_MS + 10 * 60_000)
    )
    oauth = DummyOAuthClient()
    service = _service(store, oauth)

    assert await service.get_valid_access_token() == "cached"
    assert await service.get_valid_access_token() == "cached"
    assert oauth.calls == []
    assert store.loads == 1


@pytest.mark.asyncio
async def test_token_inside_safety_margin_is_refreshed_with_stored_refresh_token() -> None:
    store = FakeTokenStore(
        TokenRecord(access_token="old", refresh_token="stored-refresh", expires_at=NOW_MS + 4 * 60_000)
    )
    oauth = DummyOAuthClient()
    service = _service(store, oauth)

    token = await service.get_valid_access_token()

    assert token == "access-1"
    assert oauth.calls == ["stored-refresh"]
    assert store.saved == [
        TokenRecord(access_token="access-1", refresh_token="refresh-1", expires_at=NOW_MS + 3_600_000)
    ]
    # The rotated token is now served from memory.
    assert await service.get_valid_access_token() == "access-1"
    assert len(oauth.calls) == 1


@pytest.mark.asyncio
async def test_first_run_uses_bootstrap_refresh_token() -> None:
    store = FakeTokenStore()
    oauth = DummyOAuthClient()

    assert await _service(store, oauth).get_valid_access_token() == "access-1"
    assert oauth.calls == ["bootstrap-refresh"]


@pytest.mark.asyncio
async def test_missing_refresh_token_returns_none() -> None:
    oauth = DummyOAuthClient()

    assert await _service(FakeTokenStore(), oauth, bootstrap=None).get_valid_access_token() is None
    assert oauth.calls == []


@pytest.mark.asyncio
async def test_rejected_refresh_returns_none_and_keeps_store() -> None:
    record = TokenRecord(access_token="old", refresh_token="r", expires_at=NOW_MS - 1)
    store = FakeTokenStore(record)

    assert await _service(store, DummyOAuthClient(fail=True)).get_valid_access_token() is None
    assert store.saved == []
    assert store.record == record


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_refresh() -> None:
    gate = asyncio.Event()
    oauth = DummyOAuthClient(gate=gate)
    store = FakeTokenStore()
    service = _service(store, oauth)

    pending = [asyncio.create_task(service.get_valid_access_token()) for _ in range(5)]
    await _settle(store, 5)
    gate.set()
    tokens = await asyncio.gather(*pending)

    assert tokens == ["access-1"] * 5
    assert oauth.calls == ["bootstrap-refresh"]


@pytest.mark.asyncio
async def test_concurrent_callers_all_see_failed_refresh() -> None:
    gate = asyncio.Event()
    oauth = DummyOAuthClient(fail=True, gate=gate)
    store = FakeTokenStore()
    service = _service(store, oauth)

    pending = [asyncio.create_task(service.get_valid_access_token()) for _ in range(3)]
    await _settle(store, 3)
    gate.set()

    assert await asyncio.gather(*pending) == [None, None, None]
    assert len(oauth.calls) == 1


class SlowSecondLoadStore(FakeTokenStore):
    def load(self) -> TokenRecord | None:
        record = super().load()
        if self.loads == 2:
            time.sleep(0.2)
        return record


@pytest.mark.asyncio
async def test_caller_with_slow_store_read_reuses_completed_refresh() -> None:
    oauth = DummyOAuthClient()
    store = SlowSecondLoadStore()
    service = _service(store, oauth)

    tokens = await asyncio.gather(
        service.get_valid_access_token(), service.get_valid_access_token()
    )

    assert tokens == ["access-1", "access-1"]
    assert oauth.calls == ["bootstrap-refresh"]


@pytest.mark.asyncio
async def test_invalidated_token_is_refreshed_on_next_call() -> None:
    store = FakeTokenStore(
        TokenRecord(access_token="cached", refresh_token="stored-refresh", expires_at=NOW_MS + 30 * 60_000)
    )
    oauth = DummyOAuthClient()
    service = _service(store, oauth)
    assert await service.get_valid_access_token() == "cached"

    service.invalidate("cached")

    assert await service.get_valid_access_token() == "access-1"
    assert oauth.calls == ["stored-refresh"]
    assert store.record.access_token == "access-1"


@pytest.mark.asyncio
async def test_invalidating_a_replaced_token_is_ignored() -> None:
    store = FakeTokenStore(
        TokenRecord(access_token="current", refresh_token="r", expires_at=NOW_MS + 30 * 60_000)
    )
    oauth = DummyOAuthClient()
    service = _service(store, oauth)
    assert await service.get_valid_access_token() == "current"

    service.invalidate("superseded")

    assert await service.get_valid_access_token() == "current"
    assert oauth.calls == []


@pytest.mark.asyncio
async def test_oauth_client_posts_form_encoded_refresh() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"access_token": "a", "refresh_token": "b", "expires_in": 86400},
        )

    settings = HubstaffSettings(auth_url="https://auth.example/access_tokens")
    client = HubstaffOAuthClient(
        settings,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    grant = await client.refresh_token("old-refresh")

    assert grant == TokenGrant(access_token="a", refresh_token="b", expires_in=86400)
    assert str(seen[0].url) == "https://auth.example/access_tokens"
    assert seen[0].headers["content-type"] == "application/x-www-form-urlencoded"
    assert parse_qs(seen[0].content.decode()) == {
        "grant_type": ["refresh_token"],
        "refresh_token": ["old-refresh"],
    }


@pytest.mark.asyncio
async def test_oauth_client_raises_on_rejected_refresh() -> None:
    client = HubstaffOAuthClient(
        HubstaffSettings(),
        client_factory=lambda: httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(401, text="invalid_grant"))
        ),
    )

    with pytest.raises(OAuthTokenExchangeError):
        await client.refresh_token("stale")
