"""Tests for the Hubstaff operational check script."""

from __future__ import annotations

import pytest

from scripts import check_hubstaff
from trackboard.clients.sqlite_store import SQLiteTokenStore
from trackboard.schemas import TokenRecord


def test_config_command_requires_org_id(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HUBSTAFF_ORG_ID", "")

    assert check_hubstaff.main(["config"]) == check_hubstaff.EXIT_VALIDATION_ERROR


def test_config_command_accepts_configured_org(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("HUBSTAFF_ORG_ID", "4242")

    assert check_hubstaff.main(["config"]) == check_hubstaff.EXIT_OK
    assert "4242" in capsys.readouterr().out


def test_describe_token_reports_expiry_without_secrets(
    tmp_path, capsys: pytest.CaptureFixture[str]
) -> None:
    store = SQLiteTokenStore(str(tmp_path / "tokens.db"))
    assert check_hubstaff._describe_token(store) == check_hubstaff.EXIT_TOKEN_ERROR

    store.save(TokenRecord(access_token="secret-access", refresh_token="r", expires_at=30 * 60_000))
    assert check_hubstaff._describe_token(store, now_ms=0) == check_hubstaff.EXIT_OK

    out = capsys.readouterr().out
    assert "30 minute(s)" in out
    assert "secret-access" not in out
