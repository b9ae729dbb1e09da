from __future__ import annotations

import sqlite3

import pytest

from trackboard.clients.sqlite_store import SQLiteTokenStore
from trackboard.schemas import TokenRecord
from trackboard.services.token_cipher import TokenCipherService


def test_store_replaces_the_single_record(tmp_path) -> None:
    store = SQLiteTokenStore(str(tmp_path / "nested" / "tokens.db"))
    assert store.load() is None

    store.save(TokenRecord(access_token="a1", refresh_token="r1", expires_at=1))
    store.save(TokenRecord(access_token="a2", refresh_token="r2", expires_at=2))

    assert store.load() == TokenRecord(access_token="a2", refresh_token="r2", expires_at=2)
    with sqlite3.connect(tmp_path / "nested" / "tokens.db") as conn:
        assert conn.execute("SELECT COUNT(*) FROM provider_tokens").fetchone()[0] == 1


def test_store_encrypts_tokens_at_rest(tmp_path) -> None:
    db_path = tmp_path / "tokens.db"
    cipher = TokenCipherService(secret="super-secret-key")
    store = SQLiteTokenStore(str(db_path), cipher=cipher)
    record = TokenRecord(access_token="plain-access", refresh_token="plain-refresh", expires_at=99)

    store.save(record)

    with sqlite3.connect(db_path) as conn:
        raw = conn.execute("SELECT data FROM provider_tokens").fetchone()[0]
    assert "plain-access" not in raw
    assert "plain-refresh" not in raw
    assert store.load() == record


def test_accounts_are_isolated(tmp_path) -> None:
    db_path = str(tmp_path / "tokens.db")
    SQLiteTokenStore(db_path, account="a").save(
        TokenRecord(access_token="x", refresh_token="y", expires_at=1)
    )

    assert SQLiteTokenStore(db_path, account="b").load() is None


def test_cipher_rejects_bad_ciphertext() -> None:
    cipher = TokenCipherService(secret="another-secret")

    with pytest.raises(ValueError):
        cipher.decrypt("not-valid")
    with pytest.raises(ValueError):
        TokenCipherService(secret="")
