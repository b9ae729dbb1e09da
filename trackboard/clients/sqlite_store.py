"""SQLite-backed durable storage for the Hubstaff token row."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from trackboard.schemas import TokenRecord

if TYPE_CHECKING:  # pragma: no cover
    from trackboard.services.token_cipher import TokenCipherService


class SQLiteTokenStore:
    """Holds one token record per account, replaced wholesale on every save."""

    def __init__(
        self,
        db_path: str,
        *,
        account: str = "hubstaff",
        cipher: Optional["TokenCipherService"] = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._account = account
        self._cipher = cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS provider_tokens (
                    account TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def save(self, record: TokenRecord) -> None:
        payload = self._cipher.seal(record) if self._cipher else record.model_dump()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO provider_tokens (account, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(account) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    self._account,
                    json.dumps(payload),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

    def load(self) -> Optional[TokenRecord]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM provider_tokens WHERE account = ?",
                (self._account,),
            ).fetchone()
        if not row:
            return None
        payload = json.loads(row["data"])
        if self._cipher:
            return self._cipher.unseal(payload)
        return TokenRecord.model_validate(payload)


__all__ = ["SQLiteTokenStore"]
