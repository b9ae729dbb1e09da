"""Symmetric encryption for Hubstaff tokens kept at rest."""

from __future__ import annotations

import base64
import hashlib
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken

from trackboard.schemas import TokenRecord

_SEALED_FIELDS = ("access_token", "refresh_token")


class TokenCipherService:
    """Seal and unseal token records with a Fernet key derived from a secret."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")

    def seal(self, record: TokenRecord) -> Dict[str, Any]:
        """Serialize a record with both tokens encrypted."""
        payload = record.model_dump()
        for name in _SEALED_FIELDS:
            payload[f"{name}_encrypted"] = self.encrypt(payload.pop(name))
        return payload

    def unseal(self, payload: Dict[str, Any]) -> TokenRecord:
        """Inverse of :meth:`seal`; plaintext fields are accepted as-is."""
        data = dict(payload)
        for name in _SEALED_FIELDS:
            sealed = data.pop(f"{name}_encrypted", None)
            if sealed is not None:
                data[name] = self.decrypt(sealed)
        return TokenRecord.model_validate(data)


__all__ = ["TokenCipherService"]
