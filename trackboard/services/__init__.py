"""Service layer exports."""

from .hubstaff_tokens import HubstaffTokenService
from .token_cipher import TokenCipherService

__all__ = [
    "HubstaffTokenService",
    "TokenCipherService",
]
