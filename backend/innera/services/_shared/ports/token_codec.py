from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified access-token claims.

    :ivar subject: User id (``sub``).
    :ivar email: User email at issuance.
    :ivar expires_at: Absolute expiration (UTC).
    """

    subject: str
    email: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """
    Verified refresh-token claims.

    :ivar subject: User id (``sub``).
    :ivar jti: Token id, the key of the server-side session record.
    """

    subject: str
    jti: str
    expires_at: datetime


class TokenCodec(Protocol):
    """
    Sign and verify the two token kinds.

    Decoders MUST raise :class:`~innera.services._shared.errors.AuthenticationError`
    with the generic message for every failure (signature, expiry, audience,
    issuer, malformed input).
    """

    def encode_access(self, *, user_id: str, email: str) -> str: ...

    def encode_refresh(self, *, user_id: str, jti: str) -> str: ...

    def decode_access(self, token: str) -> AccessClaims: ...

    def decode_refresh(self, token: str) -> RefreshClaims: ...
