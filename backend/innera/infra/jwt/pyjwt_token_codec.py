# innera/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from innera.core.config import TokenSettings
from innera.services._shared.errors import AuthenticationError
from innera.services._shared.ports import AccessClaims, RefreshClaims, TokenCodec

logger = logging.getLogger(__name__)

ACCESS_AUDIENCE = "access"
REFRESH_AUDIENCE = "refresh"
ALGORITHM = "HS256"


@dataclass(slots=True)
class PyJWTTokenCodec(TokenCodec):
    """
    HS256 adapter over PyJWT.

    The token kind travels in ``aud`` so an access token can never be
    replayed as a refresh token and vice versa.

    :param settings: Validated secret, issuer and lifetimes.
    """

    settings: TokenSettings

    # -------------------- helpers --------------------

    def _encode(self, *, subject: str, audience: str, ttl: timedelta, extra: dict[str, Any]) -> str:
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "sub": str(subject),
            "aud": audience,
            "iss": self.settings.issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        claims.update(extra)
        return jwt.encode(claims, self.settings.secret, algorithm=ALGORITHM)

    def _decode(self, token: str, *, audience: str, require: list[str]) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.settings.secret,
                algorithms=[ALGORITHM],
                audience=audience,
                issuer=self.settings.issuer,
                options={"require": ["sub", "aud", "iss", "iat", "exp", *require]},
            )
        except jwt.InvalidTokenError as exc:
            # Same outward message for every cause; the cause is only logged.
            logger.info("Rejected %s token: %s", audience, exc.__class__.__name__)
            raise AuthenticationError() from exc

    @staticmethod
    def _expiry(payload: dict[str, Any]) -> datetime:
        return datetime.fromtimestamp(int(payload["exp"]), tz=UTC)

    # -------------------- API ------------------------

    def encode_access(self, *, user_id: str, email: str) -> str:
        return self._encode(
            subject=user_id,
            audience=ACCESS_AUDIENCE,
            ttl=self.settings.access_ttl,
            extra={"email": email},
        )

    def encode_refresh(self, *, user_id: str, jti: str) -> str:
        return self._encode(
            subject=user_id,
            audience=REFRESH_AUDIENCE,
            ttl=self.settings.refresh_ttl,
            extra={"jti": jti},
        )

    def decode_access(self, token: str) -> AccessClaims:
        """
        Verify signature, expiry, audience and issuer of an access token.

        :raises AuthenticationError: On any verification failure.
        """
        payload = self._decode(token, audience=ACCESS_AUDIENCE, require=["email"])
        return AccessClaims(
            subject=str(payload["sub"]),
            email=str(payload["email"]),
            expires_at=self._expiry(payload),
        )

    def decode_refresh(self, token: str) -> RefreshClaims:
        """
        Verify signature, expiry, audience and issuer of a refresh token.

        :raises AuthenticationError: On any verification failure.
        """
        payload = self._decode(token, audience=REFRESH_AUDIENCE, require=["jti"])
        return RefreshClaims(
            subject=str(payload["sub"]),
            jti=str(payload["jti"]),
            expires_at=self._expiry(payload),
        )
