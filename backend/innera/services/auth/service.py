# innera/services/auth/service.py
from __future__ import annotations

import logging
from uuid import uuid4

from innera.core.config import TokenSettings
from innera.services._shared.base import BaseService
from innera.services._shared.errors import AuthenticationError
from innera.services._shared.ports import (
    AccessClaims,
    RefreshClaims,
    RevokeAllResult,
    SessionRegistry,
    TokenCodec,
)
from innera.services.auth.dto import (
    LogoutIn,
    RefreshIn,
    RefreshOut,
    TokenPairOut,
    UserOut,
)

logger = logging.getLogger(__name__)


class TokenService(BaseService):
    """
    Session lifecycle: issue, verify, rotate and revoke token pairs.

    Access tokens are stateless. Each refresh token has one record in the
    :class:`SessionRegistry`; a refresh deletes that record first and only the
    caller whose delete removed it gets a new pair. Old records are never
    written back.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        registry: SessionRegistry,
        settings: TokenSettings,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param codec: Adapter for signing/verifying JWTs.
        :param registry: Server-side store of valid refresh token ids.
        :param settings: Token lifetimes.
        """
        super().__init__()
        self.codec = codec
        self.registry = registry
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Primitives
    # ------------------------------------------------------------------ #

    def issue_pair(self, user: UserOut) -> TokenPairOut:
        """
        Issue an access token and a refresh token with a fresh ``jti``.

        The refresh record is written before the token exists, so there is no
        window where a client holds a refresh token the server does not know.
        Store failures propagate.
        """
        jti = uuid4().hex
        self.registry.store(user.id, jti, self.settings.refresh_ttl)
        return TokenPairOut(
            access_token=self.codec.encode_access(user_id=user.id, email=user.email),
            refresh_token=self.codec.encode_refresh(user_id=user.id, jti=jti),
            expires_in=int(self.settings.access_ttl.total_seconds()),
        )

    def verify_access(self, token: str) -> AccessClaims:
        return self.codec.decode_access(token)

    def verify_refresh(self, token: str) -> RefreshClaims:
        return self.codec.decode_refresh(token)

    def atomic_rotate(self, user_id: str, jti: str) -> bool:
        """
        Consume the refresh record.

        :returns: ``True`` for exactly one of any number of concurrent callers;
            ``False`` when the record was already rotated, revoked or expired.
        """
        return self.registry.consume(user_id, jti)

    def revoke_one(self, user_id: str, jti: str) -> None:
        self.registry.revoke(user_id, jti)

    def revoke_all(self, user_id: str) -> RevokeAllResult:
        return self.registry.revoke_all(user_id)

    # ------------------------------------------------------------------ #
    # Use cases
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> RefreshOut:
        """
        Rotate a refresh token and emit a new pair.

        :raises AuthenticationError: Invalid token, already rotated/revoked,
            or the user no longer exists.
        """
        claims = self.verify_refresh(dto.refresh_token)
        if not self.atomic_rotate(claims.subject, claims.jti):
            logger.warning(
                "Refresh refused: token already rotated or revoked",
                extra={"user_id": claims.subject},
            )
            raise AuthenticationError("Refresh token has been revoked")

        user = self._load_user(claims.subject)
        return RefreshOut(tokens=self.issue_pair(user), user=user)

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the given refresh token if it is valid and belongs to the caller.

        Anything else is a silent no-op so logout always succeeds.
        """
        if not dto.refresh_token:
            return
        try:
            claims = self.verify_refresh(dto.refresh_token)
        except AuthenticationError:
            return
        if claims.subject != dto.user_id:
            logger.warning("Logout with a refresh token of another user", extra={"user_id": dto.user_id})
            return
        self.revoke_one(claims.subject, claims.jti)

    def logout_all(self, user_id: str) -> RevokeAllResult:
        result = self.revoke_all(user_id)
        logger.info(
            "Revoked all sessions",
            extra={"user_id": user_id, "deleted": result.deleted},
        )
        return result

    def whoami(self, user_id: str) -> UserOut:
        return self._load_user(user_id)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _load_user(self, user_id: str) -> UserOut:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise AuthenticationError()
            return UserOut.from_model(user)
