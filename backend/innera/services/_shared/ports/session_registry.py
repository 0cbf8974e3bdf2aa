from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RevokeAllResult:
    """
    Outcome of a revoke-all sweep.

    :ivar deleted: Number of refresh records removed.
    :ivar complete: ``False`` when the sweep stopped at its iteration cap
        and some records may survive until their TTL.
    """

    deleted: int
    complete: bool


class SessionRegistry(Protocol):
    """
    Per-user set of valid refresh-token ids.

    A record exists while its token is valid; deleting it revokes the token.
    """

    def store(self, user_id: str, jti: str, ttl: timedelta) -> None:
        """Record ``jti`` as valid for ``ttl``."""

    def consume(self, user_id: str, jti: str) -> bool:
        """
        Delete the record and report whether it existed.

        Among concurrent callers for the same record exactly one gets ``True``.
        """

    def revoke(self, user_id: str, jti: str) -> None:
        """Delete the record; idempotent."""

    def revoke_all(self, user_id: str) -> RevokeAllResult:
        """Delete every record of ``user_id``."""
