from __future__ import annotations

from datetime import timedelta
from typing import Protocol


class PartnerInviteStore(Protocol):
    """
    Short-lived partner invite codes plus the per-user pending guard.

    ``code -> inviter id`` is single-use; ``user -> code`` allows at most one
    outstanding invite per user.
    """

    def reserve_pending(self, user_id: str, code: str, ttl: timedelta) -> bool:
        """Set the pending guard only if absent. :returns: True if it was set."""

    def release_pending(self, user_id: str) -> None: ...

    def put(self, code: str, inviter_id: str, ttl: timedelta) -> None: ...

    def peek(self, code: str) -> str | None:
        """Return the inviter id without consuming the code."""

    def remaining_ttl(self, code: str) -> timedelta | None:
        """Return what is left of the code's lifetime, ``None`` if unknown."""

    def take(self, code: str) -> str | None:
        """Atomically read and delete the code. :returns: Inviter id or None."""
