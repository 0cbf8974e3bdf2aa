# innera/infra/redis/redis_partner_invite_store.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import redis  # type: ignore[import-untyped]

from innera.services._shared.ports import PartnerInviteStore


@dataclass(slots=True)
class RedisPartnerInviteStore(PartnerInviteStore):
    """
    Redis-backed partner invite codes.

    Keys
    ----
    * ``partner_invite:{code}`` -> inviter user id
    * ``partner_pending_invite:{user_id}`` -> code (``SET NX``)

    :param r: A Redis client (already connected, ``decode_responses=True``).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(code: str) -> str:
        return f"partner_invite:{code}"

    @staticmethod
    def _kp(user_id: str) -> str:
        return f"partner_pending_invite:{user_id}"

    @staticmethod
    def _seconds(ttl: timedelta) -> int:
        return max(1, int(ttl.total_seconds()))

    # -------------------- API ------------------------

    def reserve_pending(self, user_id: str, code: str, ttl: timedelta) -> bool:
        return bool(self.r.set(self._kp(user_id), code, nx=True, ex=self._seconds(ttl)))

    def release_pending(self, user_id: str) -> None:
        self.r.delete(self._kp(user_id))

    def put(self, code: str, inviter_id: str, ttl: timedelta) -> None:
        self.r.set(self._k(code), inviter_id, ex=self._seconds(ttl))

    def peek(self, code: str) -> str | None:
        return self.r.get(self._k(code))

    def remaining_ttl(self, code: str) -> timedelta | None:
        """``TTL`` of the code key; ``None`` when missing or without expiry."""
        seconds = int(self.r.ttl(self._k(code)))
        if seconds <= 0:
            return None
        return timedelta(seconds=seconds)

    def take(self, code: str) -> str | None:
        """``GETDEL``: of two concurrent callers only one gets the inviter id."""
        return self.r.getdel(self._k(code))
