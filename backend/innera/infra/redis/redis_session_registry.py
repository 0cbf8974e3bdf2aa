# innera/infra/redis/redis_session_registry.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta

import redis  # type: ignore[import-untyped]

from innera.services._shared.ports import RevokeAllResult, SessionRegistry

logger = logging.getLogger(__name__)

_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")


@dataclass(slots=True)
class RedisSessionRegistry(SessionRegistry):
    """
    Redis-backed registry of valid refresh tokens.

    One key per token, ``refresh_token:{user_id}:{jti}`` holding ``"1"`` with
    its own TTL. Existence means valid; rotation and revocation are plain
    ``DEL`` calls, so Redis decides which concurrent caller wins.

    :param r: A Redis client (already connected, ``decode_responses=True``).
    :param scan_batch: ``COUNT`` hint passed to ``SCAN``.
    :param max_iterations: Maximum ``SCAN`` round trips for :meth:`revoke_all`.
    """

    r: redis.Redis
    scan_batch: int = 100
    max_iterations: int = 100

    # -------------------- helpers --------------------

    @staticmethod
    def _k(user_id: str, jti: str) -> str:
        return f"refresh_token:{user_id}:{jti}"

    @staticmethod
    def _pattern(user_id: str) -> str:
        escaped = _GLOB_SPECIALS.sub(r"\\\1", user_id)
        return f"refresh_token:{escaped}:*"

    # -------------------- API ------------------------

    def store(self, user_id: str, jti: str, ttl: timedelta) -> None:
        self.r.set(self._k(user_id, jti), "1", ex=max(1, int(ttl.total_seconds())))

    def consume(self, user_id: str, jti: str) -> bool:
        """Delete the record; only the caller whose ``DEL`` removed it sees True."""
        return int(self.r.delete(self._k(user_id, jti))) == 1

    def revoke(self, user_id: str, jti: str) -> None:
        self.r.delete(self._k(user_id, jti))

    def revoke_all(self, user_id: str) -> RevokeAllResult:
        """
        Sweep ``refresh_token:{user_id}:*`` with ``SCAN`` and delete each page.

        Stops after ``max_iterations`` round trips; the result is then marked
        incomplete and a warning is logged. Survivors expire on their own TTL.
        """
        pattern = self._pattern(user_id)
        cursor = 0
        deleted = 0
        iterations = 0
        while True:
            cursor, keys = self.r.scan(cursor=cursor, match=pattern, count=self.scan_batch)
            iterations += 1
            if keys:
                deleted += int(self.r.delete(*keys))
            if int(cursor) == 0:
                return RevokeAllResult(deleted=deleted, complete=True)
            if iterations >= self.max_iterations:
                logger.warning(
                    "Revoke-all stopped at iteration cap; some sessions may survive",
                    extra={"user_id": user_id, "deleted": deleted, "iterations": iterations},
                )
                return RevokeAllResult(deleted=deleted, complete=False)
