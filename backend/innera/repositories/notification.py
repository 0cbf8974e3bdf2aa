"""Notification repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select

from innera.models.notification import Notification
from innera.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    model = Notification

    def list_for_user(self, user_id: str, *, offset: int = 0, limit: int | None = None) -> list[Notification]:
        """Newest first; ``id`` breaks ties between rows created in the same instant."""
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    def count_for_user(self, user_id: str, *, unread_only: bool = False) -> int:
        stmt = select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.read_at.is_(None))
        return int(self.session.execute(stmt).scalar_one())

    def mark_read(self, notification_id: str, *, user_id: str, now: datetime) -> int:
        return self._guarded_update(
            Notification.id == notification_id,
            Notification.user_id == user_id,
            Notification.read_at.is_(None),
            values={"read_at": now},
        )

    def mark_all_read(self, user_id: str, *, now: datetime) -> int:
        return self._guarded_update(
            Notification.user_id == user_id,
            Notification.read_at.is_(None),
            values={"read_at": now},
        )
