# innera/services/notifications/service.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from innera.models.notification import Notification
from innera.services._shared.base import BaseService
from innera.services._shared.dto import PaginationIn
from innera.services._shared.errors import NotFoundError


@dataclass(frozen=True, slots=True)
class NotificationOut:
    id: str
    user_id: str
    type: str
    title: str
    body: str | None
    created_at: datetime
    read_at: datetime | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    @property
    def read(self) -> bool:
        return self.read_at is not None

    @classmethod
    def from_model(cls, n: Notification) -> NotificationOut:
        return cls(
            id=n.id,
            user_id=n.user_id,
            type=n.type,
            title=n.title,
            body=n.body,
            created_at=n.created_at,
            read_at=n.read_at,
            data=dict(n.data or {}),
        )


class NotificationService(BaseService):
    """Write notification rows and serve the recipient's inbox."""

    def record(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        body: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> NotificationOut:
        with self.rw_uow() as uow:
            row = uow.notifications.add(
                Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    body=body,
                    data=dict(data or {}),
                )
            )
            return NotificationOut.from_model(row)

    def list_for_user(
        self, user_id: str, pagination: PaginationIn | None = None
    ) -> tuple[list[NotificationOut], int]:
        """
        Return one page of the user's notifications, newest first, plus the total.

        :param pagination: Page and size; defaults to the first 20 rows.
        :returns: ``(items, total)``.
        """
        page = pagination or PaginationIn()
        with self.ro_uow() as uow:
            rows = uow.notifications.list_for_user(user_id, offset=page.offset, limit=page.limit)
            total = uow.notifications.count_for_user(user_id)
            return [NotificationOut.from_model(n) for n in rows], total

    def unread_count(self, user_id: str) -> int:
        with self.ro_uow() as uow:
            return uow.notifications.count_for_user(user_id, unread_only=True)

    def mark_read(self, user_id: str, notification_id: str) -> NotificationOut:
        """
        Mark one of the user's notifications read.

        Already-read rows keep their first ``read_at``.

        :raises NotFoundError: Unknown id or another user's notification.
        """
        with self.rw_uow() as uow:
            notifications = uow.notifications
            notifications.mark_read(notification_id, user_id=user_id, now=self.now_utc())
            row = notifications.get(notification_id, fresh=True)
            if row is None or row.user_id != user_id:
                raise NotFoundError("Notification", notification_id)
            return NotificationOut.from_model(row)

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of the user read; returns how many changed."""
        with self.rw_uow() as uow:
            return uow.notifications.mark_all_read(user_id, now=self.now_utc())
