# innera/infra/notifications/detached_notifier.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from functools import partial
from typing import Any

from flask import Flask

from innera.services._shared.ports import Notifier
from innera.services.notifications import NotificationService

logger = logging.getLogger(__name__)


def _log_outcome(future: Future, *, user_id: str, notification_type: str) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error(
            "Notification delivery failed",
            exc_info=exc,
            extra={"user_id": user_id, "notification_type": notification_type},
        )


@dataclass(slots=True)
class DetachedNotifier(Notifier):
    """
    Fire-and-forget notifier.

    Each notification is written by a task on ``executor`` inside its own
    application context (hence its own DB session). The caller never waits
    and never sees a failure; failures are logged.

    :param executor: Pool running the delivery tasks.
    :param app: Application whose context the tasks push.
    """

    executor: Executor
    app: Flask

    def notify(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        body: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> None:
        payload = dict(data or {})
        try:
            future = self.executor.submit(self._deliver, user_id, type, title, body, payload)
        except RuntimeError:
            # Executor already shut down.
            logger.exception(
                "Notification not scheduled",
                extra={"user_id": user_id, "notification_type": type},
            )
            return
        future.add_done_callback(partial(_log_outcome, user_id=user_id, notification_type=type))

    def _deliver(
        self,
        user_id: str,
        type: str,
        title: str,
        body: str | None,
        data: dict[str, Any],
    ) -> None:
        with self.app.app_context():
            NotificationService().record(
                user_id=user_id, type=type, title=title, body=body, data=data
            )
