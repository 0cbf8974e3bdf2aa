from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


class Notifier(Protocol):
    """
    Best-effort user notifications.

    Implementations MUST NOT raise: delivery problems are logged and dropped
    so the calling operation is never failed by a notification.
    """

    def notify(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        body: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> None: ...


@dataclass(frozen=True, slots=True)
class SentNotification:
    user_id: str
    type: str
    title: str
    body: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)


class RecordingNotifier(Notifier):
    """In-memory notifier that keeps every call; used by unit tests."""

    def __init__(self) -> None:
        self.sent: list[SentNotification] = []
        self._lock = threading.Lock()

    def notify(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        body: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> None:
        with self._lock:
            self.sent.append(SentNotification(user_id, type, title, body, dict(data or {})))

    def types_for(self, user_id: str) -> list[str]:
        return [n.type for n in self.sent if n.user_id == user_id]
