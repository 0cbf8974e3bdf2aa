"""Persisted user notifications."""

from innera.services.notifications.service import NotificationOut, NotificationService

__all__ = ["NotificationOut", "NotificationService"]
