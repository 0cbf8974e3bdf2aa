"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from innera.repositories.base import BaseRepository
from innera.repositories.circle import (
    CircleInviteRepository,
    CircleMembershipRepository,
    CircleRepository,
)
from innera.repositories.entry import EntryRepository
from innera.repositories.notification import NotificationRepository
from innera.repositories.partner import PartnerLinkRepository
from innera.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "CircleInviteRepository",
    "CircleMembershipRepository",
    "CircleRepository",
    "EntryRepository",
    "NotificationRepository",
    "PartnerLinkRepository",
    "UserRepository",
]
