"""User repository (read-mostly: accounts are provisioned elsewhere)."""

from __future__ import annotations

from innera.models.user import User
from innera.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`."""

    model = User
