"""Partner link repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from sqlalchemy import or_, select

from innera.models.enums import OPEN_LINK_STATUSES, PartnerLinkStatus
from innera.models.partner import PartnerLink
from innera.repositories.base import BaseRepository


class PartnerLinkRepository(BaseRepository[PartnerLink]):
    """Persistence-only repository for :class:`PartnerLink`."""

    model = PartnerLink

    def _involving(self, user_id: str):
        return or_(PartnerLink.initiator_id == user_id, PartnerLink.partner_id == user_id)

    def find_open_for_user(self, user_id: str) -> PartnerLink | None:
        """Return the user's PENDING or ACTIVE link, on either side."""
        stmt = select(PartnerLink).where(
            self._involving(user_id), PartnerLink.status.in_(OPEN_LINK_STATUSES)
        )
        return cast(PartnerLink | None, self.session.execute(stmt).scalars().first())

    def has_open_link(self, user_id: str) -> bool:
        return self.find_open_for_user(user_id) is not None

    def find_active_for_user(self, user_id: str) -> PartnerLink | None:
        stmt = select(PartnerLink).where(
            self._involving(user_id), PartnerLink.status == PartnerLinkStatus.ACTIVE
        )
        return cast(PartnerLink | None, self.session.execute(stmt).scalars().first())

    def find_pending_for_partner(self, user_id: str) -> PartnerLink | None:
        """Return a PENDING link where ``user_id`` is the invited side."""
        stmt = select(PartnerLink).where(
            PartnerLink.partner_id == user_id,
            PartnerLink.status == PartnerLinkStatus.PENDING,
        )
        return cast(PartnerLink | None, self.session.execute(stmt).scalars().first())

    def transition(self, link_id: str, *, expected: str, values: Mapping[str, Any]) -> int:
        """Move a link out of ``expected`` status; returns 0 if it already moved.

        :param link_id: Link primary key.
        :param expected: Status the row must still have.
        :param values: New column values (``status`` included).
        """
        return self._guarded_update(
            PartnerLink.id == link_id,
            PartnerLink.status == expected,
            values=values,
        )
