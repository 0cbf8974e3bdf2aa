"""Partner link model (one-to-one pairing between two users)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from innera.core.extensions import db

from .base import PKMixin, ReprMixin, utcnow
from .enums import PartnerLinkStatus, sql_enum

if TYPE_CHECKING:
    from .user import User

_OPEN = text("status IN ('PENDING', 'ACTIVE')")


class PartnerLink(PKMixin, ReprMixin, db.Model):
    """
    Pairing between an initiator and a partner.

    A user takes part in at most one PENDING/ACTIVE link at a time, on
    either side. The partial unique indexes back that rule per column; the
    cross-column case is re-checked by the pairing service inside the
    insert transaction.

    Fields
    ------
    status : str
        ``PENDING`` → ``ACTIVE``/``DECLINED``; ``ACTIVE`` → ``REVOKED``.
    responded_at : datetime | None
        Set when the link became ACTIVE or DECLINED.
    revoked_at, revoked_by :
        Set when either side ends an ACTIVE link.
    """

    __tablename__ = "partner_links"

    initiator_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    partner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        sql_enum(PartnerLinkStatus, "partner_link_status"),
        nullable=False,
        default=PartnerLinkStatus.PENDING.value,
    )
    initiated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    revoked_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )

    __table_args__ = (
        CheckConstraint("initiator_id <> partner_id", name="not_self"),
        Index(
            "uq_partner_links_open_initiator",
            "initiator_id",
            unique=True,
            sqlite_where=_OPEN,
            postgresql_where=_OPEN,
        ),
        Index(
            "uq_partner_links_open_partner",
            "partner_id",
            unique=True,
            sqlite_where=_OPEN,
            postgresql_where=_OPEN,
        ),
    )

    initiator: Mapped[User] = relationship("User", foreign_keys=[initiator_id], lazy="selectin")
    partner: Mapped[User] = relationship("User", foreign_keys=[partner_id], lazy="selectin")

    def counterpart_of(self, user_id: str) -> str:
        """Return the id of the other side of the link."""
        return self.partner_id if self.initiator_id == user_id else self.initiator_id
