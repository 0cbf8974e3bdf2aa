"""Circle, membership and invite models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from innera.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, utcnow
from .enums import CircleRole, CircleStatus, HistoryPolicy, MembershipStatus, sql_enum

if TYPE_CHECKING:
    from .user import User


class Circle(PKMixin, TimestampMixin, ReprMixin, db.Model):
    """Small private group whose members may read CIRCLE entries."""

    __tablename__ = "circles"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500))
    created_by: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        sql_enum(CircleStatus, "circle_status"),
        nullable=False,
        default=CircleStatus.ACTIVE.value,
    )
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=20)

    __table_args__ = (CheckConstraint("max_members > 0", name="max_members_positive"),)

    memberships: Mapped[list[CircleMembership]] = relationship(
        "CircleMembership", back_populates="circle", passive_deletes=True
    )

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Circle name is required.")
        return value.strip()


class CircleMembership(PKMixin, ReprMixin, db.Model):
    """
    One row per (circle, user), ever.

    Leaving or being removed flips ``status``; joining again reactivates
    the same row, so the unique constraint doubles as "at most one ACTIVE
    membership per pair".
    """

    __tablename__ = "circle_memberships"

    circle_id: Mapped[str] = mapped_column(
        ForeignKey("circles.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[str] = mapped_column(
        sql_enum(CircleRole, "circle_role"), nullable=False, default=CircleRole.MEMBER.value
    )
    status: Mapped[str] = mapped_column(
        sql_enum(MembershipStatus, "membership_status"),
        nullable=False,
        default=MembershipStatus.ACTIVE.value,
    )
    history_policy: Mapped[str] = mapped_column(
        sql_enum(HistoryPolicy, "history_policy"),
        nullable=False,
        default=HistoryPolicy.ALL.value,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    left_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("circle_id", "user_id", name="uq_circle_memberships_circle_user"),
        Index("ix_circle_memberships_user_status", "user_id", "status"),
    )

    circle: Mapped[Circle] = relationship("Circle", back_populates="memberships")
    user: Mapped[User] = relationship("User", lazy="selectin")


class CircleInvite(PKMixin, ReprMixin, db.Model):
    """Multi-use invite code; ``used_count`` never exceeds ``max_uses``."""

    __tablename__ = "circle_invites"

    circle_id: Mapped[str] = mapped_column(
        ForeignKey("circles.id", ondelete="CASCADE"), nullable=False
    )
    invite_code: Mapped[str] = mapped_column(String(64), nullable=False)
    created_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False)
    used_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("invite_code", name="uq_circle_invites_invite_code"),
        CheckConstraint("used_count >= 0 AND used_count <= max_uses", name="usage_bounds"),
        Index("ix_circle_invites_circle", "circle_id"),
    )
