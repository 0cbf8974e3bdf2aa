"""Journal entry model (content is an opaque encrypted blob)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from innera.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin
from .enums import Visibility, sql_enum


class Entry(PKMixin, TimestampMixin, ReprMixin, db.Model):
    """
    Journal entry with optimistic versioning.

    Fields
    ------
    content_encrypted : bytes
        Ciphertext produced client-side; never decoded here.
    visibility : str
        PRIVATE, PARTNER, CIRCLE or FUTURE_CIRCLE_ONLY.
    circle_id : str | None
        Required exactly for the two circle visibilities.
    version : int
        Starts at 1; every successful update adds one.
    deleted_at : datetime | None
        Soft-delete marker.
    """

    __tablename__ = "entries"

    author_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title_encrypted: Mapped[bytes | None] = mapped_column(LargeBinary)
    content_encrypted: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    mood: Mapped[str | None] = mapped_column(String(20))
    visibility: Mapped[str] = mapped_column(
        sql_enum(Visibility, "entry_visibility"),
        nullable=False,
        default=Visibility.PRIVATE.value,
    )
    circle_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("circles.id")
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    encryption_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("version >= 1", name="version_positive"),
        CheckConstraint(
            "(visibility IN ('CIRCLE', 'FUTURE_CIRCLE_ONLY')) = (circle_id IS NOT NULL)",
            name="circle_matches_visibility",
        ),
        Index("ix_entries_author_created", "author_id", "created_at"),
        Index("ix_entries_circle_created", "circle_id", "created_at"),
    )
