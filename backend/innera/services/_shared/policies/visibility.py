"""
Entry visibility rules.

Everything here is pure: callers load the entry plus the viewer's partner
link and circle memberships, build a :class:`Viewer`, then ask. Unknown
visibility values are denied.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from innera.models.base import ensure_utc
from innera.models.enums import (
    CircleRole,
    HistoryPolicy,
    MembershipStatus,
    PartnerLinkStatus,
    Visibility,
)


class EntryLike(Protocol):
    author_id: str
    visibility: str
    circle_id: str | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class MembershipView:
    """Snapshot of one circle membership of the viewer."""

    circle_id: str
    role: str
    status: str
    history_policy: str
    joined_at: datetime


@dataclass(frozen=True, slots=True)
class Viewer:
    """
    Who is looking, with the relations the rules need.

    :param user_id: Viewer id.
    :param partner_id: Counterpart of the viewer's partner link, if any.
    :param partner_status: Status of that link.
    :param memberships: Viewer memberships keyed by circle id.
    """

    user_id: str
    partner_id: str | None = None
    partner_status: str | None = None
    memberships: Mapping[str, MembershipView] = field(default_factory=dict)

    def membership_in(self, circle_id: str | None) -> MembershipView | None:
        if circle_id is None:
            return None
        return self.memberships.get(circle_id)


def _written_after_join(entry: EntryLike, membership: MembershipView) -> bool:
    return ensure_utc(entry.created_at) >= ensure_utc(membership.joined_at)


def _active_membership(entry: EntryLike, viewer: Viewer) -> MembershipView | None:
    membership = viewer.membership_in(entry.circle_id)
    if membership is None or membership.status != MembershipStatus.ACTIVE:
        return None
    return membership


def can_view(entry: EntryLike, viewer: Viewer) -> bool:
    """
    Decide whether ``viewer`` may read ``entry``.

    * The author always can.
    * ``PRIVATE``: author only.
    * ``PARTNER``: the viewer's ACTIVE partner is the author.
    * ``CIRCLE``: ACTIVE membership in the entry's circle; a ``FUTURE_ONLY``
      history policy additionally hides entries written before joining.
    * ``FUTURE_CIRCLE_ONLY``: ACTIVE membership and written at or after
      joining, whatever the membership's history policy says.
    * Anything else: denied.
    """
    if entry.author_id == viewer.user_id:
        return True

    visibility = entry.visibility
    if visibility == Visibility.PRIVATE:
        return False

    if visibility == Visibility.PARTNER:
        return (
            viewer.partner_id == entry.author_id
            and viewer.partner_status == PartnerLinkStatus.ACTIVE
        )

    if visibility == Visibility.CIRCLE:
        membership = _active_membership(entry, viewer)
        if membership is None:
            return False
        if membership.history_policy == HistoryPolicy.FUTURE_ONLY:
            return _written_after_join(entry, membership)
        return True

    if visibility == Visibility.FUTURE_CIRCLE_ONLY:
        membership = _active_membership(entry, viewer)
        return membership is not None and _written_after_join(entry, membership)

    return False


def can_edit_entry(entry: EntryLike, viewer: Viewer) -> bool:
    return entry.author_id == viewer.user_id


def can_delete_entry(entry: EntryLike, viewer: Viewer) -> bool:
    """Author, or an OWNER/ADMIN of the circle the entry is shared with."""
    if entry.author_id == viewer.user_id:
        return True
    membership = _active_membership(entry, viewer)
    return membership is not None and membership.role in (CircleRole.OWNER, CircleRole.ADMIN)
