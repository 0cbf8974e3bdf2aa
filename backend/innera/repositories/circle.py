"""Circle, membership and invite repositories."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import func, select

from innera.models.circle import Circle, CircleInvite, CircleMembership
from innera.models.enums import CircleRole, MembershipStatus
from innera.repositories.base import BaseRepository


class CircleRepository(BaseRepository[Circle]):
    """Persistence-only repository for :class:`Circle`."""

    model = Circle

    def count_active_members(self, circle_id: str) -> int:
        stmt = select(func.count(CircleMembership.id)).where(
            CircleMembership.circle_id == circle_id,
            CircleMembership.status == MembershipStatus.ACTIVE,
        )
        return int(self.session.execute(stmt).scalar_one())


class CircleMembershipRepository(BaseRepository[CircleMembership]):
    """Membership rows plus the guarded transitions of their state machine."""

    model = CircleMembership

    def find_for(self, circle_id: str, user_id: str) -> CircleMembership | None:
        """Return the (circle, user) row in any status."""
        stmt = select(CircleMembership).where(
            CircleMembership.circle_id == circle_id, CircleMembership.user_id == user_id
        )
        return cast(CircleMembership | None, self.session.execute(stmt).scalars().first())

    def find_active(self, circle_id: str, user_id: str) -> CircleMembership | None:
        stmt = select(CircleMembership).where(
            CircleMembership.circle_id == circle_id,
            CircleMembership.user_id == user_id,
            CircleMembership.status == MembershipStatus.ACTIVE,
        )
        return cast(CircleMembership | None, self.session.execute(stmt).scalars().first())

    def list_active_for_user(self, user_id: str) -> list[CircleMembership]:
        stmt = select(CircleMembership).where(
            CircleMembership.user_id == user_id,
            CircleMembership.status == MembershipStatus.ACTIVE,
        )
        return list(self.session.execute(stmt).scalars().all())

    def list_active_for_circle(self, circle_id: str) -> list[CircleMembership]:
        stmt = (
            select(CircleMembership)
            .where(
                CircleMembership.circle_id == circle_id,
                CircleMembership.status == MembershipStatus.ACTIVE,
            )
            .order_by(CircleMembership.joined_at.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def reactivate(self, membership_id: str, *, history_policy: str, now: datetime) -> int:
        """Bring a LEFT/REMOVED row back as an ACTIVE MEMBER; 0 if already active."""
        return self._guarded_update(
            CircleMembership.id == membership_id,
            CircleMembership.status != MembershipStatus.ACTIVE,
            values={
                "status": MembershipStatus.ACTIVE.value,
                "role": CircleRole.MEMBER.value,
                "history_policy": history_policy,
                "joined_at": now,
                "left_at": None,
            },
        )

    def deactivate(
        self,
        circle_id: str,
        user_id: str,
        *,
        status: str,
        now: datetime,
        expected_role: str | None = None,
    ) -> int:
        """Move an ACTIVE membership to ``status`` (LEFT or REMOVED).

        :param expected_role: When given, the row must still hold this role.
        """
        guards = [
            CircleMembership.circle_id == circle_id,
            CircleMembership.user_id == user_id,
            CircleMembership.status == MembershipStatus.ACTIVE,
        ]
        if expected_role is not None:
            guards.append(CircleMembership.role == expected_role)
        return self._guarded_update(*guards, values={"status": status, "left_at": now})

    def change_role(self, circle_id: str, user_id: str, *, expected_role: str | None, role: str) -> int:
        """Set the role of an ACTIVE member, optionally guarded by its current role."""
        guards = [
            CircleMembership.circle_id == circle_id,
            CircleMembership.user_id == user_id,
            CircleMembership.status == MembershipStatus.ACTIVE,
        ]
        if expected_role is not None:
            guards.append(CircleMembership.role == expected_role)
        return self._guarded_update(*guards, values={"role": role})


class CircleInviteRepository(BaseRepository[CircleInvite]):
    """Invite codes and their atomic redemption counter."""

    model = CircleInvite

    def find_by_code(self, code: str) -> CircleInvite | None:
        stmt = select(CircleInvite).where(CircleInvite.invite_code == code)
        return cast(CircleInvite | None, self.session.execute(stmt).scalars().first())

    def redeem(self, invite_id: str, *, now: datetime) -> int:
        """Consume one use: ``used_count + 1`` only while uses remain and unexpired.

        :returns: 1 when a use was taken, 0 when a concurrent joiner got the last one.
        """
        return self._guarded_update(
            CircleInvite.id == invite_id,
            CircleInvite.used_count < CircleInvite.max_uses,
            CircleInvite.expires_at > now,
            values={"used_count": CircleInvite.used_count + 1},
        )
