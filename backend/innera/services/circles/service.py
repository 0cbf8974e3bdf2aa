# innera/services/circles/service.py
from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta

from innera.models.base import ensure_utc
from innera.models.circle import Circle, CircleInvite, CircleMembership
from innera.models.enums import (
    CircleRole,
    CircleStatus,
    HistoryPolicy,
    MembershipStatus,
    NotificationType,
)
from innera.services._shared.base import BaseService
from innera.services._shared.errors import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from innera.services._shared.policies.common import can_kick_member, can_manage_circle
from innera.services._shared.ports import Notifier
from innera.services.circles.dto import (
    CircleCreateIn,
    CircleInviteOut,
    CircleJoinIn,
    CircleOut,
    CircleSettings,
    MemberOut,
)

logger = logging.getLogger(__name__)


def new_invite_code() -> str:
    return secrets.token_urlsafe(12)


class CircleService(BaseService):
    """
    Circle lifecycle and the counted invite protocol.

    Redemption is one conditional ``used_count + 1`` executed last, in the
    same transaction as the membership write: the first committed joiner
    wins the last use and the loser's membership is rolled back.
    """

    def __init__(self, *, notifier: Notifier, settings: CircleSettings | None = None) -> None:
        super().__init__()
        self.notifier = notifier
        self.settings = settings or CircleSettings()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _new_invite(circle_id: str, created_by: str, *, ttl: timedelta, max_uses: int, now: datetime) -> CircleInvite:
        return CircleInvite(
            circle_id=circle_id,
            invite_code=new_invite_code(),
            created_by=created_by,
            expires_at=now + ttl,
            max_uses=max_uses,
            used_count=0,
        )

    @staticmethod
    def _get_circle(uow, circle_id: str) -> Circle:
        circle = uow.circles.get(circle_id)
        if circle is None:
            raise NotFoundError("Circle", circle_id)
        return circle

    # ------------------------------------------------------------------ #
    # Circles
    # ------------------------------------------------------------------ #

    def create_circle(self, user_id: str, dto: CircleCreateIn) -> CircleOut:
        """Create a circle with the caller as OWNER plus its founding invite."""
        now = self.now_utc()
        with self.rw_uow() as uow:
            circle = uow.circles.add(
                Circle(
                    name=dto.name,
                    description=dto.description,
                    created_by=user_id,
                    max_members=self.settings.max_members,
                )
            )
            uow.memberships.add(
                CircleMembership(
                    circle_id=circle.id,
                    user_id=user_id,
                    role=CircleRole.OWNER.value,
                    status=MembershipStatus.ACTIVE.value,
                    history_policy=HistoryPolicy.ALL.value,
                    joined_at=now,
                )
            )
            invite = uow.circle_invites.add(
                self._new_invite(
                    circle.id,
                    user_id,
                    ttl=self.settings.founding_invite_ttl,
                    max_uses=self.settings.founding_invite_max_uses,
                    now=now,
                )
            )
            out = CircleOut.from_model(
                circle, member_count=1, role=CircleRole.OWNER, invite_code=invite.invite_code
            )
        logger.info("Circle created", extra={"user_id": user_id, "circle_id": out.id})
        return out

    def get_circle(self, user_id: str, circle_id: str) -> CircleOut:
        """
        Circle detail with its active members; members only.

        :raises NotFoundError: Unknown circle.
        :raises AuthorizationError: The caller is not an active member.
        """
        with self.ro_uow() as uow:
            circle = self._get_circle(uow, circle_id)
            mine = uow.memberships.find_active(circle_id, user_id)
            if mine is None:
                raise AuthorizationError("You are not a member of this circle.")
            members = tuple(
                MemberOut.from_model(m) for m in uow.memberships.list_active_for_circle(circle_id)
            )
            return CircleOut.from_model(
                circle, member_count=len(members), role=mine.role, members=members
            )

    # ------------------------------------------------------------------ #
    # Invites
    # ------------------------------------------------------------------ #

    def generate_invite(self, owner_user_id: str, circle_id: str) -> CircleInviteOut:
        """
        Create an ad-hoc invite code.

        :raises NotFoundError: Unknown circle.
        :raises AuthorizationError: The caller is not the OWNER.
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            self._get_circle(uow, circle_id)
            mine = uow.memberships.find_active(circle_id, owner_user_id)
            if not can_manage_circle(mine.role if mine else None):
                raise AuthorizationError("Only the circle owner can create invites.")
            invite = uow.circle_invites.add(
                self._new_invite(
                    circle_id,
                    owner_user_id,
                    ttl=self.settings.invite_ttl,
                    max_uses=self.settings.invite_max_uses,
                    now=now,
                )
            )
            return CircleInviteOut.from_model(invite)

    def join_by_code(self, user_id: str, dto: CircleJoinIn) -> CircleOut:
        """
        Join a circle with an invite code, reactivating an old membership if any.

        :raises BadRequestError: Unknown/expired code or a circle not accepting members.
        :raises ConflictError: Exhausted invite, full circle, already a member,
            or a concurrent joiner took the last use.
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            invite = uow.circle_invites.find_by_code(dto.invite_code)
            if invite is None or ensure_utc(invite.expires_at) <= now:
                raise BadRequestError("Invalid or expired invite code")
            if invite.used_count >= invite.max_uses:
                raise ConflictError("CircleInvite", "invite has reached its maximum uses, ask for a new one")

            circle = uow.circles.get(invite.circle_id)
            if circle is None or circle.status != CircleStatus.ACTIVE:
                raise BadRequestError("This circle is not accepting members")

            members = uow.memberships
            if uow.circles.count_active_members(circle.id) >= circle.max_members:
                raise ConflictError("Circle", "circle is full")

            existing = members.find_for(circle.id, user_id)
            if existing is None:
                members.add(
                    CircleMembership(
                        circle_id=circle.id,
                        user_id=user_id,
                        role=CircleRole.MEMBER.value,
                        status=MembershipStatus.ACTIVE.value,
                        history_policy=dto.history_policy,
                        joined_at=now,
                    )
                )
            elif existing.status == MembershipStatus.ACTIVE:
                raise ConflictError("CircleMembership", "you are already a member of this circle")
            elif members.reactivate(existing.id, history_policy=dto.history_policy, now=now) == 0:
                raise ConflictError("CircleMembership", "membership changed meanwhile, refresh and retry")

            # Last statement of the unit: a zero here rolls the membership back too.
            if uow.circle_invites.redeem(invite.id, now=now) == 0:
                raise ConflictError("CircleInvite", "invite was just used up, refresh and retry")

            out = CircleOut.from_model(
                circle,
                member_count=uow.circles.count_active_members(circle.id),
                role=CircleRole.MEMBER,
            )
        logger.info("Joined circle", extra={"user_id": user_id, "circle_id": out.id})
        return out

    # ------------------------------------------------------------------ #
    # Membership administration
    # ------------------------------------------------------------------ #

    def remove_member(self, actor_id: str, circle_id: str, target_user_id: str) -> None:
        """
        Remove another member.

        :raises BadRequestError: The actor targets themselves.
        :raises AuthorizationError: The actor's role may not remove the target.
        :raises NotFoundError: The target is not an active member.
        :raises ConflictError: The target's membership changed concurrently.
        """
        if actor_id == target_user_id:
            raise BadRequestError("Use leave to exit a circle yourself")

        with self.rw_uow() as uow:
            members = uow.memberships
            actor = members.find_active(circle_id, actor_id)
            if actor is None or actor.role not in (CircleRole.OWNER, CircleRole.ADMIN):
                raise AuthorizationError("Only circle owners and admins can remove members.")
            target = members.find_active(circle_id, target_user_id)
            if target is None:
                raise NotFoundError("CircleMembership", target_user_id)
            if not can_kick_member(actor.role, target.role):
                raise AuthorizationError("You cannot remove this member.")

            updated = members.deactivate(
                circle_id,
                target_user_id,
                status=MembershipStatus.REMOVED.value,
                now=self.now_utc(),
                expected_role=target.role,
            )
            if updated == 0:
                if members.find_active(circle_id, target_user_id) is None:
                    raise NotFoundError("CircleMembership", target_user_id)
                raise ConflictError("CircleMembership", "member changed meanwhile, refresh and retry")

        logger.info(
            "Member removed", extra={"user_id": target_user_id, "circle_id": circle_id}
        )
        self.notifier.notify(
            user_id=target_user_id,
            type=NotificationType.CIRCLE_REMOVED,
            title="Removed from circle",
            body="You have been removed from a circle.",
            data={"circle_id": circle_id},
        )

    def leave(self, user_id: str, circle_id: str) -> None:
        """
        Leave a circle.

        :raises BadRequestError: The caller is the OWNER.
        :raises NotFoundError: The caller is not an active member.
        """
        with self.rw_uow() as uow:
            members = uow.memberships
            mine = members.find_active(circle_id, user_id)
            if mine is None:
                raise NotFoundError("CircleMembership", user_id)
            if mine.role == CircleRole.OWNER:
                raise BadRequestError("The owner must transfer ownership first")
            updated = members.deactivate(
                circle_id, user_id, status=MembershipStatus.LEFT.value, now=self.now_utc()
            )
            if updated == 0:
                raise NotFoundError("CircleMembership", user_id)

    def transfer_ownership(self, owner_id: str, circle_id: str, new_owner_id: str) -> CircleOut:
        """
        Hand the OWNER role to another active member; the old owner becomes ADMIN.

        :raises NotFoundError: Unknown circle, or the target is not an active member.
        :raises AuthorizationError: The caller is not the OWNER.
        :raises BadRequestError: Self-transfer.
        :raises ConflictError: Either role change lost a race.
        """
        with self.rw_uow() as uow:
            circle = self._get_circle(uow, circle_id)
            members = uow.memberships
            mine = members.find_active(circle_id, owner_id)
            if not can_manage_circle(mine.role if mine else None):
                raise AuthorizationError("Only the circle owner can transfer ownership.")
            if owner_id == new_owner_id:
                raise BadRequestError("You already own this circle")
            if members.find_active(circle_id, new_owner_id) is None:
                raise NotFoundError("CircleMembership", new_owner_id)

            demoted = members.change_role(
                circle_id, owner_id, expected_role=CircleRole.OWNER.value, role=CircleRole.ADMIN.value
            )
            promoted = members.change_role(
                circle_id, new_owner_id, expected_role=None, role=CircleRole.OWNER.value
            )
            if demoted == 0 or promoted == 0:
                raise ConflictError("Circle", "membership changed meanwhile, refresh and retry")

            out = CircleOut.from_model(
                circle,
                member_count=uow.circles.count_active_members(circle_id),
                role=CircleRole.ADMIN,
            )
        logger.info("Ownership transferred", extra={"user_id": new_owner_id, "circle_id": circle_id})
        return out
