# innera/services/circles/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from innera.models.circle import Circle, CircleInvite, CircleMembership

# ---------------------------- Settings ------------------------------------ #


@dataclass(frozen=True, slots=True)
class CircleSettings:
    """
    Invite lifetimes and capacities.

    :param founding_invite_ttl: Lifetime of the invite created with a circle.
    :param founding_invite_max_uses: Capacity of that invite.
    :param invite_ttl: Lifetime of invites generated later by the owner.
    :param invite_max_uses: Capacity of those invites.
    :param max_members: Member cap for new circles.
    """

    founding_invite_ttl: timedelta = timedelta(days=30)
    founding_invite_max_uses: int = 100
    invite_ttl: timedelta = timedelta(days=7)
    invite_max_uses: int = 50
    max_members: int = 20

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> CircleSettings:
        return cls(
            founding_invite_ttl=timedelta(seconds=int(config["CIRCLE_FOUNDING_INVITE_TTL"])),
            founding_invite_max_uses=int(config["CIRCLE_FOUNDING_INVITE_MAX_USES"]),
            invite_ttl=timedelta(seconds=int(config["CIRCLE_INVITE_TTL"])),
            invite_max_uses=int(config["CIRCLE_INVITE_MAX_USES"]),
            max_members=int(config["MAX_CIRCLE_MEMBERS"]),
        )


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class CircleCreateIn:
    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CircleJoinIn:
    """
    :param invite_code: Code shared by a circle owner.
    :param history_policy: ``ALL`` to see older CIRCLE entries, ``FUTURE_ONLY`` otherwise.
    """

    invite_code: str
    history_policy: str = "ALL"


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class MemberOut:
    user_id: str
    display_name: str
    role: str
    history_policy: str
    joined_at: datetime

    @classmethod
    def from_model(cls, m: CircleMembership) -> MemberOut:
        return cls(
            user_id=m.user_id,
            display_name=m.user.display_name,
            role=m.role,
            history_policy=m.history_policy,
            joined_at=m.joined_at,
        )


@dataclass(frozen=True, slots=True)
class CircleInviteOut:
    code: str
    circle_id: str
    expires_at: datetime
    max_uses: int
    used_count: int

    @classmethod
    def from_model(cls, invite: CircleInvite) -> CircleInviteOut:
        return cls(
            code=invite.invite_code,
            circle_id=invite.circle_id,
            expires_at=invite.expires_at,
            max_uses=invite.max_uses,
            used_count=invite.used_count,
        )


@dataclass(frozen=True, slots=True)
class CircleOut:
    """
    Circle as seen by one member.

    :param role: Caller's role in the circle.
    :param invite_code: Founding invite code, only right after creation.
    :param members: Active members, filled by detail reads.
    """

    id: str
    name: str
    description: str | None
    status: str
    created_by: str
    max_members: int
    member_count: int
    created_at: datetime
    role: str | None = None
    invite_code: str | None = None
    members: tuple[MemberOut, ...] = ()

    @classmethod
    def from_model(
        cls,
        circle: Circle,
        *,
        member_count: int,
        role: str | None = None,
        invite_code: str | None = None,
        members: tuple[MemberOut, ...] = (),
    ) -> CircleOut:
        return cls(
            id=circle.id,
            name=circle.name,
            description=circle.description,
            status=circle.status,
            created_by=circle.created_by,
            max_members=circle.max_members,
            member_count=member_count,
            created_at=circle.created_at,
            role=role,
            invite_code=invite_code,
            members=members,
        )
