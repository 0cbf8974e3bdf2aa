"""Circle role checks shared by services. Pure, no I/O."""

from __future__ import annotations

from innera.models.enums import CircleRole

_KICKABLE_BY: dict[str, frozenset[str]] = {
    CircleRole.OWNER: frozenset({CircleRole.ADMIN, CircleRole.MEMBER}),
    CircleRole.ADMIN: frozenset({CircleRole.MEMBER}),
}


def can_manage_circle(role: str | None) -> bool:
    """Only the circle OWNER generates invites and transfers ownership."""
    return role == CircleRole.OWNER


def can_kick_member(actor_role: str | None, target_role: str | None) -> bool:
    """
    Return True if a member with ``actor_role`` may remove one with ``target_role``.

    OWNER removes anyone but an owner; ADMIN removes plain members only.
    """
    if actor_role is None or target_role is None:
        return False
    return target_role in _KICKABLE_BY.get(actor_role, frozenset())
