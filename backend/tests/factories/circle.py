"""Factory Boy definitions for circles, memberships and invites."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import factory

from innera.models.circle import Circle, CircleInvite, CircleMembership
from innera.models.enums import CircleRole, CircleStatus, HistoryPolicy, MembershipStatus
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class CircleFactory(BaseFactory):
    """Build persisted :class:`innera.models.circle.Circle` instances."""

    class Meta:
        model = Circle
        exclude = ("creator",)

    creator = factory.SubFactory(UserFactory)
    created_by = factory.SelfAttribute("creator.id")
    name = factory.Sequence(lambda n: f"Circle {n}")
    description = "Close friends"
    status = CircleStatus.ACTIVE.value
    max_members = 20


class CircleMembershipFactory(BaseFactory):
    """Build persisted :class:`innera.models.circle.CircleMembership` instances."""

    class Meta:
        model = CircleMembership

    circle = factory.SubFactory(CircleFactory)
    user = factory.SubFactory(UserFactory)
    circle_id = factory.SelfAttribute("circle.id")
    user_id = factory.SelfAttribute("user.id")
    role = CircleRole.MEMBER.value
    status = MembershipStatus.ACTIVE.value
    history_policy = HistoryPolicy.ALL.value
    joined_at = factory.LazyFunction(lambda: datetime.now(UTC))


class CircleInviteFactory(BaseFactory):
    """Build persisted :class:`innera.models.circle.CircleInvite` instances."""

    class Meta:
        model = CircleInvite
        exclude = ("circle",)

    circle = factory.SubFactory(CircleFactory)
    circle_id = factory.SelfAttribute("circle.id")
    invite_code = factory.Sequence(lambda n: f"invite-code-{n:04d}")
    created_by = factory.SelfAttribute("circle.created_by")
    expires_at = factory.LazyFunction(lambda: datetime.now(UTC) + timedelta(days=7))
    max_uses = 50
    used_count = 0
