"""
Unit tests for CircleService.

Covers circle creation, the counted invite protocol (including a lost race
on the last use) and membership administration.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from innera.models.base import ensure_utc
from innera.models.circle import Circle, CircleInvite, CircleMembership
from innera.models.enums import (
    CircleRole,
    CircleStatus,
    HistoryPolicy,
    MembershipStatus,
    NotificationType,
)
from innera.repositories.circle import CircleInviteRepository, CircleMembershipRepository
from innera.services._shared.errors import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from innera.services._shared.ports import RecordingNotifier
from innera.services.circles.dto import CircleCreateIn, CircleJoinIn, CircleSettings
from innera.services.circles.service import CircleService
from tests.factories.circle import CircleFactory, CircleInviteFactory, CircleMembershipFactory
from tests.factories.user import UserFactory


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(notifier):
    return CircleService(notifier=notifier, settings=CircleSettings())


@pytest.fixture
def owner(session):
    return UserFactory().id


@pytest.fixture
def circle(service, owner):
    """A circle created through the service, with its founding invite."""
    return service.create_circle(owner, CircleCreateIn(name="  Night owls ", description="Late writers"))


def _membership(session, circle_id: str, user_id: str) -> CircleMembership | None:
    session.expire_all()
    return session.query(CircleMembership).filter_by(circle_id=circle_id, user_id=user_id).one_or_none()


def _invite(session, code: str) -> CircleInvite:
    session.expire_all()
    return session.query(CircleInvite).filter_by(invite_code=code).one()


def _join(service, code: str, *, policy: str = HistoryPolicy.ALL):
    user_id = UserFactory().id
    return user_id, service.join_by_code(user_id, CircleJoinIn(invite_code=code, history_policy=policy))


def _add_member(session, circle_id: str, *, role: str = CircleRole.MEMBER) -> str:
    member = CircleMembershipFactory(circle=session.get(Circle, circle_id), role=role)
    return member.user_id


class TestCreateCircle:
    def test_creator_is_owner_with_founding_invite(self, service, session, circle, owner):
        assert circle.name == "Night owls"
        assert circle.role == CircleRole.OWNER
        assert circle.member_count == 1
        assert circle.status == CircleStatus.ACTIVE
        assert circle.max_members == 20

        mine = _membership(session, circle.id, owner)
        assert (mine.role, mine.status, mine.history_policy) == (
            CircleRole.OWNER,
            MembershipStatus.ACTIVE,
            HistoryPolicy.ALL,
        )

        invite = _invite(session, circle.invite_code)
        assert (invite.max_uses, invite.used_count) == (100, 0)
        lifetime = ensure_utc(invite.expires_at) - datetime.now(UTC)
        assert timedelta(days=29) < lifetime <= timedelta(days=30)

    def test_get_circle_lists_members(self, service, session, circle, owner):
        _join(service, circle.invite_code)

        detail = service.get_circle(owner, circle.id)

        assert detail.member_count == 2
        assert {m.role for m in detail.members} == {CircleRole.OWNER, CircleRole.MEMBER}

    def test_get_circle_is_members_only(self, service, session, circle):
        with pytest.raises(AuthorizationError):
            service.get_circle(UserFactory().id, circle.id)

    def test_get_unknown_circle(self, service, owner):
        with pytest.raises(NotFoundError):
            service.get_circle(owner, "missing")


class TestGenerateInvite:
    def test_owner_generates_ad_hoc_invite(self, service, circle, owner):
        invite = service.generate_invite(owner, circle.id)

        assert invite.circle_id == circle.id
        assert (invite.max_uses, invite.used_count) == (50, 0)
        lifetime = ensure_utc(invite.expires_at) - datetime.now(UTC)
        assert timedelta(days=6) < lifetime <= timedelta(days=7)

    def test_admin_cannot_generate(self, service, session, circle):
        admin = _add_member(session, circle.id, role=CircleRole.ADMIN)
        with pytest.raises(AuthorizationError):
            service.generate_invite(admin, circle.id)

    def test_unknown_circle(self, service, owner):
        with pytest.raises(NotFoundError):
            service.generate_invite(owner, "missing")


class TestJoinByCode:
    def test_join_adds_member_and_counts_the_use(self, service, session, circle):
        user_id, out = _join(service, circle.invite_code, policy=HistoryPolicy.FUTURE_ONLY)

        assert out.role == CircleRole.MEMBER
        assert out.member_count == 2
        membership = _membership(session, circle.id, user_id)
        assert membership.status == MembershipStatus.ACTIVE
        assert membership.history_policy == HistoryPolicy.FUTURE_ONLY
        assert _invite(session, circle.invite_code).used_count == 1

    def test_unknown_code(self, service, session):
        with pytest.raises(BadRequestError):
            service.join_by_code(UserFactory().id, CircleJoinIn(invite_code="nope"))

    def test_expired_code(self, service, session):
        invite = CircleInviteFactory(expires_at=datetime.now(UTC) - timedelta(minutes=1))
        with pytest.raises(BadRequestError):
            service.join_by_code(UserFactory().id, CircleJoinIn(invite_code=invite.invite_code))

    def test_exhausted_code(self, service, session):
        invite = CircleInviteFactory(max_uses=2, used_count=2)
        with pytest.raises(ConflictError, match="maximum uses"):
            service.join_by_code(UserFactory().id, CircleJoinIn(invite_code=invite.invite_code))

    def test_archived_circle(self, service, session):
        invite = CircleInviteFactory(circle=CircleFactory(status=CircleStatus.ARCHIVED))
        with pytest.raises(BadRequestError):
            service.join_by_code(UserFactory().id, CircleJoinIn(invite_code=invite.invite_code))

    def test_full_circle(self, service, session):
        circle = CircleFactory(max_members=1)
        CircleMembershipFactory(circle=circle, role=CircleRole.OWNER)
        invite = CircleInviteFactory(circle=circle)

        with pytest.raises(ConflictError, match="full"):
            service.join_by_code(UserFactory().id, CircleJoinIn(invite_code=invite.invite_code))

    def test_already_member(self, service, session, circle, owner):
        with pytest.raises(ConflictError, match="already a member"):
            service.join_by_code(owner, CircleJoinIn(invite_code=circle.invite_code))
        assert _invite(session, circle.invite_code).used_count == 0

    def test_rejoin_reactivates_the_same_row(self, service, session, circle):
        user_id, _ = _join(service, circle.invite_code)
        first = _membership(session, circle.id, user_id)
        first_id, first_joined = first.id, ensure_utc(first.joined_at)
        service.leave(user_id, circle.id)

        service.join_by_code(
            user_id, CircleJoinIn(invite_code=circle.invite_code, history_policy=HistoryPolicy.FUTURE_ONLY)
        )

        again = _membership(session, circle.id, user_id)
        assert again.id == first_id
        assert again.status == MembershipStatus.ACTIVE
        assert again.history_policy == HistoryPolicy.FUTURE_ONLY
        assert again.left_at is None
        assert ensure_utc(again.joined_at) >= first_joined
        assert _invite(session, circle.invite_code).used_count == 2

    def test_last_use_goes_to_one_joiner(self, service, session):
        invite = CircleInviteFactory(max_uses=1)

        first, _ = _join(service, invite.invite_code)
        with pytest.raises(ConflictError):
            _join(service, invite.invite_code)

        assert _invite(session, invite.invite_code).used_count == 1
        assert _membership(session, invite.circle_id, first) is not None

    def test_lost_race_on_last_use_rolls_back_membership(self, service, session, monkeypatch):
        """Another joiner redeems the last use between our checks and our redeem."""
        invite = CircleInviteFactory(max_uses=1)
        original = CircleInviteRepository.redeem

        def _competitor_first(self, invite_id, *, now):
            original(self, invite_id, now=now)
            return original(self, invite_id, now=now)

        monkeypatch.setattr(CircleInviteRepository, "redeem", _competitor_first)
        loser = UserFactory().id

        with pytest.raises(ConflictError, match="just used up"):
            service.join_by_code(loser, CircleJoinIn(invite_code=invite.invite_code))

        assert _membership(session, invite.circle_id, loser) is None

    def test_reactivation_race(self, service, session, circle, monkeypatch):
        user_id, _ = _join(service, circle.invite_code)
        service.leave(user_id, circle.id)
        monkeypatch.setattr(CircleMembershipRepository, "reactivate", lambda self, *a, **kw: 0)

        with pytest.raises(ConflictError):
            service.join_by_code(user_id, CircleJoinIn(invite_code=circle.invite_code))
        assert _invite(session, circle.invite_code).used_count == 1


class TestRemoveMember:
    def test_owner_removes_admin(self, service, notifier, session, circle, owner):
        admin = _add_member(session, circle.id, role=CircleRole.ADMIN)

        service.remove_member(owner, circle.id, admin)

        row = _membership(session, circle.id, admin)
        assert row.status == MembershipStatus.REMOVED
        assert row.left_at is not None
        assert notifier.types_for(admin) == [NotificationType.CIRCLE_REMOVED]

    def test_admin_removes_member(self, service, session, circle):
        admin = _add_member(session, circle.id, role=CircleRole.ADMIN)
        member = _add_member(session, circle.id)

        service.remove_member(admin, circle.id, member)

        assert _membership(session, circle.id, member).status == MembershipStatus.REMOVED

    def test_admin_cannot_remove_admin_or_owner(self, service, session, circle, owner):
        admin = _add_member(session, circle.id, role=CircleRole.ADMIN)
        other_admin = _add_member(session, circle.id, role=CircleRole.ADMIN)

        with pytest.raises(AuthorizationError):
            service.remove_member(admin, circle.id, other_admin)
        with pytest.raises(AuthorizationError):
            service.remove_member(admin, circle.id, owner)

    def test_member_cannot_remove(self, service, session, circle):
        member = _add_member(session, circle.id)
        other = _add_member(session, circle.id)
        with pytest.raises(AuthorizationError):
            service.remove_member(member, circle.id, other)

    def test_self_removal_is_rejected(self, service, circle, owner):
        with pytest.raises(BadRequestError):
            service.remove_member(owner, circle.id, owner)

    def test_target_not_a_member(self, service, session, circle, owner):
        with pytest.raises(NotFoundError):
            service.remove_member(owner, circle.id, UserFactory().id)

    def test_target_changed_concurrently(self, service, notifier, session, circle, owner, monkeypatch):
        member = _add_member(session, circle.id)
        monkeypatch.setattr(CircleMembershipRepository, "deactivate", lambda self, *a, **kw: 0)

        with pytest.raises(ConflictError):
            service.remove_member(owner, circle.id, member)
        assert notifier.sent == []


class TestLeave:
    def test_member_leaves(self, service, session, circle):
        member = _add_member(session, circle.id)

        service.leave(member, circle.id)

        row = _membership(session, circle.id, member)
        assert row.status == MembershipStatus.LEFT
        assert row.left_at is not None

    def test_owner_must_transfer_first(self, service, circle, owner):
        with pytest.raises(BadRequestError):
            service.leave(owner, circle.id)

    def test_non_member(self, service, session, circle):
        with pytest.raises(NotFoundError):
            service.leave(UserFactory().id, circle.id)


class TestTransferOwnership:
    def test_roles_swap(self, service, session, circle, owner):
        member = _add_member(session, circle.id)

        out = service.transfer_ownership(owner, circle.id, member)

        assert out.role == CircleRole.ADMIN
        assert _membership(session, circle.id, owner).role == CircleRole.ADMIN
        assert _membership(session, circle.id, member).role == CircleRole.OWNER
        # The former owner can now leave.
        service.leave(owner, circle.id)

    def test_only_owner_transfers(self, service, session, circle):
        admin = _add_member(session, circle.id, role=CircleRole.ADMIN)
        member = _add_member(session, circle.id)
        with pytest.raises(AuthorizationError):
            service.transfer_ownership(admin, circle.id, member)

    def test_target_must_be_active_member(self, service, session, circle, owner):
        with pytest.raises(NotFoundError):
            service.transfer_ownership(owner, circle.id, UserFactory().id)

    def test_self_transfer(self, service, circle, owner):
        with pytest.raises(BadRequestError):
            service.transfer_ownership(owner, circle.id, owner)

    def test_lost_race_keeps_roles(self, service, session, circle, owner, monkeypatch):
        member = _add_member(session, circle.id)
        original = CircleMembershipRepository.change_role

        def _second_fails(self, circle_id, user_id, *, expected_role, role):
            if role == CircleRole.OWNER:
                return 0
            return original(self, circle_id, user_id, expected_role=expected_role, role=role)

        monkeypatch.setattr(CircleMembershipRepository, "change_role", _second_fails)

        with pytest.raises(ConflictError):
            service.transfer_ownership(owner, circle.id, member)
        assert _membership(session, circle.id, owner).role == CircleRole.OWNER

