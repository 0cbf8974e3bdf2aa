"""Unit tests for the entry visibility rules (pure, no database)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from innera.models.enums import (
    CircleRole,
    HistoryPolicy,
    MembershipStatus,
    PartnerLinkStatus,
    Visibility,
)
from innera.services._shared.policies.visibility import (
    MembershipView,
    Viewer,
    can_delete_entry,
    can_edit_entry,
    can_view,
)

JOINED = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
BEFORE = JOINED - timedelta(days=3)
AFTER = JOINED + timedelta(days=3)


@dataclass
class _Entry:
    author_id: str
    visibility: str
    circle_id: str | None = None
    created_at: datetime = AFTER


def _member(
    *,
    circle_id: str = "c1",
    role: str = CircleRole.MEMBER,
    status: str = MembershipStatus.ACTIVE,
    policy: str = HistoryPolicy.ALL,
    joined_at: datetime = JOINED,
) -> MembershipView:
    return MembershipView(
        circle_id=circle_id, role=role, status=status, history_policy=policy, joined_at=joined_at
    )


def _viewer(*memberships: MembershipView, partner_id=None, partner_status=None) -> Viewer:
    return Viewer(
        user_id="viewer",
        partner_id=partner_id,
        partner_status=partner_status,
        memberships={m.circle_id: m for m in memberships},
    )


@pytest.mark.parametrize("visibility", list(Visibility))
def test_author_always_sees_own_entry(visibility):
    entry = _Entry("viewer", visibility, circle_id="c1")
    assert can_view(entry, _viewer()) is True


def test_private_is_author_only():
    entry = _Entry("author", Visibility.PRIVATE)
    viewer = _viewer(_member(), partner_id="author", partner_status=PartnerLinkStatus.ACTIVE)
    assert can_view(entry, viewer) is False


class TestPartnerVisibility:
    def test_active_partner_sees(self):
        entry = _Entry("author", Visibility.PARTNER)
        assert can_view(entry, _viewer(partner_id="author", partner_status=PartnerLinkStatus.ACTIVE))

    @pytest.mark.parametrize(
        "status", [PartnerLinkStatus.PENDING, PartnerLinkStatus.REVOKED, PartnerLinkStatus.DECLINED]
    )
    def test_inactive_link_denies(self, status):
        entry = _Entry("author", Visibility.PARTNER)
        assert not can_view(entry, _viewer(partner_id="author", partner_status=status))

    def test_someone_elses_partner_denied(self):
        entry = _Entry("author", Visibility.PARTNER)
        assert not can_view(entry, _viewer(partner_id="other", partner_status=PartnerLinkStatus.ACTIVE))


class TestCircleVisibility:
    def test_active_member_with_full_history_sees_older_entries(self):
        entry = _Entry("author", Visibility.CIRCLE, "c1", created_at=BEFORE)
        assert can_view(entry, _viewer(_member(policy=HistoryPolicy.ALL)))

    def test_future_only_member_sees_newer_entries_only(self):
        viewer = _viewer(_member(policy=HistoryPolicy.FUTURE_ONLY))
        assert can_view(_Entry("author", Visibility.CIRCLE, "c1", created_at=AFTER), viewer)
        assert not can_view(_Entry("author", Visibility.CIRCLE, "c1", created_at=BEFORE), viewer)

    def test_written_at_join_instant_is_visible(self):
        viewer = _viewer(_member(policy=HistoryPolicy.FUTURE_ONLY))
        assert can_view(_Entry("author", Visibility.CIRCLE, "c1", created_at=JOINED), viewer)

    @pytest.mark.parametrize("status", [MembershipStatus.LEFT, MembershipStatus.REMOVED])
    def test_former_member_denied(self, status):
        entry = _Entry("author", Visibility.CIRCLE, "c1")
        assert not can_view(entry, _viewer(_member(status=status)))

    def test_member_of_another_circle_denied(self):
        entry = _Entry("author", Visibility.CIRCLE, "c1")
        assert not can_view(entry, _viewer(_member(circle_id="c2")))

    def test_naive_timestamps_are_read_as_utc(self):
        entry = _Entry("author", Visibility.CIRCLE, "c1", created_at=BEFORE.replace(tzinfo=None))
        viewer = _viewer(_member(policy=HistoryPolicy.FUTURE_ONLY))
        assert not can_view(entry, viewer)


class TestFutureCircleOnlyVisibility:
    def test_older_entry_hidden_even_with_full_history_policy(self):
        """An entry written before the viewer joined stays hidden whatever the policy says."""
        entry = _Entry("author", Visibility.FUTURE_CIRCLE_ONLY, "c1", created_at=BEFORE)
        assert can_view(entry, _viewer(_member(policy=HistoryPolicy.ALL))) is False

    def test_newer_entry_visible(self):
        entry = _Entry("author", Visibility.FUTURE_CIRCLE_ONLY, "c1", created_at=AFTER)
        assert can_view(entry, _viewer(_member(policy=HistoryPolicy.ALL))) is True

    def test_non_member_denied(self):
        entry = _Entry("author", Visibility.FUTURE_CIRCLE_ONLY, "c1", created_at=AFTER)
        assert can_view(entry, _viewer()) is False


@pytest.mark.parametrize("visibility", ["PUBLIC", "", None])
def test_unknown_visibility_fails_closed(visibility):
    entry = _Entry("author", visibility, "c1")
    viewer = _viewer(_member(), partner_id="author", partner_status=PartnerLinkStatus.ACTIVE)
    assert can_view(entry, viewer) is False


def test_only_author_edits():
    entry = _Entry("author", Visibility.CIRCLE, "c1")
    assert not can_edit_entry(entry, _viewer(_member(role=CircleRole.OWNER)))
    assert can_edit_entry(entry, Viewer(user_id="author"))


@pytest.mark.parametrize(
    ("role", "allowed"),
    [(CircleRole.OWNER, True), (CircleRole.ADMIN, True), (CircleRole.MEMBER, False)],
)
def test_circle_managers_delete_circle_entries(role, allowed):
    entry = _Entry("author", Visibility.CIRCLE, "c1")
    assert can_delete_entry(entry, _viewer(_member(role=role))) is allowed


def test_circle_role_does_not_reach_private_entries():
    entry = _Entry("author", Visibility.PRIVATE)
    assert can_delete_entry(entry, _viewer(_member(role=CircleRole.OWNER))) is False
