"""
Unit tests for PairingService.

Invite codes live in fakeredis; links are written to the transactional
SQLite session; notifications are recorded in memory.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from innera.infra.redis.redis_partner_invite_store import RedisPartnerInviteStore
from innera.models.enums import NotificationType, PartnerLinkStatus
from innera.models.partner import PartnerLink
from innera.models.user import User
from innera.repositories.partner import PartnerLinkRepository
from innera.services._shared.errors import BadRequestError, ConflictError, NotFoundError
from innera.services._shared.ports import RecordingNotifier
from innera.services.partner.service import PairingService
from tests.factories.partner import PartnerLinkFactory
from tests.factories.user import UserFactory

TTL = timedelta(hours=24)


@pytest.fixture
def store(redis_client):
    return RedisPartnerInviteStore(redis_client)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(store, notifier):
    return PairingService(invites=store, notifier=notifier, invite_ttl=TTL)


@pytest.fixture
def alice(session):
    return UserFactory().id


@pytest.fixture
def bob(session):
    return UserFactory().id


def _link(session, link_id: str) -> PartnerLink:
    return session.get(PartnerLink, link_id, populate_existing=True)


class TestCreateInvite:
    def test_creates_code_and_pending_guard(self, service, store, alice):
        invite = service.create_invite(alice)

        assert len(invite.code) == 32
        assert invite.expires_in == int(TTL.total_seconds())
        assert store.peek(invite.code) == alice
        assert store.r.get(f"partner_pending_invite:{alice}") == invite.code

    def test_second_invite_while_one_is_pending(self, service, alice):
        service.create_invite(alice)
        with pytest.raises(ConflictError, match="pending partner invite"):
            service.create_invite(alice)

    def test_refused_when_already_linked(self, service, session):
        link = PartnerLinkFactory(active=True)
        with pytest.raises(ConflictError, match="partner link"):
            service.create_invite(link.initiator_id)

    def test_pending_guard_released_when_code_write_fails(self, service, store, alice, monkeypatch):
        def _down(self, *args, **kwargs):
            raise ConnectionError("redis unavailable")

        monkeypatch.setattr(RedisPartnerInviteStore, "put", _down)
        with pytest.raises(ConnectionError):
            service.create_invite(alice)
        assert store.r.exists(f"partner_pending_invite:{alice}") == 0


class TestAcceptInvite:
    def test_accept_creates_active_link(self, service, store, notifier, session, alice, bob):
        code = service.create_invite(alice).code

        out = service.accept_invite(bob, code)

        link = _link(session, out.id)
        assert link.status == PartnerLinkStatus.ACTIVE
        assert (link.initiator_id, link.partner_id) == (alice, bob)
        assert link.responded_at is not None
        assert out.partner.id == alice
        assert store.peek(code) is None
        assert store.r.exists(f"partner_pending_invite:{alice}") == 0
        assert notifier.types_for(alice) == [NotificationType.PARTNER_ACCEPTED]

    def test_code_is_single_use(self, service, alice, bob, session):
        code = service.create_invite(alice).code
        service.accept_invite(bob, code)
        carol = UserFactory().id

        with pytest.raises(NotFoundError):
            service.accept_invite(carol, code)

    def test_unknown_code(self, service, bob):
        with pytest.raises(NotFoundError):
            service.accept_invite(bob, "does-not-exist")

    def test_own_code_is_rejected_and_kept(self, service, store, alice):
        code = service.create_invite(alice).code

        with pytest.raises(BadRequestError):
            service.accept_invite(alice, code)
        assert store.peek(code) == alice

    def test_code_taken_between_peek_and_take(self, service, store, alice, bob, monkeypatch):
        code = service.create_invite(alice).code
        monkeypatch.setattr(RedisPartnerInviteStore, "take", lambda self, c: None)

        with pytest.raises(NotFoundError):
            service.accept_invite(bob, code)

    def test_acceptor_already_linked_restores_code(self, service, store, session, alice, bob):
        code = service.create_invite(alice).code
        PartnerLinkFactory(partner=session.get(User, bob), active=True)

        with pytest.raises(ConflictError):
            service.accept_invite(bob, code)

        assert store.peek(code) == alice
        remaining = store.remaining_ttl(code)
        assert remaining is not None and remaining <= TTL

    def test_inviter_linked_meanwhile_drops_code(self, service, store, session, alice, bob):
        code = service.create_invite(alice).code
        PartnerLinkFactory(initiator=session.get(User, alice), active=True)

        with pytest.raises(ConflictError, match="ask for a new invite"):
            service.accept_invite(bob, code)

        assert store.peek(code) is None
        assert store.r.exists(f"partner_pending_invite:{alice}") == 0
        assert session.query(PartnerLink).filter_by(partner_id=bob).count() == 0

    def test_guard_release_failure_still_reports_conflict(
        self, service, store, session, alice, bob, monkeypatch, caplog
    ):
        code = service.create_invite(alice).code
        PartnerLinkFactory(initiator=session.get(User, alice), active=True)

        def _down(self, *args, **kwargs):
            raise ConnectionError("redis unavailable")

        monkeypatch.setattr(RedisPartnerInviteStore, "release_pending", _down)
        with caplog.at_level("ERROR"), pytest.raises(ConflictError, match="ask for a new invite"):
            service.accept_invite(bob, code)

        assert "Partner invite guard release failed" in caplog.text
        assert store.peek(code) is None


class TestConcurrentAcceptance:
    """Interleave a second pairing into the window after a code is consumed."""

    @staticmethod
    def _interleave(monkeypatch, action):
        real_take = RedisPartnerInviteStore.take
        fired = []

        def _take(self, code):
            inviter = real_take(self, code)
            if not fired:
                fired.append(code)
                action()
            return inviter

        monkeypatch.setattr(RedisPartnerInviteStore, "take", _take)

    @staticmethod
    def _open_links(session, user_id: str) -> list[PartnerLink]:
        session.expire_all()
        return [
            link
            for link in session.query(PartnerLink).all()
            if user_id in (link.initiator_id, link.partner_id)
            and link.status in (PartnerLinkStatus.PENDING, PartnerLinkStatus.ACTIVE)
        ]

    def test_acceptor_paired_elsewhere_loses_and_code_returns(
        self, service, store, session, alice, bob, monkeypatch
    ):
        carol = UserFactory().id
        alice_code = service.create_invite(alice).code
        carol_code = service.create_invite(carol).code
        self._interleave(monkeypatch, lambda: service.accept_invite(bob, carol_code))

        with pytest.raises(ConflictError, match="already have"):
            service.accept_invite(bob, alice_code)

        links = self._open_links(session, bob)
        assert [(link.initiator_id, link.partner_id) for link in links] == [(carol, bob)]
        assert store.peek(alice_code) == alice
        assert store.r.get(f"partner_pending_invite:{alice}") == alice_code

    def test_inviter_paired_elsewhere_loses_and_code_is_dropped(
        self, service, store, notifier, session, alice, bob, monkeypatch
    ):
        carol = UserFactory().id
        alice_code = service.create_invite(alice).code
        carol_code = service.create_invite(carol).code
        self._interleave(monkeypatch, lambda: service.accept_invite(alice, carol_code))

        with pytest.raises(ConflictError, match="ask for a new invite"):
            service.accept_invite(bob, alice_code)

        links = self._open_links(session, alice)
        assert [(link.initiator_id, link.partner_id) for link in links] == [(carol, alice)]
        assert self._open_links(session, bob) == []
        assert store.peek(alice_code) is None
        assert store.r.exists(f"partner_pending_invite:{alice}") == 0
        assert notifier.types_for(alice) == []


class TestRespond:
    def test_accept_pending_request(self, service, notifier, session):
        link = PartnerLinkFactory()
        initiator, partner = link.initiator_id, link.partner_id

        out = service.respond(partner, accept=True)

        assert out.status == PartnerLinkStatus.ACTIVE
        assert _link(session, out.id).responded_at is not None
        assert notifier.types_for(initiator) == [NotificationType.PARTNER_ACCEPTED]

    def test_decline_pending_request(self, service, notifier, session):
        link = PartnerLinkFactory()
        initiator, partner = link.initiator_id, link.partner_id

        out = service.respond(partner, accept=False)

        assert out.status == PartnerLinkStatus.DECLINED
        assert notifier.types_for(initiator) == [NotificationType.PARTNER_REVOKED]

    def test_initiator_cannot_respond(self, service, session):
        link = PartnerLinkFactory()
        with pytest.raises(NotFoundError):
            service.respond(link.initiator_id, accept=True)

    def test_lost_race(self, service, notifier, session, monkeypatch):
        link = PartnerLinkFactory()
        partner = link.partner_id
        monkeypatch.setattr(PartnerLinkRepository, "transition", lambda self, *a, **kw: 0)

        with pytest.raises(ConflictError, match="already been responded"):
            service.respond(partner, accept=True)
        assert notifier.sent == []


class TestRevoke:
    def test_either_side_revokes(self, service, notifier, session):
        link = PartnerLinkFactory(active=True)
        initiator, partner = link.initiator_id, link.partner_id

        out = service.revoke(partner)

        row = _link(session, out.id)
        assert row.status == PartnerLinkStatus.REVOKED
        assert row.revoked_by == partner
        assert row.revoked_at is not None
        assert notifier.types_for(initiator) == [NotificationType.PARTNER_REVOKED]

    def test_revoked_users_can_pair_again(self, service, session):
        link = PartnerLinkFactory(active=True)
        initiator = link.initiator_id
        service.revoke(initiator)

        assert service.create_invite(initiator).code

    def test_no_active_link(self, service, alice):
        with pytest.raises(NotFoundError):
            service.revoke(alice)

    def test_pending_link_cannot_be_revoked(self, service, session):
        link = PartnerLinkFactory()
        with pytest.raises(NotFoundError):
            service.revoke(link.initiator_id)


def test_get_status(service, session, alice):
    assert service.get_status(alice) is None

    link = PartnerLinkFactory(active=True)
    status = service.get_status(link.partner_id)

    assert status is not None
    assert status.id == link.id
    assert status.partner.id == link.initiator_id
