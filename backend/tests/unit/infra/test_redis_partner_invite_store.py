"""Unit tests for RedisPartnerInviteStore using fakeredis."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import fakeredis
import pytest

from innera.infra.redis.redis_partner_invite_store import RedisPartnerInviteStore

TTL = timedelta(hours=24)


@pytest.fixture
def store():
    return RedisPartnerInviteStore(fakeredis.FakeRedis(decode_responses=True))


def test_reserve_pending_is_exclusive(store):
    assert store.reserve_pending("u1", "code-1", TTL) is True
    assert store.reserve_pending("u1", "code-2", TTL) is False
    assert store.r.get("partner_pending_invite:u1") == "code-1"


def test_release_pending_allows_a_new_reservation(store):
    store.reserve_pending("u1", "code-1", TTL)
    store.release_pending("u1")

    assert store.reserve_pending("u1", "code-2", TTL) is True


def test_put_peek_and_remaining_ttl(store):
    store.put("code-1", "u1", TTL)

    assert store.peek("code-1") == "u1"
    remaining = store.remaining_ttl("code-1")
    assert remaining is not None
    assert timedelta(0) < remaining <= TTL


def test_remaining_ttl_of_missing_code(store):
    assert store.remaining_ttl("missing") is None


def test_take_consumes_the_code(store):
    store.put("code-1", "u1", TTL)

    assert store.take("code-1") == "u1"
    assert store.take("code-1") is None
    assert store.peek("code-1") is None


def test_concurrent_take_has_exactly_one_winner(store):
    store.put("code-race", "u1", TTL)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: store.take("code-race"), range(16)))

    assert [r for r in results if r is not None] == ["u1"]
