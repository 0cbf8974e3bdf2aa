"""Fixtures for HTTP-level tests: accounts with ready-made bearer headers."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from innera.factory import TOKEN_SETTINGS_KEY
from innera.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from innera.infra.redis.redis_session_registry import RedisSessionRegistry
from innera.services.auth.dto import TokenPairOut, UserOut
from innera.services.auth.service import TokenService
from tests.factories.user import UserFactory
from tests.helpers.auth import issue_token
from tests.helpers.http import json_headers


@dataclass(frozen=True)
class Account:
    """Plain copy of a persisted user plus its access token.

    Requests end by closing the session, so tests hold ids, not ORM rows.
    """

    id: str
    email: str
    display_name: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return json_headers(self.token)


@pytest.fixture()
def make_account(app, session):
    """Return a callable persisting a user and returning its :class:`Account`."""

    def _make(**kwargs) -> Account:
        user = UserFactory(**kwargs)
        return Account(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            token=issue_token(app, user.id, user.email),
        )

    return _make


@pytest.fixture()
def sign_in(app, redis_client):
    """Return a callable issuing a registered token pair for an account."""

    settings = app.extensions[TOKEN_SETTINGS_KEY]
    service = TokenService(
        codec=PyJWTTokenCodec(settings),
        registry=RedisSessionRegistry(redis_client),
        settings=settings,
    )

    def _sign_in(account: Account) -> TokenPairOut:
        return service.issue_pair(
            UserOut(id=account.id, email=account.email, display_name=account.display_name)
        )

    return _sign_in
