# innera/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for single-session logout.

    :param user_id: Authenticated caller.
    :type user_id: str
    :param refresh_token: Refresh JWT to revoke; absent means nothing to revoke.
    :type refresh_token: str | None
    """

    user_id: str
    refresh_token: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller attached to the request.

    :param user_id: Token subject.
    :param email: Email claim of the access token.
    """

    user_id: str
    email: str


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True, slots=True)
class UserOut:
    id: str
    email: str
    display_name: str
    avatar_url: str | None = None

    @classmethod
    def from_model(cls, user: Any) -> UserOut:
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
        )


@dataclass(frozen=True, slots=True)
class RefreshOut:
    """New token pair plus the user it belongs to."""

    tokens: TokenPairOut
    user: UserOut
