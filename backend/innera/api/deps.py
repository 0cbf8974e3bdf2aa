"""Shared API helpers: auth, service wiring and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from innera.core.errors import Unauthorized
from innera.core.extensions import get_redis
from innera.factory import NOTIFICATION_EXECUTOR_KEY, TOKEN_SETTINGS_KEY
from innera.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from innera.infra.notifications.detached_notifier import DetachedNotifier
from innera.infra.redis.redis_partner_invite_store import RedisPartnerInviteStore
from innera.infra.redis.redis_session_registry import RedisSessionRegistry
from innera.schemas import PaginationQuerySchema
from innera.services._shared.dto import PaginationIn
from innera.services._shared.errors import AuthenticationError
from innera.services.auth.dto import Principal
from innera.services.auth.service import TokenService
from innera.services.circles.dto import CircleSettings
from innera.services.circles.service import CircleService
from innera.services.entries.service import EntryService
from innera.services.notifications import NotificationService
from innera.services.partner.service import PairingService

F = TypeVar("F", bound=Callable[..., Any])

_BEARER = "bearer"


# ----------------------------- Service wiring ----------------------------------


def token_service() -> TokenService:
    """Build a :class:`TokenService` from the app's token settings and Redis."""
    settings = current_app.extensions[TOKEN_SETTINGS_KEY]
    registry = RedisSessionRegistry(
        get_redis(),
        scan_batch=settings.revoke_scan_batch,
        max_iterations=settings.revoke_scan_max_iterations,
    )
    return TokenService(codec=PyJWTTokenCodec(settings), registry=registry, settings=settings)


def notifier() -> DetachedNotifier:
    executor = current_app.extensions[NOTIFICATION_EXECUTOR_KEY]
    return DetachedNotifier(executor, current_app._get_current_object())  # type: ignore[attr-defined]


def pairing_service() -> PairingService:
    return PairingService(
        invites=RedisPartnerInviteStore(get_redis()),
        notifier=notifier(),
        invite_ttl=timedelta(seconds=int(current_app.config["PARTNER_INVITE_TTL"])),
    )


def circle_service() -> CircleService:
    return CircleService(notifier=notifier(), settings=CircleSettings.from_config(current_app.config))


def entry_service() -> EntryService:
    return EntryService()


def notification_service() -> NotificationService:
    return NotificationService()


# ----------------------------- Query parsing -----------------------------------


def parse_pagination(default_limit: int = 20, max_limit: int = 100) -> PaginationIn:
    """Parse pagination parameters from ``request.args`` using Marshmallow."""

    schema = PaginationQuerySchema(default_limit=default_limit, max_limit=max_limit)
    data = schema.load(request.args)
    return PaginationIn(page=data["page"], limit=data["limit"])


# ----------------------------- Authentication ----------------------------------


def _bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != _BEARER or not token.strip():
        return None
    return token.strip()


def current_principal() -> Principal:
    """Return the principal attached by :func:`require_auth`."""
    principal: Principal | None = g.get("principal")
    if principal is None:
        raise Unauthorized("Authentication required")
    return principal


def require_auth(func: F) -> F:
    """Verify the bearer access token and attach ``g.principal``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = _bearer_token()
        if token is None:
            raise Unauthorized("Authentication required")
        try:
            claims = token_service().verify_access(token)
        except AuthenticationError as exc:
            raise Unauthorized(str(exc)) from exc
        g.principal = Principal(user_id=claims.subject, email=claims.email)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# ----------------------------- Responses ---------------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def no_content() -> Response:
    return Response(status=204)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
