"""Session endpoints: refresh rotation, logout and identity."""

from __future__ import annotations

from flask import Blueprint, request

from innera.api.deps import (
    current_principal,
    json_response,
    no_content,
    require_auth,
    timing,
    token_service,
)
from innera.schemas import LogoutSchema, RefreshResponseSchema, RefreshSchema, UserSchema, envelope
from innera.services.auth.dto import LogoutIn, RefreshIn

bp = Blueprint("auth", __name__)

refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
refresh_response_schema = RefreshResponseSchema()
user_schema = UserSchema()


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh token and return a new pair with the user."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    result = token_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response(envelope(refresh_response_schema.dump(result)))


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the given refresh token of the caller, if any."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    principal = current_principal()
    token_service().logout(LogoutIn(user_id=principal.user_id, refresh_token=data["refresh_token"]))
    return no_content()


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every refresh token of the caller."""

    token_service().logout_all(current_principal().user_id)
    return no_content()


@bp.get("/me")
@require_auth
@timing
def me():
    user = token_service().whoami(current_principal().user_id)
    return json_response(envelope(user_schema.dump(user)))
