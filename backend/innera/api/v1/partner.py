"""Partner pairing endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from innera.api.deps import (
    current_principal,
    json_response,
    no_content,
    pairing_service,
    require_auth,
    timing,
)
from innera.schemas import PartnerInviteSchema, PartnerLinkSchema, PartnerRespondSchema, envelope

bp = Blueprint("partner", __name__)

respond_schema = PartnerRespondSchema()
invite_schema = PartnerInviteSchema()
link_schema = PartnerLinkSchema()


@bp.get("")
@require_auth
@timing
def get_partner():
    """Return the caller's pending/active link or ``null``."""

    link = pairing_service().get_status(current_principal().user_id)
    return json_response(envelope(link_schema.dump(link) if link else None))


@bp.post("/invite")
@require_auth
@timing
def create_invite():
    invite = pairing_service().create_invite(current_principal().user_id)
    return json_response(envelope(invite_schema.dump(invite)), status=201)


@bp.post("/invite/<string:code>/accept")
@require_auth
@timing
def accept_invite(code: str):
    """Redeem an invite code and become partners with its creator."""

    link = pairing_service().accept_invite(current_principal().user_id, code)
    return json_response(envelope(link_schema.dump(link)))


@bp.post("/respond")
@require_auth
@timing
def respond():
    data = respond_schema.load(request.get_json(silent=True) or {})
    link = pairing_service().respond(current_principal().user_id, accept=data["accept"])
    return json_response(envelope(link_schema.dump(link)))


@bp.delete("")
@require_auth
@timing
def revoke():
    """End the caller's active partner link."""

    pairing_service().revoke(current_principal().user_id)
    return no_content()
