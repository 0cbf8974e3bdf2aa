"""Circle endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from innera.api.deps import (
    circle_service,
    current_principal,
    json_response,
    no_content,
    require_auth,
    timing,
)
from innera.schemas import (
    CircleCreateSchema,
    CircleInviteSchema,
    CircleJoinSchema,
    CircleSchema,
    TransferOwnershipSchema,
    envelope,
)
from innera.services.circles.dto import CircleCreateIn, CircleJoinIn

bp = Blueprint("circles", __name__)

create_schema = CircleCreateSchema()
join_schema = CircleJoinSchema()
transfer_schema = TransferOwnershipSchema()
circle_schema = CircleSchema()
invite_schema = CircleInviteSchema()


@bp.post("")
@require_auth
@timing
def create_circle():
    """Create a circle; the response carries its founding invite code."""

    data = create_schema.load(request.get_json(silent=True) or {})
    circle = circle_service().create_circle(current_principal().user_id, CircleCreateIn(**data))
    return json_response(envelope(circle_schema.dump(circle)), status=201)


@bp.get("/<string:circle_id>")
@require_auth
@timing
def get_circle(circle_id: str):
    circle = circle_service().get_circle(current_principal().user_id, circle_id)
    return json_response(envelope(circle_schema.dump(circle)))


@bp.post("/join")
@require_auth
@timing
def join_circle():
    """Join with an invite code."""

    data = join_schema.load(request.get_json(silent=True) or {})
    circle = circle_service().join_by_code(current_principal().user_id, CircleJoinIn(**data))
    return json_response(envelope({"circle": circle_schema.dump(circle)}), status=201)


@bp.post("/<string:circle_id>/invite")
@require_auth
@timing
def generate_invite(circle_id: str):
    invite = circle_service().generate_invite(current_principal().user_id, circle_id)
    return json_response(envelope(invite_schema.dump(invite)), status=201)


@bp.post("/<string:circle_id>/leave")
@require_auth
@timing
def leave_circle(circle_id: str):
    circle_service().leave(current_principal().user_id, circle_id)
    return no_content()


@bp.delete("/<string:circle_id>/members/<string:user_id>")
@require_auth
@timing
def remove_member(circle_id: str, user_id: str):
    circle_service().remove_member(current_principal().user_id, circle_id, user_id)
    return no_content()


@bp.post("/<string:circle_id>/transfer-ownership")
@require_auth
@timing
def transfer_ownership(circle_id: str):
    """Hand the OWNER role to another member."""

    data = transfer_schema.load(request.get_json(silent=True) or {})
    circle = circle_service().transfer_ownership(
        current_principal().user_id, circle_id, data["new_owner_id"]
    )
    return json_response(envelope(circle_schema.dump(circle)))
