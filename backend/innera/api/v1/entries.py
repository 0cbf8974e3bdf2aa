"""Journal entry endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from innera.api.deps import (
    current_principal,
    entry_service,
    json_response,
    no_content,
    require_auth,
    timing,
)
from innera.schemas import EntryCreateSchema, EntryPatchSchema, EntrySchema, envelope
from innera.services.entries.dto import EntryCreateIn, EntryUpdateIn

bp = Blueprint("entries", __name__)

create_schema = EntryCreateSchema()
patch_schema = EntryPatchSchema()
entry_schema = EntrySchema()


@bp.post("")
@require_auth
@timing
def create_entry():
    data = create_schema.load(request.get_json(silent=True) or {})
    entry = entry_service().create(current_principal().user_id, EntryCreateIn(**data))
    return json_response(envelope(entry_schema.dump(entry)), status=201)


@bp.get("/<string:entry_id>")
@require_auth
@timing
def get_entry(entry_id: str):
    """Read an entry if its visibility lets the caller see it."""

    entry = entry_service().get(entry_id, current_principal().user_id)
    return json_response(envelope(entry_schema.dump(entry)))


@bp.patch("/<string:entry_id>")
@require_auth
@timing
def update_entry(entry_id: str):
    """Version-checked partial update; 409 means refetch and retry."""

    data = patch_schema.load(request.get_json(silent=True) or {})
    expected = data.pop("version")
    entry = entry_service().update(
        entry_id,
        current_principal().user_id,
        EntryUpdateIn(expected_version=expected, changes=data),
    )
    return json_response(envelope(entry_schema.dump(entry)))


@bp.delete("/<string:entry_id>")
@require_auth
@timing
def delete_entry(entry_id: str):
    entry_service().delete(entry_id, current_principal().user_id)
    return no_content()


@bp.post("/<string:entry_id>/restore")
@require_auth
@timing
def restore_entry(entry_id: str):
    entry = entry_service().restore(entry_id, current_principal().user_id)
    return json_response(envelope(entry_schema.dump(entry)))
