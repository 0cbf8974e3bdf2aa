"""Notification inbox endpoints."""

from __future__ import annotations

from flask import Blueprint

from innera.api.deps import (
    current_principal,
    json_response,
    notification_service,
    parse_pagination,
    require_auth,
    timing,
)
from innera.schemas import NotificationSchema, build_meta, envelope

bp = Blueprint("notifications", __name__)

notification_schema = NotificationSchema()
notification_list_schema = NotificationSchema(many=True)


@bp.get("")
@require_auth
@timing
def list_notifications():
    """Return the caller's notifications, newest first, one page at a time."""

    pagination = parse_pagination()
    items, total = notification_service().list_for_user(current_principal().user_id, pagination)
    meta = build_meta(total=total, page=pagination.page, limit=pagination.limit)
    return json_response({"data": notification_list_schema.dump(items), "meta": meta})


@bp.get("/unread-count")
@require_auth
@timing
def unread_count():
    count = notification_service().unread_count(current_principal().user_id)
    return json_response(envelope({"count": count}))


@bp.post("/<string:notification_id>/read")
@require_auth
@timing
def mark_read(notification_id: str):
    item = notification_service().mark_read(current_principal().user_id, notification_id)
    return json_response(envelope(notification_schema.dump(item)))


@bp.post("/read-all")
@require_auth
@timing
def mark_all_read():
    updated = notification_service().mark_all_read(current_principal().user_id)
    return json_response(envelope({"updated": updated}))
