"""Notification Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class NotificationSchema(Schema):
    id = fields.String()
    type = fields.String()
    title = fields.String()
    body = fields.String(allow_none=True)
    data = fields.Dict()
    read = fields.Boolean()
    read_at = fields.DateTime(allow_none=True, data_key="readAt")
    created_at = fields.DateTime(data_key="createdAt")
