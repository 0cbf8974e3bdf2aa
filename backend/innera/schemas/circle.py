"""Circle Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from innera.models.enums import HistoryPolicy


class CircleCreateSchema(Schema):
    """Input payload for creating a circle."""

    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    description = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=500))


class CircleJoinSchema(Schema):
    """Input payload for joining with an invite code."""

    invite_code = fields.String(
        required=True, data_key="inviteCode", validate=validate.Length(min=1, max=64)
    )
    history_policy = fields.String(
        load_default=HistoryPolicy.ALL.value,
        data_key="historyPolicy",
        validate=validate.OneOf([p.value for p in HistoryPolicy]),
    )


class TransferOwnershipSchema(Schema):
    new_owner_id = fields.String(
        required=True, data_key="newOwnerId", validate=validate.Length(min=1, max=36)
    )


class MemberSchema(Schema):
    user_id = fields.String(data_key="userId")
    display_name = fields.String(data_key="displayName")
    role = fields.String()
    history_policy = fields.String(data_key="historyPolicy")
    joined_at = fields.DateTime(data_key="joinedAt")


class CircleSchema(Schema):
    """Circle representation from the caller's point of view."""

    id = fields.String()
    name = fields.String()
    description = fields.String(allow_none=True)
    status = fields.String()
    created_by = fields.String(data_key="createdBy")
    max_members = fields.Integer(data_key="maxMembers")
    member_count = fields.Integer(data_key="memberCount")
    created_at = fields.DateTime(data_key="createdAt")
    role = fields.String(allow_none=True)
    invite_code = fields.String(allow_none=True, data_key="inviteCode")
    members = fields.List(fields.Nested(MemberSchema))


class CircleInviteSchema(Schema):
    invite_code = fields.String(attribute="code", data_key="inviteCode")
    circle_id = fields.String(data_key="circleId")
    expires_at = fields.DateTime(data_key="expiresAt")
    max_uses = fields.Integer(data_key="maxUses")
    used_count = fields.Integer(data_key="usedCount")
