"""Partner pairing Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields


class PartnerRespondSchema(Schema):
    """Input payload answering a pending partner request."""

    accept = fields.Boolean(required=True)


class PartnerInviteSchema(Schema):
    invite_code = fields.String(attribute="code", data_key="inviteCode")
    expires_in = fields.Integer(data_key="expiresIn")


class PartnerProfileSchema(Schema):
    id = fields.String()
    display_name = fields.String(data_key="displayName")
    avatar_url = fields.String(allow_none=True, data_key="avatarUrl")


class PartnerLinkSchema(Schema):
    """Partner link from the caller's side."""

    id = fields.String()
    status = fields.String()
    role = fields.String()
    partner = fields.Nested(PartnerProfileSchema, allow_none=True)
    initiated_at = fields.DateTime(data_key="initiatedAt")
    responded_at = fields.DateTime(allow_none=True, data_key="respondedAt")
    revoked_at = fields.DateTime(allow_none=True, data_key="revokedAt")
