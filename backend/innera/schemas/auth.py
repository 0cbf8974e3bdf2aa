"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token."""

    refresh_token = fields.String(
        required=True, data_key="refreshToken", validate=validate.Length(min=1, max=4096)
    )


class LogoutSchema(Schema):
    """Input payload for single-session logout."""

    refresh_token = fields.String(
        load_default=None, allow_none=True, data_key="refreshToken", validate=validate.Length(max=4096)
    )


class UserSchema(Schema):
    """Public user representation."""

    id = fields.String(required=True)
    email = fields.Email(required=True)
    display_name = fields.String(required=True, data_key="displayName")
    avatar_url = fields.String(allow_none=True, data_key="avatarUrl")


class RefreshResponseSchema(Schema):
    """New token pair plus the user it belongs to."""

    access_token = fields.String(attribute="tokens.access_token", data_key="accessToken")
    refresh_token = fields.String(attribute="tokens.refresh_token", data_key="refreshToken")
    expires_in = fields.Integer(attribute="tokens.expires_in", data_key="expiresIn")
    user = fields.Nested(UserSchema)
