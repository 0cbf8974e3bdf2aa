"""Entry Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from innera.models.enums import CIRCLE_VISIBILITIES, Visibility

from .common import Base64Bytes

_VISIBILITIES = [v.value for v in Visibility]


class _EntryFieldsSchema(Schema):
    title_encrypted = Base64Bytes(allow_none=True, data_key="titleEncrypted")
    content_encrypted = Base64Bytes(data_key="contentEncrypted")
    mood = fields.String(allow_none=True, validate=validate.Length(max=20))
    visibility = fields.String(validate=validate.OneOf(_VISIBILITIES))
    circle_id = fields.String(allow_none=True, data_key="circleId", validate=validate.Length(max=36))
    encryption_version = fields.Integer(
        data_key="encryptionVersion", validate=validate.Range(min=1)
    )


class EntryCreateSchema(_EntryFieldsSchema):
    """Input payload for a new entry."""

    content_encrypted = Base64Bytes(required=True, data_key="contentEncrypted")
    visibility = fields.String(
        load_default=Visibility.PRIVATE.value, validate=validate.OneOf(_VISIBILITIES)
    )

    @validates_schema
    def _circle_matches_visibility(self, data: dict[str, Any], **_: Any) -> None:
        needs_circle = data.get("visibility") in CIRCLE_VISIBILITIES
        if needs_circle and not data.get("circle_id"):
            raise ValidationError("circleId is required for circle visibility.", "circleId")


class EntryPatchSchema(_EntryFieldsSchema):
    """
    Partial update; ``version`` is the version the client last read.

    Only keys present in the body reach the service.
    """

    version = fields.Integer(required=True, validate=validate.Range(min=1))


class EntrySchema(Schema):
    """Entry representation; ciphertexts stay base64."""

    id = fields.String()
    author_id = fields.String(data_key="authorId")
    title_encrypted = Base64Bytes(allow_none=True, data_key="titleEncrypted")
    content_encrypted = Base64Bytes(data_key="contentEncrypted")
    mood = fields.String(allow_none=True)
    visibility = fields.String()
    circle_id = fields.String(allow_none=True, data_key="circleId")
    version = fields.Integer()
    encryption_version = fields.Integer(data_key="encryptionVersion")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
    deleted_at = fields.DateTime(allow_none=True, data_key="deletedAt")
