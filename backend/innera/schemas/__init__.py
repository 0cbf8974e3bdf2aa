"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LogoutSchema, RefreshResponseSchema, RefreshSchema, UserSchema
from .circle import (
    CircleCreateSchema,
    CircleInviteSchema,
    CircleJoinSchema,
    CircleSchema,
    MemberSchema,
    TransferOwnershipSchema,
)
from .common import Base64Bytes, PaginationQuerySchema, build_meta, envelope
from .entry import EntryCreateSchema, EntryPatchSchema, EntrySchema
from .notification import NotificationSchema
from .partner import PartnerInviteSchema, PartnerLinkSchema, PartnerRespondSchema

__all__ = [
    "Base64Bytes",
    "CircleCreateSchema",
    "CircleInviteSchema",
    "CircleJoinSchema",
    "CircleSchema",
    "EntryCreateSchema",
    "EntryPatchSchema",
    "EntrySchema",
    "LogoutSchema",
    "MemberSchema",
    "NotificationSchema",
    "PaginationQuerySchema",
    "PartnerInviteSchema",
    "PartnerLinkSchema",
    "PartnerRespondSchema",
    "RefreshResponseSchema",
    "RefreshSchema",
    "TransferOwnershipSchema",
    "UserSchema",
    "build_meta",
    "envelope",
]
