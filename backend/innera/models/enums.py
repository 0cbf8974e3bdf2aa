"""Domain enumerations shared by models, services and policies."""

from __future__ import annotations

from enum import StrEnum

from sqlalchemy import Enum


class PartnerLinkStatus(StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    DECLINED = "DECLINED"
    REVOKED = "REVOKED"


#: Statuses that count as "currently linked" for the one-link-per-user rule.
OPEN_LINK_STATUSES: tuple[str, ...] = (PartnerLinkStatus.PENDING, PartnerLinkStatus.ACTIVE)


class CircleStatus(StrEnum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class CircleRole(StrEnum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class MembershipStatus(StrEnum):
    ACTIVE = "ACTIVE"
    LEFT = "LEFT"
    REMOVED = "REMOVED"


class HistoryPolicy(StrEnum):
    """Whether a circle member sees entries written before they joined."""

    ALL = "ALL"
    FUTURE_ONLY = "FUTURE_ONLY"


class Visibility(StrEnum):
    PRIVATE = "PRIVATE"
    PARTNER = "PARTNER"
    CIRCLE = "CIRCLE"
    FUTURE_CIRCLE_ONLY = "FUTURE_CIRCLE_ONLY"


#: Visibilities that require ``circle_id``.
CIRCLE_VISIBILITIES: tuple[str, ...] = (Visibility.CIRCLE, Visibility.FUTURE_CIRCLE_ONLY)


class NotificationType(StrEnum):
    PARTNER_ACCEPTED = "PARTNER_ACCEPTED"
    PARTNER_REVOKED = "PARTNER_REVOKED"
    CIRCLE_REMOVED = "CIRCLE_REMOVED"


def sql_enum(enum_cls: type[StrEnum], name: str) -> Enum:
    """Build the SQLAlchemy column type for a string enum (stored by value)."""
    return Enum(*[m.value for m in enum_cls], name=name)
