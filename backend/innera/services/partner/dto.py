# innera/services/partner/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from innera.models.partner import PartnerLink


@dataclass(frozen=True, slots=True)
class PartnerInviteOut:
    """
    Freshly created invite code.

    :param code: Code to share with the future partner.
    :param expires_in: Seconds until the code expires.
    """

    code: str
    expires_in: int


@dataclass(frozen=True, slots=True)
class PartnerProfileOut:
    id: str
    display_name: str
    avatar_url: str | None


@dataclass(frozen=True, slots=True)
class PartnerLinkOut:
    """
    Partner link as seen by one of its two users.

    :param role: ``initiator`` or ``partner``, from the viewer's side.
    :param partner: Profile of the other side.
    """

    id: str
    status: str
    role: str
    partner: PartnerProfileOut | None
    initiated_at: datetime
    responded_at: datetime | None = None
    revoked_at: datetime | None = None

    @classmethod
    def from_model(cls, link: PartnerLink, *, viewer_id: str) -> PartnerLinkOut:
        is_initiator = link.initiator_id == viewer_id
        other = link.partner if is_initiator else link.initiator
        return cls(
            id=link.id,
            status=link.status,
            role="initiator" if is_initiator else "partner",
            partner=(
                PartnerProfileOut(
                    id=other.id, display_name=other.display_name, avatar_url=other.avatar_url
                )
                if other is not None
                else None
            ),
            initiated_at=link.initiated_at,
            responded_at=link.responded_at,
            revoked_at=link.revoked_at,
        )
