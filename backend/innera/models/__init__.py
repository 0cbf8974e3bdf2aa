from innera.models.circle import Circle, CircleInvite, CircleMembership
from innera.models.entry import Entry
from innera.models.notification import Notification
from innera.models.partner import PartnerLink
from innera.models.user import User

__all__ = [
    "Circle",
    "CircleInvite",
    "CircleMembership",
    "Entry",
    "Notification",
    "PartnerLink",
    "User",
]
