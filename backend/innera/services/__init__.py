"""Service layer public API.

Callers can import from :mod:`innera.services` without knowing the internal
structure.

Re-exports
----------
- Base primitives (from ``innera.services._shared.base``)
    * :class:`BaseService`

- Sessions (from ``innera.services.auth``)
    * :class:`TokenService`

- Partner pairing (from ``innera.services.partner``)
    * :class:`PairingService`

- Circles (from ``innera.services.circles``)
    * :class:`CircleService`

- Entries (from ``innera.services.entries``)
    * :class:`EntryService`

- Notifications (from ``innera.services.notifications``)
    * :class:`NotificationService`
"""

from __future__ import annotations

from ._shared.base import BaseService
from .auth.service import TokenService
from .circles.service import CircleService
from .entries.service import EntryService
from .notifications.service import NotificationService
from .partner.service import PairingService

__all__ = [
    "BaseService",
    "TokenService",
    "PairingService",
    "CircleService",
    "EntryService",
    "NotificationService",
]
