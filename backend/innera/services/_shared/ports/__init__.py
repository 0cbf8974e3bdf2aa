"""
innera.services._shared.ports
=============================

Collection of *ports* (hexagonal interfaces) that the services depend on.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec` with :class:`~.AccessClaims` and
    :class:`~.RefreshClaims`, the signing/verification contract for JWTs.

- :mod:`session_registry`:
    Defines :class:`~.SessionRegistry` and :class:`~.RevokeAllResult`, the
    server-side record of valid refresh tokens.

- :mod:`partner_invite_store`:
    Defines :class:`~.PartnerInviteStore`, the short-lived partner invite codes
    and the one-outstanding-invite guard.

- :mod:`notifier`:
    Defines :class:`~.Notifier` plus :class:`~.RecordingNotifier` for tests.

Design Notes
------------
Concrete adapters (Redis, PyJWT, SQL) live under ``innera.infra``.
"""

from __future__ import annotations

from .notifier import Notifier, RecordingNotifier, SentNotification
from .partner_invite_store import PartnerInviteStore
from .session_registry import RevokeAllResult, SessionRegistry
from .token_codec import AccessClaims, RefreshClaims, TokenCodec

__all__ = [
    "AccessClaims",
    "Notifier",
    "PartnerInviteStore",
    "RecordingNotifier",
    "RefreshClaims",
    "RevokeAllResult",
    "SentNotification",
    "SessionRegistry",
    "TokenCodec",
]
