# innera/services/partner/service.py
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from innera.models.enums import NotificationType, PartnerLinkStatus
from innera.models.partner import PartnerLink
from innera.services._shared.base import BaseService
from innera.services._shared.errors import BadRequestError, ConflictError, NotFoundError
from innera.services._shared.ports import Notifier, PartnerInviteStore
from innera.services.partner.dto import PartnerInviteOut, PartnerLinkOut

logger = logging.getLogger(__name__)

DEFAULT_INVITE_TTL = timedelta(hours=24)


class PairingService(BaseService):
    """
    Pair two users through a single-use invite code.

    Codes live in the :class:`PartnerInviteStore`; the relational link is the
    source of truth. Per user there is at most one outstanding invite and at
    most one PENDING/ACTIVE link.
    """

    def __init__(
        self,
        *,
        invites: PartnerInviteStore,
        notifier: Notifier,
        invite_ttl: timedelta = DEFAULT_INVITE_TTL,
    ) -> None:
        super().__init__()
        self.invites = invites
        self.notifier = notifier
        self.invite_ttl = invite_ttl

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_status(self, user_id: str) -> PartnerLinkOut | None:
        """Return the caller's PENDING/ACTIVE link, or ``None``."""
        with self.ro_uow() as uow:
            link = uow.partner_links.find_open_for_user(user_id)
            return PartnerLinkOut.from_model(link, viewer_id=user_id) if link else None

    # ------------------------------------------------------------------ #
    # Invite codes
    # ------------------------------------------------------------------ #

    def create_invite(self, user_id: str) -> PartnerInviteOut:
        """
        Create the caller's invite code.

        :raises ConflictError: The caller already has a link or an outstanding invite.
        """
        with self.ro_uow() as uow:
            if uow.partner_links.has_open_link(user_id):
                raise ConflictError("PartnerLink", "you already have an active or pending partner link")

        code = secrets.token_hex(16)
        if not self.invites.reserve_pending(user_id, code, self.invite_ttl):
            raise ConflictError("PartnerInvite", "you already have a pending partner invite")
        try:
            self.invites.put(code, user_id, self.invite_ttl)
        except Exception:
            self.invites.release_pending(user_id)
            raise
        return PartnerInviteOut(code=code, expires_in=int(self.invite_ttl.total_seconds()))

    def accept_invite(self, user_id: str, code: str) -> PartnerLinkOut:
        """
        Redeem ``code`` and create an ACTIVE link with its inviter.

        The code is consumed with one atomic get-and-delete, so of two
        concurrent acceptors only one proceeds. If the link cannot be created
        afterwards the code is put back with the lifetime it had left, except
        when the inviter has meanwhile formed another link: the code is then
        dropped and the inviter's pending guard cleared.

        :raises NotFoundError: Unknown, expired or already consumed code.
        :raises BadRequestError: The caller owns the code.
        :raises ConflictError: Either side already has a PENDING/ACTIVE link.
        """
        inviter_id = self.invites.peek(code)
        if inviter_id is None:
            raise NotFoundError("PartnerInvite", code)
        if inviter_id == user_id:
            raise BadRequestError("You cannot accept your own invite")

        remaining = self.invites.remaining_ttl(code)
        inviter_id = self.invites.take(code)
        if inviter_id is None:
            raise NotFoundError("PartnerInvite", code)

        inviter_taken = False
        try:
            with self.rw_uow() as uow:
                links = uow.partner_links
                if links.has_open_link(user_id):
                    raise ConflictError("PartnerLink", "you already have an active or pending partner link")
                if links.has_open_link(inviter_id):
                    inviter_taken = True
                    raise ConflictError(
                        "PartnerLink", "the inviting user already has a partner, ask for a new invite"
                    )
                link = links.add(
                    PartnerLink(
                        initiator_id=inviter_id,
                        partner_id=user_id,
                        status=PartnerLinkStatus.ACTIVE.value,
                        responded_at=self.now_utc(),
                    )
                )
                out = PartnerLinkOut.from_model(link, viewer_id=user_id)
        except Exception:
            if inviter_taken:
                self._release_guard(inviter_id)
            else:
                self._restore(code, inviter_id, remaining)
            raise

        self.invites.release_pending(inviter_id)
        self.notifier.notify(
            user_id=inviter_id,
            type=NotificationType.PARTNER_ACCEPTED,
            title="Partner request accepted",
            body="Your partner invite has been accepted!",
            data={"link_id": out.id},
        )
        return out

    def _release_guard(self, inviter_id: str) -> None:
        try:
            self.invites.release_pending(inviter_id)
        except Exception:
            logger.exception("Partner invite guard release failed", extra={"user_id": inviter_id})

    def _restore(self, code: str, inviter_id: str, remaining: timedelta | None) -> None:
        ttl = remaining or self.invite_ttl
        try:
            self.invites.put(code, inviter_id, ttl)
        except Exception:
            # The original failure is what the caller needs to see.
            logger.exception("Partner invite restore failed", extra={"user_id": inviter_id})
            return
        logger.warning(
            "Partner invite restored after failed acceptance",
            extra={"user_id": inviter_id, "restored": True},
        )

    # ------------------------------------------------------------------ #
    # Link transitions
    # ------------------------------------------------------------------ #

    def respond(self, user_id: str, *, accept: bool) -> PartnerLinkOut:
        """
        Accept or decline the PENDING request addressed to the caller.

        :raises NotFoundError: No pending request for the caller.
        :raises ConflictError: Someone responded first.
        """
        status = PartnerLinkStatus.ACTIVE if accept else PartnerLinkStatus.DECLINED
        with self.rw_uow() as uow:
            links = uow.partner_links
            link = links.find_pending_for_partner(user_id)
            if link is None:
                raise NotFoundError("PartnerLink", user_id)
            updated = links.transition(
                link.id,
                expected=PartnerLinkStatus.PENDING,
                values={"status": status.value, "responded_at": self.now_utc()},
            )
            if updated == 0:
                raise ConflictError("PartnerLink", "request has already been responded to, refresh and retry")
            link = links.get(link.id, fresh=True)
            out = PartnerLinkOut.from_model(link, viewer_id=user_id)
            initiator_id = link.initiator_id

        self.notifier.notify(
            user_id=initiator_id,
            type=NotificationType.PARTNER_ACCEPTED if accept else NotificationType.PARTNER_REVOKED,
            title="Partner request accepted" if accept else "Partner request declined",
            body=(
                "Your partner invite has been accepted!" if accept else "Your partner invite was declined."
            ),
            data={"link_id": out.id},
        )
        return out

    def revoke(self, user_id: str) -> PartnerLinkOut:
        """
        End the caller's ACTIVE link.

        :raises NotFoundError: The caller has no active link.
        :raises ConflictError: The link was revoked concurrently.
        """
        with self.rw_uow() as uow:
            links = uow.partner_links
            link = links.find_active_for_user(user_id)
            if link is None:
                raise NotFoundError("PartnerLink", user_id)
            updated = links.transition(
                link.id,
                expected=PartnerLinkStatus.ACTIVE,
                values={
                    "status": PartnerLinkStatus.REVOKED.value,
                    "revoked_at": self.now_utc(),
                    "revoked_by": user_id,
                },
            )
            if updated == 0:
                raise ConflictError("PartnerLink", "link has already been revoked, refresh and retry")
            link = links.get(link.id, fresh=True)
            out = PartnerLinkOut.from_model(link, viewer_id=user_id)
            counterpart_id = link.counterpart_of(user_id)

        self.notifier.notify(
            user_id=counterpart_id,
            type=NotificationType.PARTNER_REVOKED,
            title="Partner disconnected",
            body="Your partner has ended the connection.",
            data={"link_id": out.id},
        )
        return out
