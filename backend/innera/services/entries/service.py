# innera/services/entries/service.py
from __future__ import annotations

import logging

from innera.models.entry import Entry
from innera.models.enums import CIRCLE_VISIBILITIES
from innera.services._shared.base import BaseService
from innera.services._shared.errors import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from innera.services._shared.policies.visibility import (
    MembershipView,
    Viewer,
    can_delete_entry,
    can_view,
)
from innera.services.entries.dto import PATCHABLE_FIELDS, EntryCreateIn, EntryOut, EntryUpdateIn

logger = logging.getLogger(__name__)


def load_viewer(uow, user_id: str) -> Viewer:
    """Collect the relations :func:`can_view` needs for ``user_id``."""
    link = uow.partner_links.find_active_for_user(user_id)
    memberships = {
        m.circle_id: MembershipView(
            circle_id=m.circle_id,
            role=m.role,
            status=m.status,
            history_policy=m.history_policy,
            joined_at=m.joined_at,
        )
        for m in uow.memberships.list_active_for_user(user_id)
    }
    return Viewer(
        user_id=user_id,
        partner_id=link.counterpart_of(user_id) if link else None,
        partner_status=link.status if link else None,
        memberships=memberships,
    )


class EntryService(BaseService):
    """
    Journal entries with optimistic concurrency.

    Every write that changes content or metadata is one conditional
    ``UPDATE ... WHERE version = :expected``; the first committed writer wins
    and the others must refetch.
    """

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _resolve_circle(uow, author_id: str, visibility: str, circle_id: str | None) -> str | None:
        """Return the ``circle_id`` matching ``visibility``, checking membership."""
        if visibility not in CIRCLE_VISIBILITIES:
            return None
        if not circle_id:
            raise BadRequestError("A circle is required for circle visibility")
        if uow.memberships.find_active(circle_id, author_id) is None:
            raise AuthorizationError("You can only share entries with circles you belong to.")
        return circle_id

    @staticmethod
    def _live(uow, entry_id: str) -> Entry:
        entry = uow.entries.get(entry_id)
        if entry is None or entry.deleted_at is not None:
            raise NotFoundError("Entry", entry_id)
        return entry

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def create(self, author_id: str, dto: EntryCreateIn) -> EntryOut:
        with self.rw_uow() as uow:
            circle_id = self._resolve_circle(uow, author_id, dto.visibility, dto.circle_id)
            entry = uow.entries.add(
                Entry(
                    author_id=author_id,
                    title_encrypted=dto.title_encrypted,
                    content_encrypted=dto.content_encrypted,
                    mood=dto.mood,
                    visibility=dto.visibility,
                    circle_id=circle_id,
                    encryption_version=dto.encryption_version,
                )
            )
            return EntryOut.from_model(entry)

    def update(self, entry_id: str, author_id: str, dto: EntryUpdateIn) -> EntryOut:
        """
        Apply a partial update if the entry is still at ``dto.expected_version``.

        :raises NotFoundError: Missing, deleted, or not the caller's entry.
        :raises ConflictError: The entry moved to another version meanwhile.
        :raises BadRequestError: Circle visibility without a circle.
        :raises AuthorizationError: Target circle the author is not in.
        """
        changes = dict(dto.changes)
        unknown = set(changes) - PATCHABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unknown fields: {sorted(unknown)}")

        with self.rw_uow() as uow:
            entries = uow.entries
            if "visibility" in changes or "circle_id" in changes:
                current = entries.get(entry_id)
                # Circle checks only apply to an update that can still land.
                if (
                    current is not None
                    and current.author_id == author_id
                    and current.deleted_at is None
                    and current.version == dto.expected_version
                ):
                    visibility = changes.get("visibility", current.visibility)
                    changes["visibility"] = visibility
                    changes["circle_id"] = self._resolve_circle(
                        uow, author_id, visibility, changes.get("circle_id", current.circle_id)
                    )

            updated = entries.update_versioned(
                entry_id,
                author_id=author_id,
                expected_version=dto.expected_version,
                fields=changes,
            )
            entry = entries.get(entry_id, fresh=True)
            if updated == 0:
                if entry is None or entry.author_id != author_id or entry.deleted_at is not None:
                    raise NotFoundError("Entry", entry_id)
                logger.info(
                    "Entry version conflict",
                    extra={"entry_id": entry_id, "user_id": author_id},
                )
                raise ConflictError("Entry", "entry has been modified, refresh and retry")
            return EntryOut.from_model(entry)

    def delete(self, entry_id: str, actor_id: str) -> None:
        """
        Soft-delete an entry (author, or circle OWNER/ADMIN for circle entries).

        :raises NotFoundError: Missing or already deleted.
        :raises AuthorizationError: The actor may not delete it.
        """
        with self.rw_uow() as uow:
            entry = self._live(uow, entry_id)
            if not can_delete_entry(entry, load_viewer(uow, actor_id)):
                raise AuthorizationError("You cannot delete this entry.")
            if uow.entries.soft_delete(entry_id, now=self.now_utc()) == 0:
                raise NotFoundError("Entry", entry_id)
        logger.info("Entry deleted", extra={"entry_id": entry_id, "user_id": actor_id})

    def restore(self, entry_id: str, author_id: str) -> EntryOut:
        """
        Undo a soft delete; author only.

        :raises NotFoundError: Missing or not the caller's entry.
        :raises ConflictError: The entry is not deleted.
        """
        with self.rw_uow() as uow:
            entries = uow.entries
            restored = entries.restore(entry_id, author_id=author_id)
            entry = entries.get(entry_id, fresh=True)
            if entry is None or entry.author_id != author_id:
                raise NotFoundError("Entry", entry_id)
            if restored == 0:
                raise ConflictError("Entry", "entry is not deleted, refresh and retry")
            return EntryOut.from_model(entry)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get(self, entry_id: str, viewer_id: str) -> EntryOut:
        """
        Read an entry through :func:`can_view`.

        :raises NotFoundError: Missing or deleted.
        :raises AuthorizationError: Visibility denies the viewer.
        """
        with self.ro_uow() as uow:
            entry = self._live(uow, entry_id)
            if not can_view(entry, load_viewer(uow, viewer_id)):
                raise AuthorizationError("You do not have access to this entry.")
            return EntryOut.from_model(entry)
