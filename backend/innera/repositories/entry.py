"""Entry repository with version-checked writes."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from innera.models.entry import Entry
from innera.repositories.base import BaseRepository


class EntryRepository(BaseRepository[Entry]):
    """Persistence-only repository for :class:`Entry`."""

    model = Entry

    def _updatable_fields(self):
        return {
            "title_encrypted",
            "content_encrypted",
            "mood",
            "visibility",
            "circle_id",
            "encryption_version",
        }

    def update_versioned(
        self,
        entry_id: str,
        *,
        author_id: str,
        expected_version: int,
        fields: Mapping[str, Any],
    ) -> int:
        """Apply ``fields`` and bump ``version`` iff the row still has ``expected_version``.

        :returns: 1 on success; 0 when the entry is missing, not the author's,
            deleted, or at another version.
        :raises ValueError: If ``fields`` holds a non-updatable key.
        """
        values = self._sanitize_update_fields(fields)
        values["version"] = Entry.version + 1
        return self._guarded_update(
            Entry.id == entry_id,
            Entry.author_id == author_id,
            Entry.version == expected_version,
            Entry.deleted_at.is_(None),
            values=values,
        )

    def soft_delete(self, entry_id: str, *, now: datetime) -> int:
        return self._guarded_update(
            Entry.id == entry_id, Entry.deleted_at.is_(None), values={"deleted_at": now}
        )

    def restore(self, entry_id: str, *, author_id: str) -> int:
        return self._guarded_update(
            Entry.id == entry_id,
            Entry.author_id == author_id,
            Entry.deleted_at.is_not(None),
            values={"deleted_at": None},
        )
