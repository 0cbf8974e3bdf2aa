# innera/services/entries/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from innera.models.entry import Entry

#: Fields a PATCH may carry besides ``version``.
PATCHABLE_FIELDS = frozenset(
    {"title_encrypted", "content_encrypted", "mood", "visibility", "circle_id", "encryption_version"}
)


@dataclass(frozen=True, slots=True)
class EntryCreateIn:
    content_encrypted: bytes
    visibility: str = "PRIVATE"
    title_encrypted: bytes | None = None
    mood: str | None = None
    circle_id: str | None = None
    encryption_version: int = 1


@dataclass(frozen=True, slots=True)
class EntryUpdateIn:
    """
    Version-checked partial update.

    :param expected_version: Version the client last read.
    :param changes: Only the fields the client sent (absent != ``None``).
    """

    expected_version: int
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EntryOut:
    id: str
    author_id: str
    title_encrypted: bytes | None
    content_encrypted: bytes
    mood: str | None
    visibility: str
    circle_id: str | None
    version: int
    encryption_version: int
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @classmethod
    def from_model(cls, e: Entry) -> EntryOut:
        return cls(
            id=e.id,
            author_id=e.author_id,
            title_encrypted=e.title_encrypted,
            content_encrypted=e.content_encrypted,
            mood=e.mood,
            visibility=e.visibility,
            circle_id=e.circle_id,
            version=e.version,
            encryption_version=e.encryption_version,
            created_at=e.created_at,
            updated_at=e.updated_at,
            deleted_at=e.deleted_at,
        )
