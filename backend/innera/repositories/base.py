"""Generic repository base and query utilities for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:

- Safe update helpers with per-repository updatable-field whitelists.
- Conditional ("compare-and-swap") updates that report how many rows
  matched, so services can detect lost races without read-then-write.
- No business logic, no commit/rollback: services own transactions.

Design decisions
----------------
* Repositories never implement use cases; they never call commit/rollback.
* Updates never allow mass-assignment: each repo exposes an explicit
  ``_updatable_fields`` whitelist.
* Guarded updates run as a single ``UPDATE ... WHERE <guard>`` statement and
  return ``rowcount``; a zero means the guard no longer held.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import ColumnElement, update
from sqlalchemy.orm import Session

from innera.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model``. They MAY override ``_updatable_fields``.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        :param session: Session shared across the Unit of Work scope. Falls
            back to the Flask-scoped session when omitted.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _updatable_fields(self) -> set[str]:
        """Whitelist of keys that may be assigned on update (empty = none)."""
        return set()

    # ------------------------------ Internals --------------------------------

    def _sanitize_update_fields(
        self,
        fields: Mapping[str, Any],
        *,
        strict: bool = True,
    ) -> dict[str, Any]:
        """Return a dict with only whitelisted update keys.

        :param fields: Raw update mapping.
        :param strict: Raise ``ValueError`` on unknown keys instead of dropping them.
        :raises ValueError: If ``strict`` and unknown keys are present, or if
            the repository has no updatable fields at all.
        """
        allowed = self._updatable_fields()
        if not allowed:
            if fields and strict:
                raise ValueError("No updatable fields configured for this repository.")
            return {}

        unknown = [k for k in fields if k not in allowed]
        if unknown and strict:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        return {k: v for k, v in fields.items() if k in allowed}

    def _guarded_update(self, *where: ColumnElement[bool], values: Mapping[str, Any]) -> int:
        """Run one conditional ``UPDATE`` and return the number of matched rows.

        :param where: Guard conditions; all must hold at execution time.
        :param values: Column assignments (may contain SQL expressions such
            as ``Model.version + 1``).
        :returns: ``rowcount`` reported by the database.
        """
        stmt = (
            update(self.model)
            .where(*where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush so defaults and the PK are populated."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any, *, fresh: bool = False) -> E | None:
        """Retrieve a single entity by primary key.

        :param fresh: Reload attributes from the database even when the
            instance is already in the identity map (needed after a guarded
            update, which bypasses ORM synchronization).
        """
        return cast(E | None, self.session.get(self.model, entity_id, populate_existing=fresh))

    def flush(self) -> None:
        self.session.flush()
