"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, scoped_session

from innera.core.extensions import db
from innera.repositories import (
    CircleInviteRepository,
    CircleMembershipRepository,
    CircleRepository,
    EntryRepository,
    NotificationRepository,
    PartnerLinkRepository,
    UserRepository,
)
from innera.uow.base import UnitOfWork

logger = logging.getLogger(__name__)


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.partner_links = PartnerLinkRepository(session=self.session)
        self.circles = CircleRepository(session=self.session)
        self.memberships = CircleMembershipRepository(session=self.session)
        self.circle_invites = CircleInviteRepository(session=self.session)
        self.entries = EntryRepository(session=self.session)
        self.notifications = NotificationRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write UoW on the Flask-scoped session.

    Commits on a clean exit; a failed commit is rolled back and re-raised.
    Any exception inside the block rolls back every statement of the unit,
    including conditional updates that already matched.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class ReadOnlyViolation(RuntimeError):
    """Raised when code inside a read-only unit tries to flush changes."""


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only UoW on the Flask-scoped session.

    * Blocks ORM flushes carrying new/dirty/deleted objects.
    * On PostgreSQL/MySQL issues ``SET TRANSACTION READ ONLY`` when it opens
      the transaction itself.
    * Always ends with a rollback; :meth:`commit` is refused.

    Services copy what they need into DTOs before leaving the block since
    the rollback expires loaded instances.
    """

    _READ_ONLY_DIALECTS = ("postgresql", "mysql", "mariadb")

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(session=db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._owns_transaction = False

    def _event_target(self) -> Session:
        # Listening on a scoped_session would attach to every session of its class.
        if isinstance(self.session, scoped_session):
            return self.session()
        return self.session

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # scoped_session proxies queries but not transaction state.
        session = self._event_target()
        self._owns_transaction = not session.in_transaction()
        event.listen(session, "before_flush", self._block_flush)
        if self._owns_transaction and self.enforce_db_readonly:
            dialect = session.get_bind().dialect.name
            if dialect in self._READ_ONLY_DIALECTS:
                try:
                    session.execute(text("SET TRANSACTION READ ONLY"))
                except SQLAlchemyError as exc:
                    logger.warning("SET TRANSACTION READ ONLY failed (%s); guards only.", exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owns_transaction:
                self.rollback()
        finally:
            event.remove(self._event_target(), "before_flush", self._block_flush)

    @staticmethod
    def _block_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise ReadOnlyViolation("Read-only UnitOfWork: ORM flush blocked.")

    def commit(self) -> None:
        raise ReadOnlyViolation("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
