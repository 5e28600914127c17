"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from contextlib import suppress

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from account.core.extensions import db
from account.repositories import UserRepository
from account.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write UoW over the Flask-scoped session.

    Commits on a clean exit and rolls back when the block raises.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session begins lazily on first use.
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


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only UoW over the Flask-scoped session.

    Blocks ORM flushes carrying pending changes, applies
    ``SET TRANSACTION READ ONLY`` on PostgreSQL when it owns the transaction,
    and always rolls back on exit. ``commit()`` is refused.

    Parameters
    ----------
    enforce_db_readonly:
        If ``True`` (default), applies ``SET TRANSACTION READ ONLY`` when supported.

    Notes
    -----
    When a transaction is already open on the session (e.g. the SAVEPOINT
    fixture in tests) the UoW attaches to it and only installs the flush guard.
    """

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(session=db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._txn_ctx: SessionTransaction | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._txn_ctx = None
        try:
            txn_ctx = self.session.begin()
            txn_ctx.__enter__()
            self._txn_ctx = txn_ctx
        except InvalidRequestError:
            # Already inside a transaction: attach to it.
            pass

        event.listen(self.session, "before_flush", self._block_flush)

        if self._txn_ctx is not None and self.enforce_db_readonly:
            dialect = self.session.connection().dialect.name
            if dialect in ("postgresql", "mysql", "mariadb"):
                try:
                    self.session.execute(text("SET TRANSACTION READ ONLY"))
                except SQLAlchemyError as exc:
                    current_app.logger.warning(
                        "SET TRANSACTION READ ONLY failed (%s); flush guard only.", exc
                    )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._txn_ctx is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                try:
                    self._txn_ctx.__exit__(exc_type, exc, tb)
                finally:
                    self._txn_ctx = None
        finally:
            with suppress(InvalidRequestError):
                event.remove(self.session, "before_flush", self._block_flush)

    def commit(self) -> None:
        """
        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    @staticmethod
    def _block_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )
