# account/services/_shared/base.py
from __future__ import annotations

from typing import TypeVar

from account.services._shared.errors import NotFoundError
from account.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

T = TypeVar("T")


class BaseService:
    """
    Base class for application services that touch the database.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Offer small shared guards (``ensure_found``).
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    - Errors raised here are :class:`ServiceError` subclasses; the HTTP layer
      maps them by ``ErrorKind``.
    """

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self, *, enforce_db_readonly: bool = True) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(enforce_db_readonly=enforce_db_readonly)

    @staticmethod
    def ensure_found(entity: T | None, name: str, key: object) -> T:
        """
        Return ``entity`` or raise :class:`NotFoundError`.

        :param entity: Lookup result.
        :param name: Entity name used in the error (e.g. ``"User"``).
        :param key: Identifier used in the error.
        :raises NotFoundError: When ``entity`` is ``None``.
        """
        if entity is None:
            raise NotFoundError(name, str(key))
        return entity
