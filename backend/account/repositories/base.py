"""Shared persistence helpers for SQLAlchemy 2.x repositories.

Repositories stay persistence-only: they flush so constraint violations
surface early, but committing and rolling back belongs to the unit of work.
Updates go through a per-repository whitelist so request payloads can never
mass-assign columns such as ``password_hash``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import select
from sqlalchemy.orm import Session

from account.core.extensions import db

E = TypeVar("E")  # mapped entity


class BaseRepository(Generic[E]):
    """Primary-key lookups and whitelisted updates for one mapped class.

    Subclasses set :attr:`model` and :attr:`updatable_fields`.
    """

    model: type[E]
    #: Attribute names callers may assign through :meth:`update`.
    updatable_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session owned by the surrounding unit of work; the
            Flask-scoped ``db.session`` is used when omitted.
        """
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------- Reads -----------------------------------

    def get(self, entity_id: Any) -> E | None:
        """Return the entity with primary key ``entity_id`` or ``None``."""
        stmt = select(self.model).where(self.model.id == entity_id)  # type: ignore[attr-defined]
        return cast(E | None, self.session.execute(stmt).scalars().first())

    # ------------------------------- Writes ----------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so defaults and constraints apply now."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.session.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any], *, flush: bool = True) -> E:
        """Assign whitelisted ``fields`` on ``instance`` through ``setattr``.

        Going through ``setattr`` keeps the model's ``@validates`` hooks in play.

        :raises ValueError: When ``fields`` names anything outside
            :attr:`updatable_fields`.
        """
        rejected = sorted(set(fields) - self.updatable_fields)
        if rejected:
            raise ValueError(f"Fields not updatable on {self.model.__name__}: {rejected}")
        for name, value in fields.items():
            setattr(instance, name, value)
        if flush:
            self.session.flush()
        return instance

    def update(self, instance: E, **fields: Any) -> E:
        """Keyword form of :meth:`assign_updates`."""
        return self.assign_updates(instance, fields)
