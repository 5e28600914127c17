"""Factory Boy base wired to the transactional test session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Holder for the session the ``session`` fixture hands out per test."""

    _session = None

    @classmethod
    def set(cls, session):
        cls._session = session

    @classmethod
    def get(cls):
        """Return the current test session.

        Raises
        ------
        RuntimeError
            When a factory runs in a test that did not request ``session``.
        """
        if cls._session is None:
            raise RuntimeError("No factory session; request the 'session' fixture.")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Persist through the per-test session and flush (never commit)."""

    class Meta:
        abstract = True
        # Callable so each test resolves its own scoped session
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
