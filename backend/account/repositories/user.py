"""User repository for persistence and credential lookups."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from account.models.user import User
from account.repositories.base import BaseRepository


def _normalize(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Never deals with tokens; the password is only ever compared, never read.
    """

    model = User
    updatable_fields = frozenset({"email", "name", "website", "image_url"})

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address; normalized the same way the model stores it.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == _normalize(email))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == _normalize(email))
        return self.session.execute(stmt).first() is not None

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the user when ``password`` matches, ``None`` otherwise.

        Unknown email and wrong password are indistinguishable to the caller.
        """
        user = self.get_by_email(email)
        if user is None or not user.verify_password(password):
            return None
        return user
