"""User model definition for the account service."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from account.core.extensions import db

from .base import ReprMixin, TimestampMixin, UUIDPKMixin

PASSWORD_HASH_METHOD = "scrypt"


class User(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account identity and public profile.

    Fields
    ------
    id : uuid.UUID
        Primary key, also the ``uid`` embedded in every token.
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique.
    password_hash : str
        Salted scrypt hash (write-only setter via ``password``).
    name : str
        Display name, may be empty.
    image_url : str
        Public URL of the profile image, empty when none is set.
    website : str
        Personal website, may be empty.
    created_at : datetime
        Creation timestamp (from mixin).
    updated_at : datetime
        Update timestamp (from mixin).
    """

    __tablename__ = "users"

    # Columns
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    image_url: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    website: Mapped[str] = mapped_column(String(512), nullable=False, default="")

    # Constraints
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw, method=PASSWORD_HASH_METHOD)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("name", "website", "image_url")
    def _strip_text(self, key: str, value: str | None) -> str:
        return (value or "").strip()
