"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between stores,
repositories, codecs and application services.

Every error carries an :class:`ErrorKind`. The kinds form a closed set; the
translation to HTTP responses (RFC 7807) is a single table in
``account/core/errors.py``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError


class ErrorKind(Enum):
    """Closed enumeration of caller-visible failure categories."""

    UNAUTHORIZED = "unauthorized"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    INTERNAL = "internal"
    CANCELED = "canceled"
    DEADLINE_EXCEEDED = "deadline_exceeded"


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    # PostgreSQL includes the constraint name, SQLite the column list
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    column = constraint_name.lower().split("_", 2)[-1]
    return f".{column}" in message and "unique" in message


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``kind`` decides the transport status; subclasses override it.
    - ``public_message`` is what may be shown to a client.
    """

    kind: ErrorKind = ErrorKind.BAD_REQUEST

    @property
    def public_message(self) -> str:
        return str(self)


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class UnauthorizedError(ServiceError):
    """Bad credentials, or an invalid / expired / revoked token."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class BadRequestError(ServiceError):
    """Input rejected by a business rule."""

    kind = ErrorKind.BAD_REQUEST


class UnsupportedMediaTypeError(ServiceError):
    """Upload content type is not accepted."""

    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str
    """

    entity: str
    key: str

    kind = ErrorKind.NOT_FOUND

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    kind = ErrorKind.CONFLICT

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class InternalError(ServiceError):
    """
    Unexpected server-side failure (signing, storage backend, codec).

    The message is kept for logs; clients only ever see ``public_message``.
    """

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)

    @property
    def public_message(self) -> str:
        return "Internal server error"


class StoreUnavailableError(InternalError):
    """The refresh-token store backend failed or only partially applied a change."""


class RefreshTokenNotFoundError(NotFoundError):
    """The refresh-token key is absent: never stored, rotated, revoked or expired."""

    def __init__(self, user_id: str, token_id: str) -> None:
        super().__init__("RefreshToken", f"{user_id}:{token_id}")


class CanceledError(ServiceError):
    """The caller abandoned the request before the operation finished."""

    kind = ErrorKind.CANCELED

    def __init__(self, message: str = "Request canceled") -> None:
        super().__init__(message)


class DeadlineExceededError(ServiceError):
    """The request deadline elapsed before the operation finished."""

    kind = ErrorKind.DEADLINE_EXCEEDED

    def __init__(self, message: str = "Request deadline exceeded") -> None:
        super().__init__(message)
