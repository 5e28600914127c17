"""Unit of Work contract used by the services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from account.repositories import UserRepository


class UnitOfWork(ABC):
    """
    One transaction per use case.

    ``with uow:`` opens the scope; repositories reached through it
    (``uow.users``) share its session. Implementations decide whether a clean
    exit commits (read-write) or always rolls back (read-only).
    """

    users: UserRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork:
        raise NotImplementedError

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None:
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError
