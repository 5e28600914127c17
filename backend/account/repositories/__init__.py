"""Repository package exposing persistence-layer access for account models."""

from __future__ import annotations

from account.repositories.base import BaseRepository
from account.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
]
