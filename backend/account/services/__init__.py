"""Service layer public API.

Callers can import from :mod:`account.services` without knowing the internal
structure.

Re-exports
----------
- :class:`BaseService` (from ``account.services._shared.base``)
- :class:`Deadline` (from ``account.services._shared.deadline``)
- :class:`AccountService` and its DTOs (from ``account.services.accounts``)
- :class:`TokenService` and its DTOs (from ``account.services.tokens``)
"""

from __future__ import annotations

from account.services._shared.base import BaseService
from account.services._shared.deadline import Deadline
from account.services.accounts.dto import ImageUpload, SignUpIn, UpdateDetailsIn, UserOut
from account.services.accounts.service import AccountService
from account.services.tokens.dto import RefreshToken, SigningKeys, TokenPair, TokenServiceConfig
from account.services.tokens.service import TokenService

__all__ = [
    "BaseService",
    "Deadline",
    "AccountService",
    "ImageUpload",
    "SignUpIn",
    "UpdateDetailsIn",
    "UserOut",
    "TokenService",
    "TokenServiceConfig",
    "SigningKeys",
    "TokenPair",
    "RefreshToken",
]
