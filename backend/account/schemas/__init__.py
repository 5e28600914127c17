"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import CredentialsSchema, TokenPairSchema, TokensRequestSchema
from .user import DetailsSchema, UserSchema

__all__ = [
    "CredentialsSchema",
    "TokensRequestSchema",
    "TokenPairSchema",
    "DetailsSchema",
    "UserSchema",
]
