"""
account.services._shared.ports
==============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token management, refresh-token persistence and profile-image storage.

These ports decouple the service layer from concrete implementations
of signing, key/value storage and object storage.

Modules
-------
- :mod:`claims_codec`:
    Defines :class:`~.ClaimsCodec` and the claim shapes it produces, plus the
    codec failure taxonomy.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.InMemoryRefreshTokenStore`.

- :mod:`image_store`:
    Defines :class:`~.ImageStore` and :class:`~.InMemoryImageStore`.

Design Notes
------------
Concrete adapters (PyJWT, Redis, filesystem) implement these interfaces
under ``account.infra``.
"""

from __future__ import annotations

from .claims_codec import (
    ClaimsCodec,
    CodecError,
    EncodedRefreshToken,
    IdentityClaims,
    InvalidSignatureError,
    MalformedTokenError,
    RefreshClaims,
    SigningError,
    TokenExpiredError,
)
from .image_store import ImageStore, InMemoryImageStore
from .refresh_token_store import InMemoryRefreshTokenStore, RefreshTokenStore, refresh_key

__all__ = [
    "ClaimsCodec",
    "CodecError",
    "SigningError",
    "InvalidSignatureError",
    "TokenExpiredError",
    "MalformedTokenError",
    "IdentityClaims",
    "EncodedRefreshToken",
    "RefreshClaims",
    "RefreshTokenStore",
    "InMemoryRefreshTokenStore",
    "refresh_key",
    "ImageStore",
    "InMemoryImageStore",
]
