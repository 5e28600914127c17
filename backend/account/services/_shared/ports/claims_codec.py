from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import UUID

# --------------------------------------------------------------------------- #
# Codec failures (never shown to clients; the token service translates them)
# --------------------------------------------------------------------------- #


class CodecError(Exception):
    """Base class for claims encoding/decoding failures."""


class SigningError(CodecError):
    """The signing operation itself failed (e.g. malformed key)."""


class InvalidSignatureError(CodecError):
    """Signature check failed or the token was signed with an unexpected algorithm."""


class TokenExpiredError(CodecError):
    """The ``exp`` claim is not in the future."""


class MalformedTokenError(CodecError):
    """The token cannot be parsed or its claims have the wrong shape."""


# --------------------------------------------------------------------------- #
# Claim shapes
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    """
    Decoded identity-token payload.

    :ivar user: Password-free user snapshot as embedded at issuance.
    :ivar issued_at: ``iat`` (UTC).
    :ivar expires_at: ``exp`` (UTC).
    """

    user: dict[str, Any]
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class EncodedRefreshToken:
    """
    Result of signing a refresh token.

    :ivar signed_string: Wire form handed to the client.
    :ivar token_id: Random identifier embedded as ``jti``; the revocation key.
    :ivar issued_at: ``iat`` (UTC).
    :ivar expires_at: ``exp`` (UTC).
    """

    signed_string: str
    token_id: UUID
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> timedelta:
        return self.expires_at - self.issued_at


@dataclass(frozen=True, slots=True)
class RefreshClaims:
    """Decoded refresh-token payload, carrying the original wire form."""

    token_id: UUID
    user_id: UUID
    signed_string: str
    issued_at: datetime
    expires_at: datetime


class ClaimsCodec(Protocol):
    """
    Port for turning claim shapes into signed, self-contained strings.

    Identity tokens are signed asymmetrically (private key held by the issuer,
    public key distributable to any validator); refresh tokens symmetrically,
    because only the issuing service ever validates them.
    """

    def encode_identity(self, user: dict[str, Any], private_key: Any, ttl_seconds: int) -> str:
        """:raises SigningError: When signing fails."""

    def decode_identity(self, signed_string: str, public_key: Any) -> IdentityClaims:
        """:raises InvalidSignatureError | TokenExpiredError | MalformedTokenError:"""

    def encode_refresh(
        self, user_id: UUID, secret: str | bytes, ttl_seconds: int
    ) -> EncodedRefreshToken:
        """:raises SigningError: When signing fails."""

    def decode_refresh(self, signed_string: str, secret: str | bytes) -> RefreshClaims:
        """:raises InvalidSignatureError | TokenExpiredError | MalformedTokenError:"""
