# account/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from account.services._shared.ports.claims_codec import ClaimsCodec
from account.services._shared.ports.refresh_token_store import RefreshTokenStore

# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RefreshToken:
    """
    Refresh token as handed out to (and read back from) clients.

    :param id: Token identifier (``jti``); the store key suffix.
    :type id: UUID
    :param uid: Owning user id.
    :type uid: UUID
    :param signed_string: Encoded HS256 JWT.
    :type signed_string: str
    :param issued_at: ``iat`` claim (UTC).
    :param expires_at: ``exp`` claim (UTC).
    """

    id: UUID
    uid: UUID
    signed_string: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> timedelta:
        return self.expires_at - self.issued_at


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Identity token plus refresh token, issued together.

    :param id_token: Encoded RS256 identity JWT.
    :param refresh_token: The paired refresh token.
    """

    id_token: str
    refresh_token: RefreshToken


# ------------------------ Config DTOs ------------------------------------- #


@dataclass(frozen=True, slots=True)
class SigningKeys:
    """
    Key material loaded once at startup.

    :param private_key: RSA private key (PEM text or key object) for identity tokens.
    :param public_key: RSA public key (PEM text or key object) for identity tokens.
    :param refresh_secret: HMAC secret for refresh tokens.
    """

    private_key: Any = field(repr=False)
    public_key: Any
    refresh_secret: str | bytes = field(repr=False)


@dataclass(frozen=True, slots=True)
class TokenServiceConfig:
    """
    Everything :class:`~account.services.tokens.service.TokenService` needs.

    :param store: Refresh-token store.
    :param codec: Claims codec.
    :param keys: Signing keys.
    :param id_token_ttl: Identity token lifetime in seconds (default 15 minutes).
    :param refresh_token_ttl: Refresh token lifetime in seconds (default 3 days).
    """

    store: RefreshTokenStore
    codec: ClaimsCodec
    keys: SigningKeys
    id_token_ttl: int = 900
    refresh_token_ttl: int = 259200
