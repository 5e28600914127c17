"""
PyJWT adapter for :class:`~account.services._shared.ports.ClaimsCodec`.

Identity tokens are RS256, refresh tokens HS256. Each decode pins exactly one
algorithm, so a refresh token presented as an identity token (or the other way
round) fails signature verification.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from account.services._shared.ports.claims_codec import (
    ClaimsCodec,
    EncodedRefreshToken,
    IdentityClaims,
    InvalidSignatureError,
    MalformedTokenError,
    RefreshClaims,
    SigningError,
    TokenExpiredError,
)

IDENTITY_ALGORITHM = "RS256"
REFRESH_ALGORITHM = "HS256"

_DECODE_OPTIONS = {
    # Expiry is checked against the codec clock below.
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": ["exp", "iat"],
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class JWTClaimsCodec(ClaimsCodec):
    """
    Sign and verify identity/refresh tokens with PyJWT.

    :param leeway: Seconds of clock skew tolerated on ``exp`` (default ``0``).
    :param clock: Returns the current aware UTC datetime.
    """

    leeway: int = 0
    clock: Callable[[], datetime] = field(default=_utcnow)

    # -------------------- helpers --------------------

    def _window(self, ttl_seconds: int) -> tuple[datetime, datetime]:
        # JWT NumericDate has whole-second precision
        issued_at = self.clock().replace(microsecond=0)
        return issued_at, issued_at + timedelta(seconds=ttl_seconds)

    @staticmethod
    def _sign(payload: dict[str, Any], key: Any, algorithm: str) -> str:
        try:
            return jwt.encode(payload, key, algorithm=algorithm)
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise SigningError(f"could not sign {algorithm} token: {exc}") from exc

    def _verify(self, signed_string: str, key: Any, algorithm: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                signed_string,
                key,
                algorithms=[algorithm],
                options=_DECODE_OPTIONS,
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise InvalidSignatureError(str(exc)) from exc
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            raise MalformedTokenError(str(exc)) from exc

        try:
            exp = int(payload["exp"])
            iat = int(payload["iat"])
        except (TypeError, ValueError) as exc:
            raise MalformedTokenError("exp/iat must be numeric dates") from exc

        now = self.clock().timestamp()
        if exp <= now - self.leeway:
            raise TokenExpiredError("token has expired")

        payload["exp"] = datetime.fromtimestamp(exp, tz=UTC)
        payload["iat"] = datetime.fromtimestamp(iat, tz=UTC)
        return payload

    @staticmethod
    def _uuid_claim(payload: dict[str, Any], name: str) -> uuid.UUID:
        try:
            return uuid.UUID(str(payload[name]))
        except (KeyError, ValueError) as exc:
            raise MalformedTokenError(f"claim {name!r} is not a UUID") from exc

    # -------------------- identity -------------------

    def encode_identity(self, user: dict[str, Any], private_key: Any, ttl_seconds: int) -> str:
        issued_at, expires_at = self._window(ttl_seconds)
        payload = {"user": user, "iat": issued_at, "exp": expires_at}
        return self._sign(payload, private_key, IDENTITY_ALGORITHM)

    def decode_identity(self, signed_string: str, public_key: Any) -> IdentityClaims:
        payload = self._verify(signed_string, public_key, IDENTITY_ALGORITHM)
        user = payload.get("user")
        if not isinstance(user, dict):
            raise MalformedTokenError("claim 'user' is missing")
        return IdentityClaims(user=user, issued_at=payload["iat"], expires_at=payload["exp"])

    # -------------------- refresh --------------------

    def encode_refresh(
        self, user_id: uuid.UUID, secret: str | bytes, ttl_seconds: int
    ) -> EncodedRefreshToken:
        token_id = uuid.uuid4()
        issued_at, expires_at = self._window(ttl_seconds)
        payload = {
            "uid": str(user_id),
            "jti": str(token_id),
            "iat": issued_at,
            "exp": expires_at,
        }
        return EncodedRefreshToken(
            signed_string=self._sign(payload, secret, REFRESH_ALGORITHM),
            token_id=token_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def decode_refresh(self, signed_string: str, secret: str | bytes) -> RefreshClaims:
        payload = self._verify(signed_string, secret, REFRESH_ALGORITHM)
        return RefreshClaims(
            token_id=self._uuid_claim(payload, "jti"),
            user_id=self._uuid_claim(payload, "uid"),
            signed_string=signed_string,
            issued_at=payload["iat"],
            expires_at=payload["exp"],
        )
