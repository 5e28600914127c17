# account/services/tokens/service.py
from __future__ import annotations

import logging
from uuid import UUID

from account.services._shared.deadline import Deadline
from account.services._shared.errors import (
    InternalError,
    RefreshTokenNotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
)
from account.services._shared.ports.claims_codec import CodecError, SigningError
from account.services.accounts.dto import UserOut
from account.services.tokens.dto import RefreshToken, TokenPair, TokenServiceConfig

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "invalid refresh token"
INVALID_IDENTITY_TOKEN = "invalid identity token"
UNVERIFIABLE_REFRESH_TOKEN = "unable to verify user from refresh token"


class TokenService:
    """
    Identity/refresh token lifecycle: issue, rotate, validate and revoke.

    Identity tokens are stateless (signature + expiry only). Refresh tokens are
    additionally tracked in the :class:`RefreshTokenStore`: a refresh token can
    be redeemed only while its ``"{uid}:{token_id}"`` key exists, and redeeming
    it (``issue`` with ``previous_token_id``) deletes that key before a new one
    is written.

    The service holds no mutable state; one instance is shared by all requests.
    Codec and store failures are logged here, once, and surface as
    :class:`UnauthorizedError` or :class:`InternalError`. Cancellation and
    deadline errors pass through untouched.
    """

    def __init__(self, config: TokenServiceConfig) -> None:
        self.cfg = config
        self.store = config.store
        self.codec = config.codec
        self.keys = config.keys

    # ------------------------------------------------------------------ #
    # Issue / rotate
    # ------------------------------------------------------------------ #

    def issue(
        self,
        user: UserOut,
        previous_token_id: UUID | str | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> TokenPair:
        """
        Issue a fresh identity/refresh pair, revoking ``previous_token_id`` first.

        :param user: Password-free user snapshot to embed in the identity token.
        :param previous_token_id: Refresh token being redeemed (rotation); ``None`` or
            ``""`` issues a fresh pair.
        :param deadline: Request deadline, checked before each store call.
        :returns: The new token pair.
        :raises UnauthorizedError: When ``previous_token_id`` is not live.
        :raises InternalError: When signing or the store fails.
        """
        uid = str(user.id)

        if previous_token_id:
            try:
                self.store.delete(uid, str(previous_token_id), deadline=deadline)
            except RefreshTokenNotFoundError as exc:
                logger.info(
                    "Refresh token not live",
                    extra={"user_id": uid, "token_id": str(previous_token_id)},
                )
                raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc
            except StoreUnavailableError as exc:
                logger.error(
                    "Could not revoke previous refresh token",
                    extra={"user_id": uid, "token_id": str(previous_token_id)},
                    exc_info=exc,
                )
                raise InternalError(f"revoking previous refresh token failed: {exc}") from exc

        try:
            id_token = self.codec.encode_identity(
                user.to_claims(),
                self.keys.private_key,
                self.cfg.id_token_ttl,
            )
            encoded = self.codec.encode_refresh(
                user.id, self.keys.refresh_secret, self.cfg.refresh_token_ttl
            )
        except SigningError as exc:
            logger.error("Token signing failed", extra={"user_id": uid}, exc_info=exc)
            raise InternalError(f"token signing failed: {exc}") from exc

        try:
            self.store.put(
                uid, str(encoded.token_id), encoded.expires_in, deadline=deadline
            )
        except StoreUnavailableError as exc:
            logger.error(
                "Could not store refresh token",
                extra={"user_id": uid, "token_id": str(encoded.token_id)},
                exc_info=exc,
            )
            raise InternalError(f"storing refresh token failed: {exc}") from exc

        logger.info(
            "Token pair issued",
            extra={
                "user_id": uid,
                "token_id": str(encoded.token_id),
                "rotated": bool(previous_token_id),
            },
        )
        return TokenPair(
            id_token=id_token,
            refresh_token=RefreshToken(
                id=encoded.token_id,
                uid=user.id,
                signed_string=encoded.signed_string,
                issued_at=encoded.issued_at,
                expires_at=encoded.expires_at,
            ),
        )

    # ------------------------------------------------------------------ #
    # Validation (codec only, no store lookups)
    # ------------------------------------------------------------------ #

    def validate_identity(self, signed_string: str) -> UserOut:
        """
        Verify an identity token and return the embedded user.

        :raises UnauthorizedError: On any signature, expiry or shape failure.
        """
        try:
            claims = self.codec.decode_identity(signed_string, self.keys.public_key)
            return UserOut.from_claims(claims.user)
        except (CodecError, KeyError, TypeError, ValueError) as exc:
            logger.info("Identity token rejected", extra={"reason": str(exc)})
            raise UnauthorizedError(INVALID_IDENTITY_TOKEN) from exc

    def validate_refresh(self, signed_string: str) -> RefreshToken:
        """
        Verify a refresh token's signature and expiry.

        Liveness is *not* checked here; :meth:`issue` enforces it when the
        token is redeemed.

        :raises UnauthorizedError: On any signature, expiry or shape failure.
        """
        try:
            claims = self.codec.decode_refresh(signed_string, self.keys.refresh_secret)
        except CodecError as exc:
            logger.info("Refresh token rejected", extra={"reason": str(exc)})
            raise UnauthorizedError(UNVERIFIABLE_REFRESH_TOKEN) from exc
        return RefreshToken(
            id=claims.token_id,
            uid=claims.user_id,
            signed_string=claims.signed_string,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke(
        self, user_id: UUID | str, token_id: UUID | str, *, deadline: Deadline | None = None
    ) -> None:
        """
        Revoke a single refresh token.

        :raises UnauthorizedError: When the token is not live.
        :raises InternalError: When the store fails.
        """
        try:
            self.store.delete(str(user_id), str(token_id), deadline=deadline)
        except RefreshTokenNotFoundError as exc:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc
        except StoreUnavailableError as exc:
            logger.error(
                "Could not revoke refresh token",
                extra={"user_id": str(user_id), "token_id": str(token_id)},
                exc_info=exc,
            )
            raise
        logger.info(
            "Refresh token revoked", extra={"user_id": str(user_id), "token_id": str(token_id)}
        )

    def sign_out(self, user_id: UUID | str, *, deadline: Deadline | None = None) -> int:
        """
        Revoke every refresh token of ``user_id``.

        Outstanding identity tokens stay valid until they expire.

        :returns: Number of refresh tokens removed.
        :raises StoreUnavailableError: When the scan or any delete failed.
        """
        try:
            removed = self.store.delete_all(str(user_id), deadline=deadline)
        except StoreUnavailableError as exc:
            logger.error("Sign-out incomplete", extra={"user_id": str(user_id)}, exc_info=exc)
            raise
        logger.info("User signed out", extra={"user_id": str(user_id), "revoked": removed})
        return removed
