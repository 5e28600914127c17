"""Unit tests for TokenService: issuance, rotation, validation and revocation."""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import jwt
import pytest
from account.services._shared.deadline import Deadline
from account.services._shared.errors import (
    CanceledError,
    InternalError,
    StoreUnavailableError,
    UnauthorizedError,
)
from account.services._shared.ports.refresh_token_store import refresh_key
from account.services.accounts.dto import UserOut
from account.services.tokens.dto import SigningKeys, TokenServiceConfig
from account.services.tokens.service import TokenService


@pytest.fixture
def user() -> UserOut:
    return UserOut(
        id=uuid.uuid4(),
        email="grace@example.com",
        name="Grace",
        image_url="",
        website="https://grace.example.com",
    )


def _key(user: UserOut, token_id) -> str:
    return refresh_key(str(user.id), str(token_id))


class TestIssue:
    def test_identity_token_round_trips_user(self, token_service, user):
        """validate_identity(issue(u).id_token) returns ``u`` unchanged."""
        pair = token_service.issue(user)

        assert token_service.validate_identity(pair.id_token) == user

    def test_identity_token_carries_no_password(self, token_service, user):
        pair = token_service.issue(user)

        claims = jwt.decode(pair.id_token, options={"verify_signature": False})
        assert set(claims["user"]) == {"uid", "email", "name", "image_url", "website"}
        assert "password" not in str(claims).lower()

    def test_refresh_token_round_trips_user_id(self, token_service, user):
        pair = token_service.issue(user)

        refresh = token_service.validate_refresh(pair.refresh_token.signed_string)

        assert refresh.uid == user.id
        assert refresh.id == pair.refresh_token.id

    def test_stores_key_for_new_refresh_token(self, token_service, refresh_store, user):
        pair = token_service.issue(user)

        assert refresh_store.keys() == [_key(user, pair.refresh_token.id)]
        assert pair.refresh_token.expires_in.total_seconds() == 259200

    def test_unknown_previous_token_is_unauthorized_and_writes_nothing(
        self, token_service, refresh_store, user
    ):
        with pytest.raises(UnauthorizedError, match="invalid refresh token"):
            token_service.issue(user, uuid.uuid4())

        assert refresh_store.keys() == []

    def test_failed_previous_delete_writes_nothing(self, token_service, refresh_store, user):
        first = token_service.issue(user)
        refresh_store.fail_keys.add(_key(user, first.refresh_token.id))

        with pytest.raises(InternalError):
            token_service.issue(user, first.refresh_token.id)

        assert refresh_store.keys() == [_key(user, first.refresh_token.id)]

    def test_store_write_failure_is_internal(self, token_service, refresh_store, user, monkeypatch):
        def _down(*args, **kwargs):
            raise StoreUnavailableError("down")

        monkeypatch.setattr(refresh_store, "put", _down)

        with pytest.raises(InternalError) as excinfo:
            token_service.issue(user)
        assert excinfo.value.public_message == "Internal server error"

    def test_signing_failure_is_internal_and_stores_nothing(
        self, refresh_store, codec, signing_keys, user
    ):
        broken = TokenService(
            TokenServiceConfig(
                store=refresh_store,
                codec=codec,
                keys=SigningKeys(
                    private_key="not a key",
                    public_key=signing_keys.public_key,
                    refresh_secret=signing_keys.refresh_secret,
                ),
            )
        )

        with pytest.raises(InternalError):
            broken.issue(user)
        assert refresh_store.keys() == []

    def test_canceled_deadline_passes_through(self, token_service, refresh_store, user):
        deadline = Deadline.never()
        deadline.cancel()

        with pytest.raises(CanceledError):
            token_service.issue(user, deadline=deadline)
        assert refresh_store.keys() == []

    def test_empty_previous_token_id_issues_fresh_pair(self, token_service, refresh_store, user):
        """An empty previous id means first issue, not a rotation."""
        pair = token_service.issue(user, "")

        assert refresh_store.keys() == [_key(user, pair.refresh_token.id)]

    def test_already_expired_refresh_token_gets_no_store_key(
        self, refresh_store, codec, signing_keys, user
    ):
        service = TokenService(
            TokenServiceConfig(
                store=refresh_store, codec=codec, keys=signing_keys, refresh_token_ttl=-1
            )
        )
        pair = service.issue(user)

        assert not refresh_store.exists(str(user.id), str(pair.refresh_token.id))
        assert refresh_store.keys() == []


class TestRotation:
    def test_rotation_revokes_previous_token(self, token_service, refresh_store, user):
        """P1 -> P2 rotation: P1 can never be redeemed again, P2 stays live."""
        p1 = token_service.issue(user)
        p2 = token_service.issue(user, p1.refresh_token.id)

        with pytest.raises(UnauthorizedError):
            token_service.issue(user, p1.refresh_token.id)

        assert refresh_store.keys() == [_key(user, p2.refresh_token.id)]
        assert not refresh_store.exists(str(user.id), str(p1.refresh_token.id))

    def test_rotated_refresh_token_still_decodes(self, token_service, user):
        """Validation is signature/expiry only; liveness is enforced on redeem."""
        p1 = token_service.issue(user)
        token_service.issue(user, p1.refresh_token.id)

        assert token_service.validate_refresh(p1.refresh_token.signed_string).id == (
            p1.refresh_token.id
        )

    def test_concurrent_issue_yields_two_live_tokens(self, token_service, refresh_store, user):
        barrier = threading.Barrier(2)

        def _issue():
            barrier.wait()
            return token_service.issue(user)

        with ThreadPoolExecutor(max_workers=2) as pool:
            pairs = list(pool.map(lambda _: _issue(), range(2)))

        ids = {p.refresh_token.id for p in pairs}
        assert len(ids) == 2
        assert sorted(refresh_store.keys()) == sorted(_key(user, tid) for tid in ids)


class TestValidation:
    def test_expired_identity_token_is_unauthorized(self, token_service, clock, user):
        pair = token_service.issue(user)
        clock.advance(900)

        with pytest.raises(UnauthorizedError, match="invalid identity token"):
            token_service.validate_identity(pair.id_token)

    def test_negative_ttl_identity_token_is_unauthorized(
        self, refresh_store, codec, signing_keys, user
    ):
        service = TokenService(
            TokenServiceConfig(store=refresh_store, codec=codec, keys=signing_keys, id_token_ttl=-1)
        )
        pair = service.issue(user)

        with pytest.raises(UnauthorizedError):
            service.validate_identity(pair.id_token)

    def test_refresh_token_is_rejected_as_identity(self, token_service, user):
        pair = token_service.issue(user)

        with pytest.raises(UnauthorizedError):
            token_service.validate_identity(pair.refresh_token.signed_string)

    def test_identity_token_is_rejected_as_refresh(self, token_service, user):
        pair = token_service.issue(user)

        with pytest.raises(UnauthorizedError, match="unable to verify user"):
            token_service.validate_refresh(pair.id_token)

    def test_expired_refresh_token_is_unauthorized(self, token_service, clock, user):
        pair = token_service.issue(user)
        clock.advance(259200)

        with pytest.raises(UnauthorizedError):
            token_service.validate_refresh(pair.refresh_token.signed_string)


class TestRevocation:
    def test_revoke_single_token(self, token_service, refresh_store, user):
        keep = token_service.issue(user)
        drop = token_service.issue(user)

        token_service.revoke(user.id, drop.refresh_token.id)

        assert refresh_store.keys() == [_key(user, keep.refresh_token.id)]
        with pytest.raises(UnauthorizedError):
            token_service.revoke(user.id, drop.refresh_token.id)

    def test_sign_out_kills_every_refresh_token(self, token_service, refresh_store, user):
        """After sign-out no previously issued refresh token can be redeemed."""
        pairs = [token_service.issue(user) for _ in range(5)]
        other = UserOut(id=uuid.uuid4(), email="other@example.com")
        other_pair = token_service.issue(other)

        assert token_service.sign_out(user.id) == 5

        for pair in pairs:
            with pytest.raises(UnauthorizedError):
                token_service.issue(user, pair.refresh_token.id)
        assert refresh_store.keys() == [_key(other, other_pair.refresh_token.id)]

    def test_sign_out_leaves_identity_tokens_valid(self, token_service, user):
        pair = token_service.issue(user)
        token_service.sign_out(user.id)

        assert token_service.validate_identity(pair.id_token) == user

    def test_sign_out_partial_failure_propagates(self, token_service, refresh_store, user):
        pairs = [token_service.issue(user) for _ in range(3)]
        stuck = _key(user, pairs[0].refresh_token.id)
        refresh_store.fail_keys.add(stuck)

        with pytest.raises(StoreUnavailableError):
            token_service.sign_out(user.id)

        assert refresh_store.keys() == [stuck]


def test_wall_clock_expiry_of_identity_token(refresh_store, signing_keys, user, freeze_time):
    """With the default clock the identity token dies ``id_token_ttl`` seconds after issue."""
    from account.infra.jwt.pyjwt_claims_codec import JWTClaimsCodec

    service = TokenService(
        TokenServiceConfig(
            store=refresh_store, codec=JWTClaimsCodec(), keys=signing_keys, id_token_ttl=60
        )
    )
    with freeze_time("2026-03-01 10:00:00") as frozen:
        pair = service.issue(user)

        frozen.tick(timedelta(seconds=59))
        assert service.validate_identity(pair.id_token) == user

        frozen.tick(timedelta(seconds=1))
        with pytest.raises(UnauthorizedError):
            service.validate_identity(pair.id_token)
