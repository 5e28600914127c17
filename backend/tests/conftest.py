"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Token fixtures
use a freshly generated RSA key pair and the in-process refresh store.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from account.core.config import TestingConfig
from account.core.extensions import db as _db  # Flask-SQLAlchemy instance
from account.factory import create_app  # application factory under test
from account.infra.jwt.pyjwt_claims_codec import JWTClaimsCodec
from account.services._shared.ports import InMemoryImageStore, InMemoryRefreshTokenStore
from account.services.tokens.dto import SigningKeys, TokenServiceConfig
from account.services.tokens.service import TokenService
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

REFRESH_SECRET = "test-refresh-secret-that-is-long-enough-for-hs256"


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Never connects to Redis (in-process refresh store).
    - Key material is injected by the ``app`` fixture.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REDIS_URL = None
    REFRESH_SECRET = REFRESH_SECRET
    HANDLER_TIMEOUT = 5
    LOG_LEVEL = "WARNING"


# -- Key material ---------------------------------------------------------------


@pytest.fixture(scope="session")
def rsa_private_key():
    """Generate one RSA key pair per test session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pem_keys(rsa_private_key) -> tuple[str, str]:
    """Return ``(private_pem, public_pem)`` as text."""
    private_pem = rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        rsa_private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return private_pem, public_pem


@pytest.fixture(scope="session")
def signing_keys(rsa_private_key) -> SigningKeys:
    return SigningKeys(
        private_key=rsa_private_key,
        public_key=rsa_private_key.public_key(),
        refresh_secret=REFRESH_SECRET,
    )


# -- Token service building blocks ---------------------------------------------


class FrozenClock:
    """Settable UTC clock for the claims codec."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def codec(clock) -> JWTClaimsCodec:
    return JWTClaimsCodec(clock=clock)


@pytest.fixture
def refresh_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore(scan_count=2)


@pytest.fixture
def token_service(refresh_store, codec, signing_keys) -> TokenService:
    return TokenService(
        TokenServiceConfig(
            store=refresh_store,
            codec=codec,
            keys=signing_keys,
            id_token_ttl=900,
            refresh_token_ttl=259200,
        )
    )


@pytest.fixture
def image_store() -> InMemoryImageStore:
    return InMemoryImageStore()


# -- Application & database -----------------------------------------------------


@pytest.fixture(scope="session")
def app(pem_keys, tmp_path_factory):
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    private_pem, public_pem = pem_keys
    app = create_app(
        TestConfig,
        overrides={
            "PRIVATE_KEY": private_pem,
            "PUBLIC_KEY": public_pem,
            "IMAGE_STORAGE_DIR": str(tmp_path_factory.mktemp("images")),
            "IMAGE_BASE_URL": "http://images.test/profile",
        },
    )
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # Point db.session at this scoped session so app code uses it
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2026-01-01") as frozen:
    ...         frozen.tick(60)
    """

    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2026-01-01")

    return _factory
