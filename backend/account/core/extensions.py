"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import logging
from pathlib import Path

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

log = logging.getLogger(__name__)

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None

TOKEN_SERVICE_KEY = "token_service"
ACCOUNT_SERVICE_KEY = "account_service"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations and the Redis client.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`account.models` package to ensure SQLAlchemy metadata is ready
        for migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from account import models as _models  # noqa: F401

    migrate.init_app(app, db)

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def init_services(app: Flask) -> None:
    """Build the token and account services once and park them on ``app.extensions``.

    Tests may pre-populate either key to inject doubles; existing entries are
    left untouched.
    """
    from account.core.keys import load_signing_keys
    from account.infra.jwt.pyjwt_claims_codec import JWTClaimsCodec
    from account.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
    from account.infra.storage.filesystem_image_store import FilesystemImageStore
    from account.services._shared.ports.refresh_token_store import InMemoryRefreshTokenStore
    from account.services.accounts.service import AccountService
    from account.services.tokens.dto import TokenServiceConfig
    from account.services.tokens.service import TokenService

    scan_count = int(app.config.get("REFRESH_SCAN_COUNT", 100))

    if TOKEN_SERVICE_KEY not in app.extensions:
        client = app.extensions.get("redis_client")
        if client is not None:
            store = RedisRefreshTokenStore(r=client, scan_count=scan_count)
        else:
            if not app.config.get("TESTING"):
                log.warning("REDIS_URL not set; refresh tokens are kept in process memory")
            store = InMemoryRefreshTokenStore(scan_count=scan_count)

        app.extensions[TOKEN_SERVICE_KEY] = TokenService(
            TokenServiceConfig(
                store=store,
                codec=JWTClaimsCodec(leeway=int(app.config.get("TOKEN_LEEWAY_SECONDS", 0))),
                keys=load_signing_keys(app.config),
                id_token_ttl=int(app.config["ID_TOKEN_EXP"]),
                refresh_token_ttl=int(app.config["REFRESH_TOKEN_EXP"]),
            )
        )

    if ACCOUNT_SERVICE_KEY not in app.extensions:
        images = FilesystemImageStore(
            root=Path(app.config["IMAGE_STORAGE_DIR"]),
            base_url=app.config["IMAGE_BASE_URL"],
        )
        app.extensions[ACCOUNT_SERVICE_KEY] = AccountService(image_store=images)


def get_token_service():
    """Return the :class:`TokenService` bound to the current app."""
    return current_app.extensions[TOKEN_SERVICE_KEY]


def get_account_service():
    """Return the :class:`AccountService` bound to the current app."""
    return current_app.extensions[ACCOUNT_SERVICE_KEY]
