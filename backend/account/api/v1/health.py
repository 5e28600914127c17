"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from account.api.deps import json_response, timing
from account.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and refresh-store health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("Health check: database unreachable")
        db_status = "fail"

    client = current_app.extensions.get("redis_client")
    store_status = "memory"
    if client is not None:
        try:
            client.ping()
            store_status = "ok"
        except RedisError:  # pragma: no cover - depends on Redis
            current_app.logger.exception("Health check: redis unreachable")
            store_status = "fail"

    payload = {
        "status": "ok",
        "db": db_status,
        "token_store": store_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
        "commit": current_app.config.get("APP_COMMIT", "unknown"),
    }
    return json_response(payload)
