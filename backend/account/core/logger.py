"""JSON logging with per-request correlation.

Every record leaving the root handler is one JSON object carrying the request
id (taken from ``X-Request-ID``/``X-Correlation-ID`` or generated), the
authenticated user id when there is one, and any ``extra=`` fields.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# Anything on a record beyond these came in through ``extra=``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "request_id",
    "actor_id",
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        actor = getattr(record, "actor_id", None)
        if actor:
            payload["actor_id"] = actor
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestContextFilter(logging.Filter):
    """Stamp ``request_id`` and ``actor_id`` on records emitted inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = ensure_request_id()
            user = g.get("current_user")
            record.actor_id = str(user.id) if user is not None else None
        else:
            record.request_id = None
            record.actor_id = None
        return True


def ensure_request_id() -> str:
    """Return the request's correlation id, adopting an inbound header if present."""

    if not has_request_context():
        return str(uuid4())
    if "request_id" not in g:
        inbound = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)),
            None,
        )
        g.request_id = inbound or str(uuid4())
    return g.request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Send root logging to stdout as JSON at ``level``."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper() if isinstance(level, str) else level)
    # Werkzeug's access log duplicates gunicorn's
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def init_app(app: Flask) -> None:
    """Assign a request id before each request and echo it on the response."""

    app.logger.addFilter(RequestContextFilter())

    @app.before_request
    def _assign_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "JSONFormatter",
    "RequestContextFilter",
    "configure_logging",
    "ensure_request_id",
    "init_app",
]
