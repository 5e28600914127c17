"""Shared API helpers for authentication, deadlines and responses."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Flask, Response, current_app, g, jsonify, request

from account.core.extensions import get_token_service
from account.services._shared.deadline import Deadline
from account.services._shared.errors import UnauthorizedError
from account.services.accounts.dto import UserOut

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


# ------------------------------ Deadlines ------------------------------------


def init_deadlines(app: Flask) -> None:
    """Give every request a :class:`Deadline` of ``HANDLER_TIMEOUT`` seconds.

    The deadline is canceled on teardown so any work still holding it stops
    issuing backend calls once the response is gone.
    """

    @app.before_request
    def _start_deadline() -> None:
        timeout = current_app.config.get("HANDLER_TIMEOUT")
        g.deadline = Deadline.after(float(timeout)) if timeout else Deadline.never()

    @app.teardown_request
    def _cancel_deadline(exc: BaseException | None) -> None:
        deadline = g.pop("deadline", None)
        if deadline is not None:
            deadline.cancel()


def request_deadline() -> Deadline | None:
    """Return the current request's deadline, if one was started."""
    return g.get("deadline")


# ---------------------------- Authentication ---------------------------------


def bearer_token() -> str:
    """
    Extract the identity token from ``Authorization: Bearer <token>``.

    :raises UnauthorizedError: When the header is missing or malformed.
    """
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX) or not header[len(BEARER_PREFIX) :].strip():
        raise UnauthorizedError("Must provide Authorization header with format `Bearer {token}`")
    return header[len(BEARER_PREFIX) :].strip()


def require_auth(func: F) -> F:
    """Ensure the request carries a valid identity token; sets ``g.current_user``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        g.current_user = get_token_service().validate_identity(bearer_token())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user() -> UserOut:
    """Return the user authenticated by :func:`require_auth`."""
    return g.current_user


# ------------------------------ Responses ------------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "Request handled",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
