"""Problem+JSON (RFC 7807) rendering for everything the API can raise."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from account.core.logger import ensure_request_id
from account.services._shared.errors import ErrorKind, ServiceError

log = logging.getLogger(__name__)


#: The only place a service error kind is turned into an HTTP status.
KIND_STATUS: Mapping[ErrorKind, HTTPStatus] = {
    ErrorKind.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.BAD_REQUEST: HTTPStatus.BAD_REQUEST,
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: HTTPStatus.UNSUPPORTED_MEDIA_TYPE,
    ErrorKind.INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorKind.CANCELED: HTTPStatus.REQUEST_TIMEOUT,
    ErrorKind.DEADLINE_EXCEEDED: HTTPStatus.SERVICE_UNAVAILABLE,
}


def status_for(kind: ErrorKind) -> HTTPStatus:
    """Return the HTTP status for a service error kind."""
    return KIND_STATUS[kind]


def _code_for(status: int) -> str:
    # "Payload Too Large" -> "payload_too_large"
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        return "error"
    return phrase.lower().replace(" ", "_").replace("-", "_").replace("'", "")


def problem_response(
    status: int,
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> tuple[Response, int]:
    """Log and render one problem document.

    5xx are logged at ``ERROR``, everything else at ``WARNING``. ``message``
    must already be safe to show a client.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details

    level = logging.ERROR if status >= HTTPStatus.INTERNAL_SERVER_ERROR else logging.WARNING
    log.log(
        level,
        "Request failed.",
        extra={"status": status, "code": code, "path": request.path},
        exc_info=exc_info,
    )

    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp, status


def init_app(app: Flask) -> None:
    """Register the error handlers.

    Service errors go through :data:`KIND_STATUS` and expose only their
    ``public_message``. Unknown exceptions become a bare 500.
    """

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return problem_response(status_for(err.kind), err.kind.value, err.public_message)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return problem_response(status, _code_for(status), message)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return problem_response(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            details={"errors": err.messages},
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        return problem_response(
            HTTPStatus.CONFLICT, "conflict", "Resource conflict", exc_info=True
        )

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return problem_response(
            HTTPStatus.SERVICE_UNAVAILABLE,
            "service_unavailable",
            "Service temporarily unavailable",
            exc_info=True,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return problem_response(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            "internal_server_error",
            "Internal server error",
            exc_info=True,
        )
