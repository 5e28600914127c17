"""CORS policy for the account API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from account.core.logger import REQUEST_ID_HEADER


def init_app(app: Flask) -> None:
    """Allow browser clients listed in ``CORS_ORIGINS`` to call ``/api/*``.

    Clients send the identity token in ``Authorization``, so that header must
    be allowed. A blank or ``"*"`` origin list opens the API to any origin
    without credentials.
    """
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    any_origin = not origins or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if any_origin else origins}},
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        supports_credentials=not any_origin,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
