"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Flask

from account.core.config import BaseConfig, get_config
from account.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object/class or import path; ``APP_ENV`` decides when omitted.
    :param overrides: Extra settings applied last (tests inject keys this way).
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from account.core import extensions

    extensions.init_app(app)
    extensions.init_services(app)

    init_logging(app)

    from account.core import cors

    cors.init_app(app)

    from account.api import init_app as init_api

    init_api(app)

    from account.core import errors

    errors.init_app(app)

    from account import cli as app_cli

    app_cli.init_app(app)

    return app
