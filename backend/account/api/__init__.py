"""HTTP API: request deadlines plus the versioned blueprints."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*segments: str) -> str:
    parts = [s.strip("/") for s in segments if s.strip("/")]
    return "/" + "/".join(parts)


def mount(app: Flask, base_prefix: str, entries: Iterable[tuple[Blueprint, str]]) -> None:
    """Register each ``(blueprint, relative_prefix)`` under ``base_prefix``.

    An empty relative prefix mounts the blueprint at ``base_prefix`` itself
    (``/api/v1/health``), otherwise the two are joined (``/api/v1/account``).
    """
    for bp, rel_prefix in entries:
        app.register_blueprint(bp, url_prefix=_join(base_prefix, rel_prefix))


def init_app(app: Flask) -> None:
    """Install per-request deadlines and mount API v1 under ``API_BASE_PREFIX``."""

    from account.api.deps import init_deadlines
    from account.api.v1 import API_VERSION, REGISTRY

    init_deadlines(app)
    mount(app, _join(app.config.get("API_BASE_PREFIX", "/api"), API_VERSION), REGISTRY)


__all__ = ["init_app", "mount"]
