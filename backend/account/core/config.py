"""Settings classes selected by ``APP_ENV`` and filled from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Read ``name`` as a flag; unset means ``default``."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Read ``name`` as an integer; unset or blank means ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class BaseConfig:
    """Settings every environment starts from.

    Token material
        ``PRIVATE_KEY_FILE``/``PUBLIC_KEY_FILE`` (or inline ``PRIVATE_KEY``/
        ``PUBLIC_KEY``) hold the RS256 pair for identity tokens;
        ``REFRESH_SECRET`` signs refresh tokens with HS256.
    Lifetimes
        ``ID_TOKEN_EXP`` (15 minutes) and ``REFRESH_TOKEN_EXP`` (3 days), in
        seconds. ``TOKEN_LEEWAY_SECONDS`` tolerates clock skew on ``exp``.
    Refresh store
        ``REDIS_URL``; left unset, refresh tokens live in process memory.
        ``REFRESH_SCAN_COUNT`` is the ``SCAN COUNT`` hint for sign-out.
    Requests
        ``HANDLER_TIMEOUT`` bounds token-store work per request;
        ``MAX_BODY_BYTES`` caps uploads.
    Images
        ``IMAGE_STORAGE_DIR`` receives profile images served under
        ``IMAGE_BASE_URL``.
    """

    API_BASE_PREFIX = "/api"

    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    REDIS_URL = os.getenv("REDIS_URL")
    REFRESH_SCAN_COUNT = env_int("REFRESH_SCAN_COUNT", 100)

    PRIVATE_KEY_FILE = os.getenv("PRIVATE_KEY_FILE")
    PUBLIC_KEY_FILE = os.getenv("PUBLIC_KEY_FILE")
    PRIVATE_KEY = os.getenv("PRIVATE_KEY")
    PUBLIC_KEY = os.getenv("PUBLIC_KEY")
    REFRESH_SECRET = os.getenv("REFRESH_SECRET", "CHANGE_ME_REFRESH_SECRET")
    ID_TOKEN_EXP = env_int("ID_TOKEN_EXP", 15 * 60)
    REFRESH_TOKEN_EXP = env_int("REFRESH_TOKEN_EXP", 3 * 24 * 60 * 60)
    TOKEN_LEEWAY_SECONDS = env_int("TOKEN_LEEWAY_SECONDS", 0)

    HANDLER_TIMEOUT = env_int("HANDLER_TIMEOUT", 5)
    MAX_CONTENT_LENGTH = env_int("MAX_BODY_BYTES", 4 * 1024 * 1024)

    IMAGE_STORAGE_DIR = os.getenv("IMAGE_STORAGE_DIR", "./var/images")
    IMAGE_BASE_URL = os.getenv("IMAGE_BASE_URL", "http://localhost:8080/images")

    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = env_int("CORS_MAX_AGE", 600)

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local runs: debug on unless ``FLASK_DEBUG`` says otherwise."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Test runs: in-memory SQLite (or ``TEST_DATABASE_URL``) and no Redis."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    SQLALCHEMY_ECHO = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Pick the settings class named by ``APP_ENV`` (development when unknown)."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
