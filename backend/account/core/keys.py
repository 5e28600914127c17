"""Load token signing material once at startup."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import serialization

from account.services.tokens.dto import SigningKeys


class KeyConfigError(RuntimeError):
    """Signing keys are missing or unreadable."""


def _read_pem(config: Mapping[str, Any], inline_key: str, file_key: str) -> bytes:
    inline = config.get(inline_key)
    if inline:
        return str(inline).encode()
    path = config.get(file_key)
    if not path:
        raise KeyConfigError(f"Either {inline_key} or {file_key} must be configured")
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise KeyConfigError(f"Could not read {file_key}={path!r}: {exc}") from exc


def load_signing_keys(config: Mapping[str, Any]) -> SigningKeys:
    """
    Build :class:`SigningKeys` from app config.

    Reads ``PRIVATE_KEY``/``PUBLIC_KEY`` (inline PEM) or
    ``PRIVATE_KEY_FILE``/``PUBLIC_KEY_FILE`` plus ``REFRESH_SECRET``.
    PEM data is parsed here so a bad key fails at startup, not on the first
    sign-in.

    :raises KeyConfigError: When anything is missing or not a valid PEM key.
    """
    private_pem = _read_pem(config, "PRIVATE_KEY", "PRIVATE_KEY_FILE")
    public_pem = _read_pem(config, "PUBLIC_KEY", "PUBLIC_KEY_FILE")
    try:
        private_key = serialization.load_pem_private_key(private_pem, password=None)
        public_key = serialization.load_pem_public_key(public_pem)
    except (ValueError, TypeError) as exc:
        raise KeyConfigError(f"Invalid PEM key material: {exc}") from exc

    secret = config.get("REFRESH_SECRET")
    if not secret:
        raise KeyConfigError("REFRESH_SECRET must be configured")
    return SigningKeys(private_key=private_key, public_key=public_key, refresh_secret=secret)
