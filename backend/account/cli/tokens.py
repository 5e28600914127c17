"""Flask CLI commands for operating on refresh tokens."""

from __future__ import annotations

import logging
import uuid

import click
from flask.cli import with_appcontext

from account.core.extensions import get_token_service
from account.services._shared.errors import InternalError

LOGGER = logging.getLogger(__name__)


def _parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise click.BadParameter(f"{value!r} is not a UUID", param_hint=label) from exc


@click.group("tokens")
def tokens_cli() -> None:
    """Inspect and revoke refresh tokens."""


@tokens_cli.command("revoke-all")
@with_appcontext
@click.argument("user_id")
def revoke_all(user_id: str) -> None:
    """Revoke every refresh token of USER_ID (e.g. after a leak)."""
    uid = _parse_uuid(user_id, "USER_ID")
    try:
        removed = get_token_service().sign_out(uid)
    except InternalError as exc:
        LOGGER.error("Revoke-all failed", extra={"user_id": str(uid)})
        raise click.ClickException(f"Revocation incomplete: {exc}") from exc
    click.echo(f"Revoked {removed} refresh token(s) for user {uid}")


@tokens_cli.command("check")
@with_appcontext
@click.argument("user_id")
@click.argument("token_id")
def check(user_id: str, token_id: str) -> None:
    """Report whether TOKEN_ID of USER_ID can still be redeemed."""
    uid = _parse_uuid(user_id, "USER_ID")
    tid = _parse_uuid(token_id, "TOKEN_ID")
    live = get_token_service().store.exists(str(uid), str(tid))
    click.echo("live" if live else "revoked")
    if not live:
        raise click.exceptions.Exit(1)
