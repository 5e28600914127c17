"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class CredentialsSchema(Schema):
    """Input payload for sign-up and sign-in."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=32))


class TokensRequestSchema(Schema):
    """Input payload for refresh-token rotation."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class TokenPairSchema(Schema):
    """Response payload carrying both signed tokens."""

    id_token = fields.String(required=True)
    refresh_token = fields.Function(lambda pair: pair.refresh_token.signed_string)
