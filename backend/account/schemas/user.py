"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

_url = validate.URL(relative=False)


def _optional_url(value: str) -> None:
    # Empty string clears the website
    if value:
        _url(value)


class UserSchema(Schema):
    """Public representation of a user (never includes the password hash)."""

    uid = fields.UUID(attribute="id", required=True)
    email = fields.Email(required=True)
    name = fields.String()
    image_url = fields.String()
    website = fields.String()


class DetailsSchema(Schema):
    """Payload for ``PUT /details``."""

    name = fields.String(load_default="", validate=validate.Length(max=40))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    website = fields.String(load_default="", validate=_optional_url)


