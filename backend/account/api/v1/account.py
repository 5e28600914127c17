"""Account endpoints: credentials, token rotation and profile."""

from __future__ import annotations

from flask import Blueprint, request

from account.api.deps import current_user, json_response, request_deadline, require_auth, timing
from account.core.extensions import get_account_service, get_token_service
from account.schemas import (
    CredentialsSchema,
    DetailsSchema,
    TokenPairSchema,
    TokensRequestSchema,
    UserSchema,
)
from account.services._shared.errors import BadRequestError
from account.services.accounts.dto import ImageUpload, SignUpIn, UpdateDetailsIn

bp = Blueprint("account", __name__)

credentials_schema = CredentialsSchema()
tokens_request_schema = TokensRequestSchema()
token_pair_schema = TokenPairSchema()
details_schema = DetailsSchema()
user_schema = UserSchema()


def _tokens_body(pair) -> dict:
    return {"tokens": token_pair_schema.dump(pair)}


# ------------------------------------------------------------------ #
# Credentials
# ------------------------------------------------------------------ #


@bp.post("/signup")
@timing
def signup():
    """Create an account and return a first token pair."""

    data = credentials_schema.load(request.get_json(silent=True) or {})
    user = get_account_service().sign_up(SignUpIn(**data))
    pair = get_token_service().issue(user, deadline=request_deadline())
    return json_response(_tokens_body(pair), status=201)


@bp.post("/signin")
@timing
def signin():
    """Check credentials and return a fresh token pair."""

    data = credentials_schema.load(request.get_json(silent=True) or {})
    user = get_account_service().sign_in(data["email"], data["password"])
    pair = get_token_service().issue(user, deadline=request_deadline())
    return json_response(_tokens_body(pair))


@bp.post("/tokens")
@timing
def tokens():
    """Redeem a refresh token: revoke it and return a new pair."""

    data = tokens_request_schema.load(request.get_json(silent=True) or {})
    token_service = get_token_service()
    refresh = token_service.validate_refresh(data["refresh_token"])
    # Reload so the new identity token reflects profile changes
    user = get_account_service().get(refresh.uid)
    pair = token_service.issue(user, refresh.id, deadline=request_deadline())
    return json_response(_tokens_body(pair))


@bp.post("/signout")
@require_auth
@timing
def signout():
    """Revoke every refresh token of the caller."""

    get_token_service().sign_out(current_user().id, deadline=request_deadline())
    return json_response({"message": "Successfully signed out"})


# ------------------------------------------------------------------ #
# Profile
# ------------------------------------------------------------------ #


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the caller's current profile."""

    user = get_account_service().get(current_user().id)
    return json_response({"user": user_schema.dump(user)})


@bp.put("/details")
@require_auth
@timing
def details():
    """Update name, email and website."""

    data = details_schema.load(request.get_json(silent=True) or {})
    user = get_account_service().update_details(current_user().id, UpdateDetailsIn(**data))
    return json_response({"user": user_schema.dump(user)})


@bp.post("/image")
@require_auth
@timing
def image():
    """Upload (or replace) the profile image from multipart field ``imageFile``."""

    upload = request.files.get("imageFile")
    if upload is None or not upload.filename:
        raise BadRequestError("Missing image file")
    user = get_account_service().set_profile_image(
        current_user().id,
        ImageUpload(stream=upload.stream, content_type=upload.mimetype),
    )
    return json_response(
        {"imageUrl": user.image_url, "message": "Profile image updated successfully"}
    )


@bp.delete("/image")
@require_auth
@timing
def delete_image():
    """Remove the profile image."""

    get_account_service().clear_profile_image(current_user().id)
    return json_response({"message": "success"})
