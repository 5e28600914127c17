"""End-to-end tests for the account HTTP API using the Flask test client."""

from __future__ import annotations

import io

import pytest
from account.core.extensions import get_token_service

BASE = "/api/v1/account"


def _signup(client, email="api@example.com", password="hunter2hunter2"):
    return client.post(f"{BASE}/signup", json={"email": email, "password": password})


def _auth(tokens) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['id_token']}"}


@pytest.fixture
def tokens(client):
    resp = _signup(client)
    assert resp.status_code == 201
    return resp.get_json()["tokens"]


class TestCredentials:
    def test_signup_returns_token_pair(self, client):
        resp = _signup(client, email="fresh@example.com")

        assert resp.status_code == 201
        body = resp.get_json()["tokens"]
        assert set(body) == {"id_token", "refresh_token"}

        user = get_token_service().validate_identity(body["id_token"])
        assert user.email == "fresh@example.com"

    def test_signup_twice_conflicts(self, client, tokens):
        resp = _signup(client)

        assert resp.status_code == 409
        assert resp.get_json()["code"] == "conflict"

    def test_signup_validates_payload(self, client):
        resp = client.post(f"{BASE}/signup", json={"email": "nope", "password": "short"})

        assert resp.status_code == 422
        errors = resp.get_json()["details"]["errors"]
        assert {"email", "password"} <= set(errors)

    def test_signin_with_valid_credentials(self, client, tokens):
        resp = client.post(
            f"{BASE}/signin", json={"email": "api@example.com", "password": "hunter2hunter2"}
        )

        assert resp.status_code == 200
        assert resp.get_json()["tokens"]["id_token"]

    def test_signin_with_wrong_password_is_unauthorized(self, client, tokens):
        resp = client.post(
            f"{BASE}/signin", json={"email": "api@example.com", "password": "wrong-password"}
        )

        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "Invalid email/password combination"


class TestTokenRotation:
    def test_refresh_rotates_and_old_token_dies(self, client, tokens):
        first = client.post(f"{BASE}/tokens", json={"refresh_token": tokens["refresh_token"]})
        assert first.status_code == 200
        rotated = first.get_json()["tokens"]
        assert rotated["refresh_token"] != tokens["refresh_token"]

        replay = client.post(f"{BASE}/tokens", json={"refresh_token": tokens["refresh_token"]})
        assert replay.status_code == 401

        again = client.post(f"{BASE}/tokens", json={"refresh_token": rotated["refresh_token"]})
        assert again.status_code == 200

    def test_identity_token_is_not_a_refresh_token(self, client, tokens):
        resp = client.post(f"{BASE}/tokens", json={"refresh_token": tokens["id_token"]})

        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "unable to verify user from refresh token"

    def test_signout_revokes_refresh_tokens(self, client, tokens):
        resp = client.post(f"{BASE}/signout", headers=_auth(tokens))

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Successfully signed out"}

        replay = client.post(f"{BASE}/tokens", json={"refresh_token": tokens["refresh_token"]})
        assert replay.status_code == 401


class TestProfile:
    def test_me_requires_bearer_token(self, client):
        resp = client.get(f"{BASE}/me", headers={"Authorization": "Token abc"})

        assert resp.status_code == 401

    def test_me_returns_profile(self, client, tokens):
        resp = client.get(f"{BASE}/me", headers=_auth(tokens))

        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["email"] == "api@example.com"
        assert set(user) == {"uid", "email", "name", "image_url", "website"}

    def test_update_details(self, client, tokens):
        resp = client.put(
            f"{BASE}/details",
            headers=_auth(tokens),
            json={"name": "Api User", "email": "renamed@example.com", "website": ""},
        )

        assert resp.status_code == 200
        assert resp.get_json()["user"]["name"] == "Api User"

        # A rotated pair carries the new profile
        rotated = client.post(f"{BASE}/tokens", json={"refresh_token": tokens["refresh_token"]})
        user = get_token_service().validate_identity(rotated.get_json()["tokens"]["id_token"])
        assert user.email == "renamed@example.com"

    def test_update_details_rejects_bad_website(self, client, tokens):
        resp = client.put(
            f"{BASE}/details",
            headers=_auth(tokens),
            json={"email": "api@example.com", "website": "not a url"},
        )

        assert resp.status_code == 422

    def test_image_upload_and_delete(self, client, tokens):
        upload = client.post(
            f"{BASE}/image",
            headers=_auth(tokens),
            data={"imageFile": (io.BytesIO(b"\x89PNG\r\n"), "me.png", "image/png")},
            content_type="multipart/form-data",
        )

        assert upload.status_code == 200
        body = upload.get_json()
        assert body["message"] == "Profile image updated successfully"
        assert body["imageUrl"].startswith("http://images.test/profile/")

        me = client.get(f"{BASE}/me", headers=_auth(tokens)).get_json()["user"]
        assert me["image_url"] == body["imageUrl"]

        deleted = client.delete(f"{BASE}/image", headers=_auth(tokens))
        assert deleted.status_code == 200
        assert deleted.get_json() == {"message": "success"}

    def test_image_upload_rejects_gif(self, client, tokens):
        resp = client.post(
            f"{BASE}/image",
            headers=_auth(tokens),
            data={"imageFile": (io.BytesIO(b"GIF89a"), "me.gif", "image/gif")},
            content_type="multipart/form-data",
        )

        assert resp.status_code == 415

    def test_image_upload_requires_file(self, client, tokens):
        resp = client.post(
            f"{BASE}/image",
            headers=_auth(tokens),
            data={},
            content_type="multipart/form-data",
        )

        assert resp.status_code == 400


def test_health(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["db"] == "ok"
    assert body["token_store"] == "memory"
