"""Tests for the filesystem-backed profile image store."""

from __future__ import annotations

import io

import pytest
from account.infra.storage.filesystem_image_store import FilesystemImageStore
from account.services._shared.errors import BadRequestError


@pytest.fixture
def store(tmp_path):
    return FilesystemImageStore(root=tmp_path / "images", base_url="https://cdn.test/profile/")


def test_upload_writes_file_and_returns_url(store, tmp_path):
    url = store.upload("abc", io.BytesIO(b"\x89PNG"), "image/png")

    assert url == "https://cdn.test/profile/abc"
    assert (tmp_path / "images" / "abc").read_bytes() == b"\x89PNG"


def test_upload_overwrites_existing_object(store, tmp_path):
    store.upload("abc", io.BytesIO(b"old"), "image/png")
    store.upload("abc", io.BytesIO(b"new"), "image/jpeg")

    assert (tmp_path / "images" / "abc").read_bytes() == b"new"


def test_delete_is_idempotent(store, tmp_path):
    store.upload("abc", io.BytesIO(b"x"), "image/png")

    store.delete("abc")
    store.delete("abc")

    assert not (tmp_path / "images" / "abc").exists()


@pytest.mark.parametrize("name", ["", ".", "..", "../etc", "a/b", "a\\b"])
def test_path_like_names_are_rejected(store, name):
    with pytest.raises(BadRequestError):
        store.upload(name, io.BytesIO(b"x"), "image/png")
