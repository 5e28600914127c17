from __future__ import annotations

from typing import BinaryIO, Protocol


class ImageStore(Protocol):
    """Port for profile-image object storage."""

    def upload(self, object_name: str, stream: BinaryIO, content_type: str) -> str:
        """
        Write ``stream`` under ``object_name`` (overwriting) and return its public URL.

        :raises InternalError: When the backend write fails.
        """

    def delete(self, object_name: str) -> None:
        """Remove the object; missing objects are ignored."""


class InMemoryImageStore(ImageStore):
    """Dictionary-backed image store used in unit tests."""

    def __init__(self, base_url: str = "https://images.test/profile") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, tuple[bytes, str]] = {}

    def upload(self, object_name: str, stream: BinaryIO, content_type: str) -> str:
        self.objects[object_name] = (stream.read(), content_type)
        return f"{self.base_url}/{object_name}"

    def delete(self, object_name: str) -> None:
        self.objects.pop(object_name, None)
