# comments in English; reST docstrings
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from account.services._shared.errors import BadRequestError, InternalError
from account.services._shared.ports.image_store import ImageStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FilesystemImageStore(ImageStore):
    """
    Store profile images as flat files under ``root``.

    The returned URL is ``{base_url}/{object_name}``; serving ``root`` under
    ``base_url`` is left to the web server.

    :param root: Directory receiving the files (created on first upload).
    :param base_url: Public URL prefix for stored objects.
    """

    root: Path
    base_url: str

    def _path(self, object_name: str) -> Path:
        # Object names are generated server-side; reject anything path-like.
        if not object_name or "/" in object_name or "\\" in object_name or object_name in {".", ".."}:
            raise BadRequestError(f"invalid object name: {object_name!r}")
        return self.root / object_name

    def upload(self, object_name: str, stream: BinaryIO, content_type: str) -> str:
        path = self._path(object_name)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with path.open("wb") as fh:
                shutil.copyfileobj(stream, fh)
        except OSError as exc:
            raise InternalError(f"could not write image {object_name}: {exc}") from exc
        logger.info(
            "Profile image stored",
            extra={"object_name": object_name, "content_type": content_type},
        )
        return f"{self.base_url.rstrip('/')}/{object_name}"

    def delete(self, object_name: str) -> None:
        try:
            self._path(object_name).unlink(missing_ok=True)
        except OSError as exc:
            raise InternalError(f"could not delete image {object_name}: {exc}") from exc
