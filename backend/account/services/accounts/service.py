# account/services/accounts/service.py
from __future__ import annotations

import logging
import posixpath
import uuid
from urllib.parse import urlparse

from sqlalchemy.exc import IntegrityError

from account.models.user import User
from account.repositories.user import UserRepository
from account.services._shared.base import BaseService
from account.services._shared.errors import (
    ConflictError,
    UnauthorizedError,
    UnsupportedMediaTypeError,
    violates,
)
from account.services._shared.ports.image_store import ImageStore
from account.services.accounts.dto import ImageUpload, SignUpIn, UpdateDetailsIn, UserOut

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email/password combination"
ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png"})


def object_name_from_url(image_url: str) -> str:
    """
    Object name to (re)use for a user's profile image.

    The last path segment of the current URL, or a fresh UUID when unset, so
    each user keeps overwriting a single object.
    """
    if not image_url:
        return str(uuid.uuid4())
    return posixpath.basename(urlparse(image_url).path) or str(uuid.uuid4())


class AccountService(BaseService):
    """
    Credentials and profile management.

    Returns :class:`UserOut` snapshots only; password hashes never leave the
    service.
    """

    def __init__(self, *, image_store: ImageStore) -> None:
        """
        :param image_store: Object storage for profile images.
        """
        self.images = image_store

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def sign_up(self, dto: SignUpIn) -> UserOut:
        """
        Create an account.

        :raises ConflictError: When the email is already registered.
        """
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(dto.email):
                    raise ConflictError("User", "email already in use")
                user = User(email=dto.email)
                user.password = dto.password
                repo.add(user)
                out = UserOut.from_model(user)
        except IntegrityError as exc:
            # Concurrent sign-up with the same email
            if violates(exc, "uq_users_email"):
                raise ConflictError("User", "email already in use") from exc
            raise
        logger.info("User signed up", extra={"user_id": str(out.id)})
        return out

    def sign_in(self, email: str, password: str) -> UserOut:
        """
        Check credentials.

        :raises UnauthorizedError: Unknown email or wrong password (same message).
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.authenticate(email, password)
            if user is None:
                raise UnauthorizedError(INVALID_CREDENTIALS)
            return UserOut.from_model(user)

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get(self, user_id: uuid.UUID) -> UserOut:
        """:raises NotFoundError: When the user does not exist."""
        with self.ro_uow() as uow:
            user = self.ensure_found(uow.users.get(user_id), "User", user_id)
            return UserOut.from_model(user)

    def update_details(self, user_id: uuid.UUID, dto: UpdateDetailsIn) -> UserOut:
        """
        Replace name, email and website.

        :raises NotFoundError: When the user does not exist.
        :raises ConflictError: When the new email belongs to another account.
        """
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                user = self.ensure_found(repo.get(user_id), "User", user_id)
                if dto.email.strip().lower() != user.email:
                    if repo.exists_by_email(dto.email):
                        raise ConflictError("User", "email already in use")
                repo.update(user, name=dto.name, email=dto.email, website=dto.website)
                out = UserOut.from_model(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email"):
                raise ConflictError("User", "email already in use") from exc
            raise
        logger.info("User details updated", extra={"user_id": str(user_id)})
        return out

    def set_profile_image(self, user_id: uuid.UUID, upload: ImageUpload) -> UserOut:
        """
        Store a new profile image and record its URL.

        :raises UnsupportedMediaTypeError: Unless the upload is JPEG or PNG.
        :raises NotFoundError: When the user does not exist.
        :raises InternalError: When the image store fails.
        """
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise UnsupportedMediaTypeError("imageFile must be 'image/jpeg' or 'image/png'")

        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = self.ensure_found(repo.get(user_id), "User", user_id)
            object_name = object_name_from_url(user.image_url)
            image_url = self.images.upload(object_name, upload.stream, upload.content_type)
            repo.update(user, image_url=image_url)
            out = UserOut.from_model(user)
        logger.info(
            "Profile image updated", extra={"user_id": str(user_id), "object_name": object_name}
        )
        return out

    def clear_profile_image(self, user_id: uuid.UUID) -> None:
        """
        Delete the stored image (if any) and clear the URL.

        :raises NotFoundError: When the user does not exist.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = self.ensure_found(repo.get(user_id), "User", user_id)
            if not user.image_url:
                return
            self.images.delete(object_name_from_url(user.image_url))
            repo.update(user, image_url="")
        logger.info("Profile image cleared", extra={"user_id": str(user_id)})
