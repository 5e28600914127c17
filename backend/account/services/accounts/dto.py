# account/services/accounts/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO
from uuid import UUID

# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Password-free user snapshot.

    This is what handlers serialize and what identity tokens embed.

    :param id: User id.
    :type id: UUID
    :param email: Normalized email.
    :param name: Display name.
    :param image_url: Profile image URL (empty when unset).
    :param website: Personal website (may be empty).
    """

    id: UUID
    email: str
    name: str = ""
    image_url: str = ""
    website: str = ""

    @classmethod
    def from_model(cls, user: Any) -> UserOut:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name or "",
            image_url=user.image_url or "",
            website=user.website or "",
        )

    def to_claims(self) -> dict[str, str]:
        """JSON-safe mapping embedded as the identity token ``user`` claim."""
        return {
            "uid": str(self.id),
            "email": self.email,
            "name": self.name,
            "image_url": self.image_url,
            "website": self.website,
        }

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> UserOut:
        """
        Rebuild a snapshot from an identity token ``user`` claim.

        :raises KeyError: When ``uid`` or ``email`` is missing.
        :raises ValueError: When ``uid`` is not a UUID.
        """
        return cls(
            id=UUID(str(claims["uid"])),
            email=str(claims["email"]),
            name=str(claims.get("name") or ""),
            image_url=str(claims.get("image_url") or ""),
            website=str(claims.get("website") or ""),
        )


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignUpIn:
    """
    Input DTO for sign-up and sign-in.

    :param email: User email (normalized by the model).
    :param password: Raw password (hashed by the model).
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class UpdateDetailsIn:
    """Profile fields a user can change."""

    name: str
    email: str
    website: str


@dataclass(frozen=True, slots=True)
class ImageUpload:
    """
    Uploaded profile image.

    :param stream: Readable binary stream positioned at the start.
    :param content_type: MIME type declared by the client for the upload part.
    """

    stream: BinaryIO
    content_type: str
