"""User data model definitions.

Updates:
  v0.2.0 - 2026-10-10 - Split provider identity and profile row payloads from the merged profile.
  v0.1.0 - 2026-10-05 - Add UserProfile dataclass with role helpers.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .prompt_model import parse_timestamp


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class UserRole(str, Enum):
    """Authorization roles; absence means ``USER``."""
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Any) -> UserRole | None:
        """Return the matching role or ``None`` for blank/unknown values."""
        text = _optional_text(value)
        if text is None:
            return None
        try:
            return cls(text.lower())
        except ValueError:
            return None


@dataclass(slots=True, frozen=True)
class ProviderIdentity:
    """Account record held by the identity provider."""
    id: str
    email: str | None = None
    user_metadata: Mapping[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utc_now)

    def metadata_text(self, key: str) -> str | None:
        """Return a stripped metadata string or ``None``."""
        return _optional_text(self.user_metadata.get(key))

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> ProviderIdentity:
        """Hydrate an identity from a provider payload."""
        metadata = data.get("user_metadata")
        return cls(
            id=str(data["id"]),
            email=_optional_text(data.get("email")),
            user_metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
            created_at=parse_timestamp(data.get("created_at")) or _utc_now(),
        )


@dataclass(slots=True, frozen=True)
class ProfileRow:
    """Application-owned profile attributes stored in the ``users`` table."""
    id: str
    username: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    role: UserRole | None = None

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> ProfileRow:
        """Hydrate a profile row from a table record."""
        return cls(
            id=str(data["id"]),
            username=_optional_text(data.get("username")),
            avatar_url=_optional_text(data.get("avatar_url")),
            bio=_optional_text(data.get("bio")),
            role=UserRole.parse(data.get("role")),
        )


@dataclass(slots=True, frozen=True)
class UserProfile:
    """Merged view of the signed-in user."""
    id: str
    username: str
    email: str
    created_at: datetime
    avatar_url: str | None = None
    bio: str | None = None
    updated_at: datetime | None = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        """Return ``True`` only for the admin role."""
        return self.role is UserRole.ADMIN

    def to_record(self) -> dict[str, Any]:
        """Serialise the profile into a plain mapping."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "role": self.role.value,
        }


__all__ = ["ProfileRow", "ProviderIdentity", "UserProfile", "UserRole"]
