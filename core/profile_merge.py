"""Deterministic merge of provider identity and application profile row.

Field precedence (first non-empty wins):

============  =================  ==========================  ================  ======
field         1st                2nd                         3rd               default
============  =================  ==========================  ================  ======
username      row.username       metadata ``username``       email local part  ``""``
role          row.role           metadata ``role``                             user
avatar_url    row.avatar_url     metadata ``avatar_url``                       None
bio           row.bio                                                          None
============  =================  ==========================  ================  ======

``id``, ``email`` and ``created_at`` always come from the provider identity.

Updates:
  v0.1.0 - 2026-10-10 - Extract profile merge from session resolution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from models.user_model import UserProfile, UserRole

if TYPE_CHECKING:
    from models.user_model import ProfileRow, ProviderIdentity

__all__ = ["email_local_part", "merge_user_profile"]


def email_local_part(email: str | None) -> str | None:
    """Return the part of *email* before ``@`` or ``None`` when blank."""
    if not email:
        return None
    local = email.split("@", 1)[0].strip()
    return local or None


def merge_user_profile(
    identity: ProviderIdentity,
    row: ProfileRow | None = None,
) -> UserProfile:
    """Combine *identity* and the optional profile *row* into one profile."""
    username = (
        (row.username if row else None)
        or identity.metadata_text("username")
        or email_local_part(identity.email)
        or ""
    )
    role = (
        (row.role if row else None)
        or UserRole.parse(identity.user_metadata.get("role"))
        or UserRole.USER
    )
    avatar_url = (row.avatar_url if row else None) or identity.metadata_text("avatar_url")
    bio = row.bio if row else None
    return UserProfile(
        id=identity.id,
        username=username,
        email=identity.email or "",
        created_at=identity.created_at,
        avatar_url=avatar_url,
        bio=bio,
        role=role,
    )
