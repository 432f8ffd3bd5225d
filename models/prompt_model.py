"""Prompt data model definitions.

Updates:
  v0.3.0 - 2026-10-12 - Add form-style draft builder splitting comma separated tags.
  v0.2.0 - 2026-10-09 - Track moderation status and report counts on prompt rows.
  v0.1.0 - 2026-10-05 - Initial Prompt/PromptDraft schema with record helpers.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse backend timestamps (ISO strings with optional ``Z``) into aware datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _serialize_tags(items: Iterable[Any] | str | None) -> list[str]:
    """Normalize tag inputs into a list of strings, preserving order and duplicates."""
    if items is None:
        return []
    if isinstance(items, str):
        return [items]
    return [str(item) for item in items]


def split_tags(raw: str | None) -> list[str]:
    """Split a comma separated tag string, dropping blank entries."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


class PromptStatus(str, Enum):
    """Moderation states a prompt can be in."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _parse_status(value: Any) -> PromptStatus | None:
    if value in (None, ""):
        return None
    try:
        return PromptStatus(str(value).strip().lower())
    except ValueError:
        return None


def _parse_report_count(value: Any) -> int | None:
    if value in (None, ""):
        return None
    count = int(value)
    if count < 0:
        raise ValueError("reported_count must be a non-negative integer")
    return count


@dataclass(slots=True)
class Prompt:
    """A prompt entry as stored by the backend.

    ``id`` and ``created_at`` are always backend-assigned.
    """
    id: str
    title: str
    description: str
    prompt_text: str
    model: str
    tags: list[str] = field(default_factory=list)
    author_id: str = ""
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime | None = None
    status: PromptStatus | None = None
    reported_count: int | None = None

    @property
    def is_reported(self) -> bool:
        """Return ``True`` when at least one report exists."""
        return (self.reported_count or 0) > 0

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping of the prompt."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "prompt_text": self.prompt_text,
            "model": self.model,
            "tags": list(self.tags),
            "author_id": self.author_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "status": self.status.value if self.status else None,
            "reported_count": self.reported_count,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Prompt:
        """Create a Prompt from a backend row."""
        if data.get("id") in (None, ""):
            raise ValueError("prompt rows must carry a backend-assigned id")
        created_at = parse_timestamp(data.get("created_at")) or _utc_now()
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            prompt_text=str(data.get("prompt_text") or ""),
            model=str(data.get("model") or ""),
            tags=_serialize_tags(data.get("tags")),
            author_id=str(data.get("author_id") or ""),
            created_at=created_at,
            updated_at=parse_timestamp(data.get("updated_at")),
            status=_parse_status(data.get("status")),
            reported_count=_parse_report_count(data.get("reported_count")),
        )


@dataclass(slots=True, frozen=True)
class PromptDraft:
    """Client-side prompt payload awaiting insertion."""
    title: str
    description: str
    prompt_text: str
    model: str
    author_id: str
    tags: tuple[str, ...] = ()

    def to_insert_payload(self) -> dict[str, Any]:
        """Return the insert body; the backend assigns ``id`` and ``created_at``."""
        return {
            "title": self.title,
            "description": self.description,
            "prompt_text": self.prompt_text,
            "model": self.model,
            "tags": list(self.tags),
            "author_id": self.author_id,
        }

    @classmethod
    def from_form(
        cls,
        *,
        title: str,
        description: str,
        prompt_text: str,
        model: str,
        author_id: str,
        tags: str | Iterable[str] | None = None,
    ) -> PromptDraft:
        """Build a draft from form input, splitting comma separated tags."""
        clean_title = title.strip()
        clean_text = prompt_text.strip()
        if not clean_title:
            raise ValueError("title is required")
        if not clean_text:
            raise ValueError("prompt_text is required")
        if not author_id:
            raise ValueError("author_id is required")
        if tags is None or isinstance(tags, str):
            tag_list = split_tags(tags)
        else:
            tag_list = [str(tag).strip() for tag in tags if str(tag).strip()]
        return cls(
            title=clean_title,
            description=description.strip(),
            prompt_text=clean_text,
            model=model.strip(),
            author_id=author_id,
            tags=tuple(tag_list),
        )


__all__ = [
    "Prompt",
    "PromptDraft",
    "PromptStatus",
    "parse_timestamp",
    "split_tags",
]
