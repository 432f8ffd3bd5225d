"""Client-side prompt filtering over the cached collection.

All helpers are pure and preserve the input order.

Updates:
  v0.2.0 - 2026-10-15 - Add moderation queues (pending and reported prompts).
  v0.1.0 - 2026-10-09 - Text search, tag filter, author filter and tag counts.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from models.prompt_model import PromptStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.prompt_model import Prompt

__all__ = [
    "collect_tags",
    "filter_by_tag",
    "pending_prompts",
    "prompts_by_author",
    "reported_prompts",
    "search_prompts",
]


def search_prompts(prompts: Iterable[Prompt], query: str | None) -> list[Prompt]:
    """Return prompts whose title, description or any tag contains *query*.

    Matching is a case-insensitive substring test. A blank query returns every
    prompt.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(prompts)
    return [
        prompt
        for prompt in prompts
        if needle in prompt.title.lower()
        or needle in prompt.description.lower()
        or any(needle in tag.lower() for tag in prompt.tags)
    ]


def filter_by_tag(prompts: Iterable[Prompt], tag: str) -> list[Prompt]:
    """Return prompts carrying *tag* (case-insensitive exact match)."""
    wanted = tag.strip().lower()
    if not wanted:
        return list(prompts)
    return [prompt for prompt in prompts if any(t.lower() == wanted for t in prompt.tags)]


def prompts_by_author(prompts: Iterable[Prompt], author_id: str) -> list[Prompt]:
    """Return prompts uploaded by *author_id*."""
    return [prompt for prompt in prompts if prompt.author_id == author_id]


def pending_prompts(prompts: Iterable[Prompt]) -> list[Prompt]:
    """Return prompts awaiting moderation."""
    return [prompt for prompt in prompts if prompt.status is PromptStatus.PENDING]


def reported_prompts(prompts: Iterable[Prompt]) -> list[Prompt]:
    """Return prompts with at least one report."""
    return [prompt for prompt in prompts if prompt.is_reported]


def collect_tags(prompts: Iterable[Prompt]) -> list[tuple[str, int]]:
    """Return distinct tags with the number of prompts using them, most used first.

    Ties are ordered alphabetically (case-insensitive). A tag repeated within
    one prompt counts once for that prompt.
    """
    counts: Counter[str] = Counter()
    for prompt in prompts:
        counts.update(set(prompt.tags))
    return sorted(counts.items(), key=lambda item: (-item[1], item[0].lower()))
