"""Shared CLI utility functions for PromptHub commands.

Updates:
  v0.1.1 - 2026-10-11 - Add prompt formatting helpers.
  v0.1.0 - 2026-10-09 - Stdout logging and secret masking helpers.
"""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from datetime import datetime
    from logging import Logger

    from models.prompt_model import Prompt


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def mask_secret(value: str | None) -> str:
    """Return an obfuscated representation of secret configuration values."""
    if not value:
        return "not set"
    secret = value.strip()
    if len(secret) <= 6:
        return "set (****)"
    prefix = secret[:4]
    suffix = secret[-4:]
    return f"set ({prefix}...{suffix})"


def format_timestamp(value: datetime | None) -> str:
    """Return an ISO timestamp to the second, or ``n/a``."""
    if value is None:
        return "n/a"
    return value.isoformat(timespec="seconds")


def format_prompt_line(prompt: Prompt) -> str:
    """Return a one-line listing entry for *prompt*."""
    tags = ", ".join(prompt.tags) if prompt.tags else "-"
    model = prompt.model or "any model"
    return f"{prompt.id}  {prompt.title}  [{model}]  tags: {tags}"


def format_prompt_detail(prompt: Prompt) -> str:
    """Return a multi-line description of *prompt*."""
    lines = [
        prompt.title,
        "-" * max(len(prompt.title), 3),
        f"ID: {prompt.id}",
        f"Model: {prompt.model or 'not set'}",
        f"Tags: {', '.join(prompt.tags) if prompt.tags else 'none'}",
        f"Author: {prompt.author_id}",
        f"Created: {format_timestamp(prompt.created_at)}",
    ]
    if prompt.updated_at is not None:
        lines.append(f"Updated: {format_timestamp(prompt.updated_at)}")
    if prompt.status is not None:
        lines.append(f"Status: {prompt.status.value}")
    if prompt.reported_count:
        lines.append(f"Reports: {prompt.reported_count}")
    if prompt.description:
        lines.extend(["", textwrap.fill(prompt.description, width=88)])
    lines.extend(["", prompt.prompt_text])
    return "\n".join(lines)
