"""Data models for PromptHub.

Updates: v0.2.0 - 2026-10-10 - Export provider identity and profile row payloads.
Updates: v0.1.0 - 2026-10-05 - Export Prompt and UserProfile dataclasses.
"""

from .prompt_model import Prompt, PromptDraft, PromptStatus
from .user_model import ProfileRow, ProviderIdentity, UserProfile, UserRole

__all__ = [
    "Prompt",
    "PromptDraft",
    "PromptStatus",
    "ProfileRow",
    "ProviderIdentity",
    "UserProfile",
    "UserRole",
]
