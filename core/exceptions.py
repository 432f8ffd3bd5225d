"""Common exception classes for core package.

This module centralises the domain exceptions raised by the PromptHub caches.
Gateway-level failures (see :mod:`core.backend.base`) are translated into
these classes at the cache layer so callers never depend on transport errors.

All exceptions ultimately inherit from :class:`PromptHubError`, allowing
callers to catch a single base class for any client-side failure while still
distinguishing individual error categories when needed.

Updates:
  v0.3.0 - 2026-10-13 - Add operation-specific permission-denied messages.
  v0.2.0 - 2026-10-09 - Add authentication error hierarchy for session workflows.
  v0.1.0 - 2026-10-05 - Created module with prompt cache errors.
"""

from __future__ import annotations

BACKEND_DEPENDENCY = "Supabase client"


class PromptHubError(Exception):
    """Base exception for PromptHub failures."""


class BackendUnavailableError(PromptHubError):
    """Raised when the backend gateway is not configured for this process.

    This is a configuration state, never a transient failure; callers must not
    retry.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                f"System configuration error: {BACKEND_DEPENDENCY} not initialized, "
                "please check environment variable configuration"
            )
        )


class PermissionDeniedError(PromptHubError):
    """Raised when the backend rejects an operation for lack of permissions."""


# ---------------------------------------------------------------------------
# Prompt cache errors
# ---------------------------------------------------------------------------


class PromptCacheError(PromptHubError):
    """Base class for prompt cache operation failures."""


class PromptFetchError(PromptCacheError):
    """Raised when the prompt collection cannot be loaded."""


class PromptFetchPermissionError(PromptFetchError, PermissionDeniedError):
    """Raised when row-level security blocks reading prompts."""


class PromptCreateError(PromptCacheError):
    """Raised when inserting a prompt fails."""


class PromptDeleteError(PromptCacheError):
    """Raised when deleting a prompt fails."""


# ---------------------------------------------------------------------------
# Session errors
# ---------------------------------------------------------------------------


class AuthenticationError(PromptHubError):
    """Raised when a sign-in, sign-up or sign-out request fails."""


class AuthPermissionError(AuthenticationError, PermissionDeniedError):
    """Raised when the identity provider refuses an account action."""


__all__ = [
    "AuthPermissionError",
    "AuthenticationError",
    "BackendUnavailableError",
    "PermissionDeniedError",
    "PromptCacheError",
    "PromptCreateError",
    "PromptDeleteError",
    "PromptFetchError",
    "PromptFetchPermissionError",
    "PromptHubError",
]
