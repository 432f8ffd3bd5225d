"""Backend gateway protocol, payloads, and error hierarchy.

Updates:
  v0.3.0 - 2026-10-18 - Add MalformedRowError and gateway aclose().
  v0.2.0 - 2026-10-11 - Make auth-state subscription awaitable for lazily created clients.
  v0.1.0 - 2026-10-06 - Extract gateway contract consumed by the prompt and session caches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from models.prompt_model import Prompt, PromptDraft
    from models.user_model import ProfileRow, ProviderIdentity

PERMISSION_DENIED_STATUS = 403
# Postgres insufficient_privilege, reported when row-level security rejects a statement.
PERMISSION_DENIED_CODES = frozenset({"42501", "403"})

_NOT_AUTHENTICATED_MARKERS = ("not authenticated", "missing", "unable to get")


class GatewayError(Exception):
    """Base exception for backend gateway failures."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @property
    def is_permission_denied(self) -> bool:
        """Return ``True`` when the backend reported an authorization failure."""
        return is_permission_denied(self.status, self.code)


class GatewayPermissionError(GatewayError):
    """Raised when row-level security or the auth server denies an operation."""


class NotAuthenticatedError(GatewayError):
    """Raised when the identity provider has no live session."""


class MalformedRowError(GatewayError):
    """Raised when the backend returns a row that cannot be converted into a model."""


def is_permission_denied(status: Any, code: Any) -> bool:
    """Return ``True`` for HTTP 403 or the Postgres insufficient-privilege code."""
    try:
        if status is not None and int(status) == PERMISSION_DENIED_STATUS:
            return True
    except (TypeError, ValueError):
        pass
    return code is not None and str(code) in PERMISSION_DENIED_CODES


def looks_unauthenticated(message: str) -> bool:
    """Return ``True`` when a provider message describes a missing session."""
    lowered = message.lower()
    return any(marker in lowered for marker in _NOT_AUTHENTICATED_MARKERS)


@dataclass(slots=True, frozen=True)
class AuthSession:
    """Minimal view of a provider session delivered by sign-in or auth events."""

    identity: ProviderIdentity | None
    access_token: str | None = None

    @property
    def is_live(self) -> bool:
        """Return ``True`` when the session carries a signed-in identity."""
        return self.identity is not None


@dataclass(slots=True, frozen=True)
class OAuthRedirect:
    """Provider redirect issued by an OAuth sign-in request."""

    provider: str
    url: str | None


class AuthSubscription(Protocol):
    """Disposable handle returned by auth-state subscriptions."""

    def unsubscribe(self) -> None:
        """Stop delivering auth-state notifications."""
        ...


class BackendGateway(Protocol):
    """Operations the caches consume from the hosted backend."""

    async def get_current_identity(self) -> ProviderIdentity | None:
        """Return the signed-in provider identity.

        Raises :class:`NotAuthenticatedError` when no session exists.
        """
        ...

    async def get_profile_row(self, identity_id: str) -> ProfileRow | None:
        """Return the application profile row for *identity_id* when present."""
        ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password."""
        ...

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        """Start an OAuth flow and return the provider redirect."""
        ...

    async def sign_up(
        self,
        email: str,
        password: str,
        attributes: Mapping[str, Any],
        redirect_to: str | None = None,
    ) -> AuthSession:
        """Register a new account."""
        ...

    async def sign_out(self) -> None:
        """Terminate the current session."""
        ...

    async def on_auth_state_change(
        self,
        callback: Callable[[str, AuthSession | None], None],
    ) -> AuthSubscription:
        """Register *callback* for backend auth-state notifications."""
        ...

    async def query_prompts(self) -> list[Prompt]:
        """Return every prompt ordered by ``created_at`` descending."""
        ...

    async def get_prompt_by_id(self, prompt_id: str) -> Prompt | None:
        """Return a single prompt or ``None`` when it does not exist."""
        ...

    async def insert_prompt(self, draft: PromptDraft) -> Prompt:
        """Insert *draft* and return the backend-assigned record."""
        ...

    async def delete_prompt(self, prompt_id: str) -> None:
        """Delete the prompt identified by *prompt_id*."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the gateway."""
        ...


__all__ = [
    "AuthSession",
    "AuthSubscription",
    "BackendGateway",
    "GatewayError",
    "GatewayPermissionError",
    "MalformedRowError",
    "NotAuthenticatedError",
    "OAuthRedirect",
    "is_permission_denied",
    "looks_unauthenticated",
]
