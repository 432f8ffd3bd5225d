"""Supabase implementation of the backend gateway.

The async Supabase client is created lazily on first use so the gateway can be
constructed synchronously by the process-wide accessor.

Updates:
  v0.3.0 - 2026-10-18 - Report malformed prompt rows as gateway errors; add aclose().
  v0.2.1 - 2026-10-14 - Treat empty ``maybe_single`` responses as not-found.
  v0.2.0 - 2026-10-11 - Wrap auth-state callbacks so sessions reach the caches as AuthSession.
  v0.1.0 - 2026-10-06 - Initial Supabase gateway with prompt table and auth operations.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx
from supabase import (
    AsyncClient,
    AuthError,
    AuthSessionMissingError,
    PostgrestAPIError,
    acreate_client,
)
from supabase.lib.client_options import AsyncClientOptions

from config.settings import DEFAULT_CLIENT_INFO
from models.prompt_model import Prompt
from models.user_model import ProfileRow, ProviderIdentity

from .base import (
    AuthSession,
    AuthSubscription,
    GatewayError,
    GatewayPermissionError,
    MalformedRowError,
    NotAuthenticatedError,
    OAuthRedirect,
    is_permission_denied,
    looks_unauthenticated,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Awaitable, Callable, Mapping

    from models.prompt_model import PromptDraft

logger = logging.getLogger("prompthub.backend")

PROMPTS_TABLE = "prompts"
USERS_TABLE = "users"
# PostgREST codes for "no rows" on single-row selects.
_NO_ROWS_CODES = frozenset({"PGRST116", "204"})

_TRANSPORT_ERRORS: tuple[type[Exception], ...] = (AuthError, PostgrestAPIError, httpx.HTTPError)


def translate_error(exc: Exception) -> GatewayError:
    """Map Supabase/httpx exceptions onto the gateway error hierarchy."""
    message = str(getattr(exc, "message", None) or exc) or exc.__class__.__name__
    status = getattr(exc, "status", None)
    code = getattr(exc, "code", None)
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
    code_text = str(code) if code is not None else None
    if isinstance(exc, AuthSessionMissingError) or (
        isinstance(exc, AuthError) and looks_unauthenticated(message)
    ):
        return NotAuthenticatedError(message, status=status, code=code_text)
    if is_permission_denied(status, code_text):
        return GatewayPermissionError(message, status=status, code=code_text)
    return GatewayError(message, status=status, code=code_text)


def identity_from_user(user: Any) -> ProviderIdentity:
    """Convert a Supabase ``User`` model into a :class:`ProviderIdentity`."""
    metadata = getattr(user, "user_metadata", None) or {}
    return ProviderIdentity.from_record(
        {
            "id": user.id,
            "email": getattr(user, "email", None),
            "user_metadata": dict(metadata),
            "created_at": getattr(user, "created_at", None),
        }
    )


def prompt_from_row(row: Mapping[str, Any]) -> Prompt:
    """Convert a prompts-table row, raising :class:`MalformedRowError` when it is unusable."""
    try:
        return Prompt.from_record(row)
    except (TypeError, ValueError) as exc:
        raise MalformedRowError(f"Malformed prompt row: {exc}") from exc


def session_from_supabase(session: Any, user: Any | None = None) -> AuthSession | None:
    """Build an :class:`AuthSession` from a Supabase session/user pair."""
    if session is None and user is None:
        return None
    session_user = user if user is not None else getattr(session, "user", None)
    return AuthSession(
        identity=identity_from_user(session_user) if session_user is not None else None,
        access_token=getattr(session, "access_token", None),
    )


class SupabaseGateway:
    """Backend gateway backed by the Supabase async client."""

    def __init__(
        self,
        url: str,
        key: str,
        *,
        client_info: str = DEFAULT_CLIENT_INFO,
        client_factory: Callable[[], Awaitable[AsyncClient]] | None = None,
    ) -> None:
        """Store connection details; the client itself is created on first use."""
        self._url = url
        self._key = key
        self._client_info = client_info
        self._client_factory = client_factory or self._create_client
        self._client: AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def url(self) -> str:
        """Return the configured backend endpoint."""
        return self._url

    async def _create_client(self) -> AsyncClient:
        options = AsyncClientOptions(
            persist_session=True,
            auto_refresh_token=True,
            flow_type="pkce",
            headers={"X-Client-Info": self._client_info},
        )
        return await acreate_client(self._url, self._key, options=options)

    async def client(self) -> AsyncClient:
        """Return the shared async client, creating it once."""
        if self._client is not None:
            return self._client
        async with self._client_lock:
            if self._client is None:
                self._client = await self._client_factory()
                logger.debug("Supabase client created", extra={"url": self._url})
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP sessions held by the client; the next call recreates it."""
        async with self._client_lock:
            client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.postgrest.aclose()
            await client.auth.close()
        except httpx.HTTPError as exc:
            logger.warning("Error closing Supabase client: %s", exc)
        else:
            logger.debug("Supabase client closed", extra={"url": self._url})

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def get_current_identity(self) -> ProviderIdentity | None:
        client = await self.client()
        try:
            response = await client.auth.get_user()
        except _TRANSPORT_ERRORS as exc:
            raise translate_error(exc) from exc
        user = getattr(response, "user", None) if response is not None else None
        if user is None:
            return None
        return identity_from_user(user)

    async def get_profile_row(self, identity_id: str) -> ProfileRow | None:
        client = await self.client()
        try:
            response = await (
                client.table(USERS_TABLE).select("*").eq("id", identity_id).maybe_single().execute()
            )
        except PostgrestAPIError as exc:
            if str(getattr(exc, "code", "")) in _NO_ROWS_CODES:
                return None
            raise translate_error(exc) from exc
        except httpx.HTTPError as exc:
            raise translate_error(exc) from exc
        if response is None or not response.data:
            return None
        return ProfileRow.from_record(response.data)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        client = await self.client()
        try:
            response = await client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except _TRANSPORT_ERRORS as exc:
            raise translate_error(exc) from exc
        return session_from_supabase(response.session, response.user) or AuthSession(None)

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        client = await self.client()
        try:
            response = await client.auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_to}}
            )
        except _TRANSPORT_ERRORS as exc:
            raise translate_error(exc) from exc
        return OAuthRedirect(provider=provider, url=getattr(response, "url", None))

    async def sign_up(
        self,
        email: str,
        password: str,
        attributes: Mapping[str, Any],
        redirect_to: str | None = None,
    ) -> AuthSession:
        client = await self.client()
        options: dict[str, Any] = {"data": dict(attributes)}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        try:
            response = await client.auth.sign_up(
                {"email": email, "password": password, "options": options}
            )
        except _TRANSPORT_ERRORS as exc:
            raise translate_error(exc) from exc
        return session_from_supabase(response.session, response.user) or AuthSession(None)

    async def sign_out(self) -> None:
        client = await self.client()
        try:
            await client.auth.sign_out()
        except _TRANSPORT_ERRORS as exc:
            raise translate_error(exc) from exc

    async def on_auth_state_change(
        self,
        callback: Callable[[str, AuthSession | None], None],
    ) -> AuthSubscription:
        client = await self.client()

        def _forward(event: Any, session: Any) -> None:
            callback(str(getattr(event, "value", event)), session_from_supabase(session))

        return client.auth.on_auth_state_change(_forward)

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    async def query_prompts(self) -> list[Prompt]:
        client = await self.client()
        try:
            response = await (
                client.table(PROMPTS_TABLE).select("*").order("created_at", desc=True).execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise translate_error(exc) from exc
        return [prompt_from_row(row) for row in response.data or []]

    async def get_prompt_by_id(self, prompt_id: str) -> Prompt | None:
        client = await self.client()
        try:
            response = await (
                client.table(PROMPTS_TABLE).select("*").eq("id", prompt_id).maybe_single().execute()
            )
        except PostgrestAPIError as exc:
            if str(getattr(exc, "code", "")) in _NO_ROWS_CODES:
                return None
            raise translate_error(exc) from exc
        except httpx.HTTPError as exc:
            raise translate_error(exc) from exc
        if response is None or not response.data:
            return None
        return prompt_from_row(response.data)

    async def insert_prompt(self, draft: PromptDraft) -> Prompt:
        client = await self.client()
        try:
            response = await (
                client.table(PROMPTS_TABLE).insert(draft.to_insert_payload()).execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise translate_error(exc) from exc
        rows = response.data or []
        if not rows:
            raise GatewayError("Insert returned no row")
        return prompt_from_row(rows[0])

    async def delete_prompt(self, prompt_id: str) -> None:
        client = await self.client()
        try:
            await client.table(PROMPTS_TABLE).delete().eq("id", prompt_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise translate_error(exc) from exc


__all__ = [
    "PROMPTS_TABLE",
    "USERS_TABLE",
    "SupabaseGateway",
    "identity_from_user",
    "prompt_from_row",
    "session_from_supabase",
    "translate_error",
]
