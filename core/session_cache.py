"""Current-user cache with single-flight resolution and auth-state reactivity.

Resolution never raises: a missing session, provider failures and timeouts
all resolve to ``None``. Account actions (sign-in, sign-up, sign-out) raise
:class:`~core.exceptions.AuthenticationError` subclasses instead.

Updates:
  v0.3.1 - 2026-10-18 - Re-run resolution on live auth events instead of joining a stale lookup.
  v0.3.0 - 2026-10-14 - Ignore resolutions that started before a sign-out.
  v0.2.0 - 2026-10-11 - React to backend auth-state notifications.
  v0.1.0 - 2026-10-08 - Extract current-user resolution and account actions into a service object.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from config.settings import (
    DEFAULT_AUTH_TIMEOUT_SECONDS,
    DEFAULT_OAUTH_PROVIDER,
    DEFAULT_PROFILE_TIMEOUT_SECONDS,
    DEFAULT_SITE_URL,
)

from .backend.base import GatewayError, NotAuthenticatedError
from .cache import SingleFlight
from .exceptions import AuthenticationError, AuthPermissionError, BackendUnavailableError
from .notifications import CacheEventKind, NotificationCenter
from .profile_merge import merge_user_profile

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Awaitable

    from models.user_model import ProfileRow, ProviderIdentity, UserProfile

    from .backend import AuthSession, AuthSubscription, BackendGateway, OAuthRedirect

logger = logging.getLogger("prompthub.session")

T = TypeVar("T")

_RLS_HINT = "check your Supabase RLS policies and user permissions"

__all__ = ["SessionCache"]


class SessionCache:
    """Resolve and hold the signed-in user for the whole process."""

    def __init__(
        self,
        gateway: BackendGateway | None,
        *,
        auth_timeout_seconds: float | None = DEFAULT_AUTH_TIMEOUT_SECONDS,
        profile_timeout_seconds: float | None = DEFAULT_PROFILE_TIMEOUT_SECONDS,
        oauth_provider: str = DEFAULT_OAUTH_PROVIDER,
        site_url: str = DEFAULT_SITE_URL,
        notifications: NotificationCenter | None = None,
    ) -> None:
        self._gateway = gateway
        self._auth_timeout = auth_timeout_seconds or None
        self._profile_timeout = profile_timeout_seconds or None
        self._oauth_provider = oauth_provider
        self._site_url = site_url.rstrip("/")
        self._notifications = notifications or NotificationCenter()
        self._user: UserProfile | None = None
        self._flight: SingleFlight[UserProfile | None] = SingleFlight("user resolution")
        # Bumped whenever the session is dropped; resolutions from an older
        # generation must not repopulate the cache.
        self._generation = 0
        self._subscription: AuthSubscription | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def user(self) -> UserProfile | None:
        """Return the cached user, ``None`` when signed out or unresolved."""
        return self._user

    @property
    def loading(self) -> bool:
        """Return ``True`` while a resolution is running."""
        return self._gateway is not None and self._flight.in_progress

    @property
    def is_admin(self) -> bool:
        """Return ``True`` when the cached user carries the admin role."""
        return self._user is not None and self._user.is_admin

    @property
    def available(self) -> bool:
        """Return ``True`` when a backend gateway is configured."""
        return self._gateway is not None

    @property
    def subscribed(self) -> bool:
        """Return ``True`` while auth-state notifications are being received."""
        return self._subscription is not None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve_current_user(self) -> UserProfile | None:
        """Return the signed-in user, sharing any resolution already in flight."""
        if self._gateway is None:
            return None
        generation = self._generation
        return await self._flight.run(lambda: self._resolve(generation))

    async def _resolve(self, generation: int) -> UserProfile | None:
        user = await self._lookup_user()
        if generation != self._generation:
            logger.debug("Discarding user resolution started before the session was dropped")
            return self._user
        self._set_user(user)
        return user

    async def _lookup_user(self) -> UserProfile | None:
        assert self._gateway is not None
        try:
            identity = await self._bounded(
                self._gateway.get_current_identity(),
                self._auth_timeout,
            )
        except NotAuthenticatedError:
            return None
        except GatewayError as exc:
            self._log_provider_error("Error getting user from auth provider", exc)
            return None
        except TimeoutError:
            logger.warning("Authentication timeout", extra={"timeout": self._auth_timeout})
            return None
        except Exception:  # noqa: BLE001 - resolution never raises
            logger.warning("Unexpected error fetching user", exc_info=True)
            return None
        if identity is None:
            return None
        row = await self._lookup_profile_row(identity)
        return merge_user_profile(identity, row)

    async def _lookup_profile_row(self, identity: ProviderIdentity) -> ProfileRow | None:
        assert self._gateway is not None
        try:
            row = await self._bounded(
                self._gateway.get_profile_row(identity.id),
                self._profile_timeout,
            )
        except GatewayError as exc:
            if exc.is_permission_denied:
                logger.warning("Permission denied reading user profile row; %s", _RLS_HINT)
            logger.debug(
                "User profile row unavailable, using auth data only: %s",
                exc.message,
                extra={"user_id": identity.id},
            )
            return None
        except TimeoutError:
            logger.debug("User data fetch timeout", extra={"user_id": identity.id})
            return None
        except Exception:  # noqa: BLE001 - fall back to provider identity
            logger.debug("Error fetching user data, using auth data only", exc_info=True)
            return None
        if row is None:
            logger.debug("User data not found in users table", extra={"user_id": identity.id})
        return row

    @staticmethod
    async def _bounded(operation: Awaitable[T], timeout: float | None) -> T:
        return await asyncio.wait_for(operation, timeout=timeout)

    @staticmethod
    def _log_provider_error(message: str, exc: GatewayError) -> None:
        if exc.is_permission_denied:
            logger.warning("%s: %s (403 Forbidden, %s)", message, exc.message, _RLS_HINT)
        else:
            logger.warning("%s: %s", message, exc.message)

    def _set_user(self, user: UserProfile | None) -> None:
        if user == self._user:
            return
        self._user = user
        self._notifications.emit(
            CacheEventKind.USER_CHANGED,
            user_id=user.id if user else None,
        )

    def _drop_session(self) -> None:
        self._generation += 1
        self._set_user(None)

    async def _refresh(self) -> UserProfile | None:
        """Resolve again after any resolution that started before the call."""
        if self._flight.in_progress:
            with contextlib.suppress(Exception):
                await self._flight.join()
        return await self.resolve_current_user()

    # ------------------------------------------------------------------
    # Auth-state notifications
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to backend auth-state notifications (idempotent)."""
        if self._gateway is None or self._subscription is not None:
            return
        self._subscription = await self._gateway.on_auth_state_change(self.handle_auth_event)

    def handle_auth_event(self, event: str, session: AuthSession | None) -> None:
        """React to an auth-state notification from the backend."""
        identity = session.identity if session is not None else None
        logger.info(
            "Auth state changed",
            extra={"event": event, "user_id": getattr(identity, "id", None)},
        )
        if session is not None and session.is_live:
            self._schedule_refresh()
        else:
            self._drop_session()

    def _schedule_refresh(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; skipping user refresh")
            return
        task = loop.create_task(self._refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def close(self) -> None:
        """Unsubscribe from notifications and wait for scheduled refreshes."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Account actions
    # ------------------------------------------------------------------

    def _require_gateway(self) -> BackendGateway:
        if self._gateway is None:
            raise BackendUnavailableError()
        return self._gateway

    @staticmethod
    def _auth_error(exc: GatewayError, denied_message: str, prefix: str) -> AuthenticationError:
        if exc.is_permission_denied:
            return AuthPermissionError(denied_message)
        return AuthenticationError(f"{prefix}: {exc.message}")

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password, then refresh the cached user."""
        gateway = self._require_gateway()
        try:
            session = await gateway.sign_in_with_password(email, password)
        except GatewayError as exc:
            raise self._auth_error(
                exc,
                "Login failed: Insufficient permissions, please check your account status",
                "Login failed",
            ) from exc
        await self._refresh()
        return session

    async def sign_in_with_oauth(
        self,
        provider: str | None = None,
        redirect_to: str | None = None,
    ) -> OAuthRedirect:
        """Start an OAuth sign-in and return the provider redirect."""
        gateway = self._require_gateway()
        resolved_provider = provider or self._oauth_provider
        target = redirect_to or f"{self._site_url}/auth/callback"
        try:
            redirect = await gateway.sign_in_with_oauth(resolved_provider, target)
        except GatewayError as exc:
            raise self._auth_error(
                exc,
                f"{resolved_provider.capitalize()} login failed: Insufficient permissions, "
                "please check your account status",
                f"{resolved_provider.capitalize()} login failed",
            ) from exc
        await self._refresh()
        return redirect

    async def sign_up(self, email: str, password: str, username: str) -> AuthSession:
        """Register an account; refresh the cached user when a session was issued."""
        gateway = self._require_gateway()
        try:
            session = await gateway.sign_up(
                email,
                password,
                {"username": username},
                f"{self._site_url}/auth/confirm",
            )
        except GatewayError as exc:
            raise self._auth_error(
                exc,
                "Signup failed: Insufficient permissions, please check your account status",
                "Signup failed",
            ) from exc
        if session.identity is not None:
            await self._refresh()
        return session

    async def sign_out(self) -> None:
        """Sign out and clear the cached user."""
        gateway = self._require_gateway()
        try:
            await gateway.sign_out()
        except GatewayError as exc:
            raise self._auth_error(
                exc,
                "Sign out failed: Insufficient permissions",
                "Sign out failed",
            ) from exc
        self._drop_session()
