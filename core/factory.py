"""Factories for constructing the PromptHub service container from validated settings.

Updates:
  v0.2.1 - 2026-10-18 - Close the gateway client when the container closes.
  v0.2.0 - 2026-10-14 - Manage the auth-state subscription through start()/close().
  v0.1.1 - 2026-10-12 - Share one notification center between both caches.
  v0.1.0 - 2026-10-08 - Initial container with process-wide accessor.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .backend import get_backend_gateway
from .notifications import NotificationCenter, notification_center as default_notification_center
from .prompt_cache import PromptCache
from .session_cache import SessionCache

if TYPE_CHECKING:  # pragma: no cover - typing only
    from config import PromptHubSettings

    from .backend import BackendGateway

factory_logger = logging.getLogger("prompthub.factory")

__all__ = ["PromptHub", "build_prompt_hub", "get_prompt_hub", "reset_prompt_hub"]


@dataclass(slots=True)
class PromptHub:
    """Own the backend gateway and the caches built on top of it."""

    settings: PromptHubSettings
    gateway: BackendGateway | None
    prompts: PromptCache
    session: SessionCache
    notifications: NotificationCenter

    @property
    def available(self) -> bool:
        """Return ``True`` when the backend gateway is configured."""
        return self.gateway is not None

    async def start(self) -> None:
        """Begin receiving auth-state notifications."""
        await self.session.start()

    async def close(self) -> None:
        """Stop auth-state notifications, cancel pending refreshes, and close the gateway."""
        await self.session.close()
        if self.gateway is not None:
            await self.gateway.aclose()


def build_prompt_hub(
    settings: PromptHubSettings,
    *,
    gateway: BackendGateway | None = None,
    notifications: NotificationCenter | None = None,
) -> PromptHub:
    """Return a :class:`PromptHub` wired from *settings*.

    When *gateway* is omitted the process-wide gateway is resolved from the
    settings; ``None`` leaves both caches in their unavailable state.
    """
    resolved_gateway = gateway if gateway is not None else get_backend_gateway(settings)
    center = notifications or default_notification_center
    if resolved_gateway is None:
        factory_logger.warning(
            "Backend gateway unavailable; prompt and account operations are disabled"
        )
    prompt_cache = PromptCache(
        resolved_gateway,
        ttl_seconds=settings.prompt_cache_ttl_seconds,
        notifications=center,
    )
    session_cache = SessionCache(
        resolved_gateway,
        auth_timeout_seconds=settings.auth_timeout_seconds,
        profile_timeout_seconds=settings.profile_timeout_seconds,
        oauth_provider=settings.oauth_provider,
        site_url=settings.site_url,
        notifications=center,
    )
    return PromptHub(
        settings=settings,
        gateway=resolved_gateway,
        prompts=prompt_cache,
        session=session_cache,
        notifications=center,
    )


_hub_lock = threading.Lock()
_hub: PromptHub | None = None


def get_prompt_hub(settings: PromptHubSettings | None = None) -> PromptHub:
    """Return the process container, building it on first use.

    Settings are loaded from the environment when none are supplied on the
    first call; later calls ignore *settings*.
    """
    global _hub
    with _hub_lock:
        if _hub is None:
            if settings is None:
                from config import load_settings

                settings = load_settings()
            _hub = build_prompt_hub(settings)
        return _hub


def reset_prompt_hub() -> None:
    """Forget the process container (used by tests and CLI re-entry)."""
    global _hub
    with _hub_lock:
        _hub = None
