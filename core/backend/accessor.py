"""Process-wide backend gateway accessor.

The gateway is resolved once per process. Missing or malformed backend
configuration resolves to ``None`` and stays that way until
:func:`reset_backend_gateway` is called (tests only).

Updates:
  v0.1.1 - 2026-10-13 - Remember the unavailable state instead of re-validating per call.
  v0.1.0 - 2026-10-06 - Initial lazily constructed gateway singleton.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from config.settings import DEFAULT_CLIENT_INFO

from .supabase_gateway import SupabaseGateway

if TYPE_CHECKING:  # pragma: no cover - typing only
    from config import PromptHubSettings

    from .base import BackendGateway

logger = logging.getLogger("prompthub.backend")

_ALLOWED_SCHEMES = ("http", "https")

_lock = threading.Lock()
_resolved = False
_gateway: BackendGateway | None = None


def validate_backend_config(url: str | None, key: str | None) -> str | None:
    """Return a reason string when *url*/*key* cannot back a gateway, else ``None``."""
    if not url or not key:
        return "Supabase URL or anon key not set. Please check your environment variables."
    if not url.startswith(("http://", "https://")):
        return "Invalid Supabase URL format. It should start with http:// or https://"
    try:
        parts = urlsplit(url)
    except ValueError:
        return f"Invalid Supabase URL format: {url}"
    if parts.scheme not in _ALLOWED_SCHEMES or not parts.hostname:
        return f"Invalid Supabase URL format: {url}"
    return None


def create_backend_gateway(settings: PromptHubSettings) -> BackendGateway | None:
    """Build a gateway from *settings* without touching the process singleton."""
    url = settings.supabase_url
    key = settings.supabase_anon_key
    reason = validate_backend_config(url, key)
    if reason is not None:
        logger.warning(reason)
        return None
    assert url is not None and key is not None
    return SupabaseGateway(
        url,
        key,
        client_info=settings.client_info or DEFAULT_CLIENT_INFO,
    )


def get_backend_gateway(settings: PromptHubSettings) -> BackendGateway | None:
    """Return the process gateway, resolving it from *settings* on first call."""
    global _resolved, _gateway
    with _lock:
        if not _resolved:
            _gateway = create_backend_gateway(settings)
            _resolved = True
        return _gateway


def reset_backend_gateway() -> None:
    """Forget the resolved gateway so the next call re-reads configuration."""
    global _resolved, _gateway
    with _lock:
        _resolved = False
        _gateway = None


__all__ = [
    "create_backend_gateway",
    "get_backend_gateway",
    "reset_backend_gateway",
    "validate_backend_config",
]
