"""Printable summaries for PromptHub configuration.

Updates:
  v0.1.1 - 2026-10-13 - Report backend validation problems and timeouts.
  v0.1.0 - 2026-10-09 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from config import PromptHubSettings
from core.backend import validate_backend_config

from .utils import mask_secret


def _format_timeout(value: float | None) -> str:
    return f"{value:g}" if value else "disabled"


def print_settings_summary(settings: PromptHubSettings) -> None:
    """Emit a readable summary of the backend configuration and cache settings."""
    problem = validate_backend_config(settings.supabase_url, settings.supabase_anon_key)
    lines = [
        "PromptHub configuration summary",
        "-------------------------------",
        f"Supabase URL: {settings.supabase_url or 'not set'}",
        f"Supabase anon key: {mask_secret(settings.supabase_anon_key)}",
        f"Backend status: {'ready' if problem is None else 'unavailable'}",
    ]
    if problem is not None:
        lines.append(f"  {problem}")
    lines.extend(
        [
            "",
            "Caching and sessions",
            "--------------------",
            f"Prompt cache TTL (seconds): {settings.prompt_cache_ttl_seconds:g}",
            f"Auth lookup timeout (seconds): {_format_timeout(settings.auth_timeout_seconds)}",
            f"Profile lookup timeout (seconds): "
            f"{_format_timeout(settings.profile_timeout_seconds)}",
            "",
            "Sign-in",
            "-------",
            f"OAuth provider: {settings.oauth_provider}",
            f"Site URL: {settings.site_url}",
            f"Client info header: {settings.client_info}",
        ]
    )
    print("\n".join(lines))
