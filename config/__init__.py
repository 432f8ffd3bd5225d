"""Configuration helpers for PromptHub.

Updates: v0.2.0 - 2026-10-13 - Expose timeout and OAuth defaults.
Updates: v0.1.0 - 2026-10-05 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_AUTH_TIMEOUT_SECONDS,
    DEFAULT_CLIENT_INFO,
    DEFAULT_OAUTH_PROVIDER,
    DEFAULT_PROFILE_TIMEOUT_SECONDS,
    DEFAULT_PROMPT_CACHE_TTL_SECONDS,
    DEFAULT_SITE_URL,
    PromptHubSettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "DEFAULT_AUTH_TIMEOUT_SECONDS",
    "DEFAULT_CLIENT_INFO",
    "DEFAULT_OAUTH_PROVIDER",
    "DEFAULT_PROFILE_TIMEOUT_SECONDS",
    "DEFAULT_PROMPT_CACHE_TTL_SECONDS",
    "DEFAULT_SITE_URL",
    "PromptHubSettings",
    "SettingsError",
    "load_settings",
]
