"""Settings management utilities for PromptHub configuration.

Missing backend credentials are not a settings error: they leave the backend
gateway unavailable for the process, which the caches report per operation.

Updates:
  v0.3.0 - 2026-10-13 - Add auth/profile lookup timeouts and OAuth redirect settings.
  v0.2.0 - 2026-10-09 - Accept NEXT_PUBLIC_* and bare SUPABASE_* environment aliases.
  v0.1.1 - 2026-10-07 - Ignore secrets supplied through the JSON configuration file.
  v0.1.0 - 2026-10-05 - Initial settings model with JSON/env/.env sources.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"

ENV_PREFIX = "PROMPTHUB_"
DEFAULT_PROMPT_CACHE_TTL_SECONDS = 60.0
DEFAULT_AUTH_TIMEOUT_SECONDS = 10.0
DEFAULT_PROFILE_TIMEOUT_SECONDS = 5.0
DEFAULT_OAUTH_PROVIDER = "google"
DEFAULT_SITE_URL = "http://localhost:3000"
DEFAULT_CLIENT_INFO = "my-prompthub"

# Field name -> accepted environment keys. Prefixed variants are checked first.
_ENV_ALIASES: dict[str, list[str]] = {
    "supabase_url": [
        "SUPABASE_URL",
        "supabase_url",
        "NEXT_PUBLIC_SUPABASE_URL",
    ],
    "supabase_anon_key": [
        "SUPABASE_ANON_KEY",
        "supabase_anon_key",
        "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    ],
    "prompt_cache_ttl_seconds": ["PROMPT_CACHE_TTL_SECONDS", "prompt_cache_ttl_seconds"],
    "auth_timeout_seconds": ["AUTH_TIMEOUT_SECONDS", "auth_timeout_seconds"],
    "profile_timeout_seconds": ["PROFILE_TIMEOUT_SECONDS", "profile_timeout_seconds"],
    "oauth_provider": ["OAUTH_PROVIDER", "oauth_provider"],
    "site_url": ["SITE_URL", "site_url"],
    "client_info": ["CLIENT_INFO", "client_info"],
}

_UNPREFIXED_ALIASES = frozenset(
    {
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "NEXT_PUBLIC_SUPABASE_URL",
        "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    }
)

_JSON_CONFIG_KEYS = (
    "supabase_url",
    "prompt_cache_ttl_seconds",
    "auth_timeout_seconds",
    "profile_timeout_seconds",
    "oauth_provider",
    "site_url",
    "client_info",
)

_JSON_SECRET_KEYS = frozenset(
    {
        "supabase_anon_key",
        "SUPABASE_ANON_KEY",
        "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    }
)


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPTHUB_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when PromptHub configuration cannot be loaded or validated."""


class PromptHubSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    supabase_url: str | None = Field(
        default=None,
        description="Hosted backend endpoint (http:// or https://).",
    )
    supabase_anon_key: str | None = Field(
        default=None,
        description="Public (anon) API key for the hosted backend.",
        repr=False,
    )
    prompt_cache_ttl_seconds: float = Field(
        default=DEFAULT_PROMPT_CACHE_TTL_SECONDS,
        description="Freshness window for the cached prompt list.",
    )
    auth_timeout_seconds: float | None = Field(
        default=DEFAULT_AUTH_TIMEOUT_SECONDS,
        description="Upper bound for the identity provider lookup (0 disables).",
    )
    profile_timeout_seconds: float | None = Field(
        default=DEFAULT_PROFILE_TIMEOUT_SECONDS,
        description="Upper bound for the profile row lookup (0 disables).",
    )
    oauth_provider: str = Field(
        default=DEFAULT_OAUTH_PROVIDER,
        description="Default OAuth provider slug used for social sign-in.",
    )
    site_url: str = Field(
        default=DEFAULT_SITE_URL,
        description="Public origin used to build auth callback and confirmation redirects.",
    )
    client_info: str = Field(
        default=DEFAULT_CLIENT_INFO,
        description="Value sent in the X-Client-Info header.",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": ENV_PREFIX,
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @property
    def backend_configured(self) -> bool:
        """Return ``True`` when both backend credentials are present."""
        return bool(self.supabase_url and self.supabase_anon_key)

    @field_validator("supabase_url", "supabase_anon_key", mode="before")
    def _strip_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("prompt_cache_ttl_seconds")
    def _validate_cache_ttl(cls, value: float) -> float:
        """Ensure the freshness window is positive."""
        if value <= 0:
            raise ValueError("prompt_cache_ttl_seconds must be greater than zero")
        return value

    @field_validator("auth_timeout_seconds", "profile_timeout_seconds", mode="before")
    def _normalise_timeout(cls, value: Any) -> float | None:
        """Treat blanks and zero as "no timeout"; reject negative values."""
        if value in (None, ""):
            return None
        timeout = float(value)
        if timeout < 0:
            raise ValueError("timeouts must not be negative")
        return timeout or None

    @field_validator("oauth_provider", mode="before")
    def _normalise_provider(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_OAUTH_PROVIDER
        text = str(value).strip().lower()
        return text or DEFAULT_OAUTH_PROVIDER

    @field_validator("site_url", mode="before")
    def _normalise_site_url(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_SITE_URL
        text = str(value).strip().rstrip("/")
        return text or DEFAULT_SITE_URL

    @field_validator("client_info", mode="before")
    def _normalise_client_info(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_CLIENT_INFO
        text = str(value).strip()
        return text or DEFAULT_CLIENT_INFO

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(supabase_url="...")).
            2. JSON configuration file (application settings).
            3. Environment variables / aliases, then ``.env`` values.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            dotenv_data = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_data.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    candidates = [f"{ENV_PREFIX}{key}", f"{ENV_PREFIX}{key.upper()}"]
                    if key in _UNPREFIXED_ALIASES:
                        candidates.append(key)
                    found = next(
                        (val for val in map(_lookup, candidates) if val is not None),
                        None,
                    )
                    if found is not None:
                        data[field] = found
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPTHUB_CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append((Path("config") / "config.json").expanduser())

            for path in candidates:
                if not path.exists():
                    if explicit_path and path == candidates[0]:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    message = f"Configuration file {path} must contain a JSON object"
                    raise SettingsError(message)
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
                removed_secrets = [
                    key
                    for key in _JSON_SECRET_KEYS
                    if key in data_dict and data_dict.pop(key, None) is not None
                ]
                if removed_secrets:
                    logger.warning(
                        "Ignoring secret key(s) %s in configuration file %s; "
                        "set credentials via environment variables instead.",
                        ", ".join(sorted(removed_secrets)),
                        path,
                    )
                mapped = {key: data_dict[key] for key in _JSON_CONFIG_KEYS if key in data_dict}
                if "supabase_url" not in mapped and "SUPABASE_URL" in data_dict:
                    mapped["supabase_url"] = data_dict["SUPABASE_URL"]
                return mapped
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptHubSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptHubSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid PromptHub configuration") from exc


logger = logging.getLogger("prompthub.settings")
