"""Tests for backend configuration validation and the process-wide gateway."""

from __future__ import annotations

import logging

import pytest
from pytest import LogCaptureFixture

from config import PromptHubSettings
from core.backend import (
    SupabaseGateway,
    create_backend_gateway,
    get_backend_gateway,
    reset_backend_gateway,
    validate_backend_config,
)


@pytest.mark.parametrize(
    ("url", "key", "fragment"),
    [
        (None, "key", "not set"),
        ("https://demo.supabase.co", None, "not set"),
        ("demo.supabase.co", "key", "should start with http:// or https://"),
        ("https://", "key", "Invalid Supabase URL format"),
    ],
)
def test_validate_backend_config_rejects(url: str | None, key: str | None, fragment: str) -> None:
    reason = validate_backend_config(url, key)

    assert reason is not None
    assert fragment in reason


def test_validate_backend_config_accepts_http_and_https() -> None:
    assert validate_backend_config("https://demo.supabase.co", "key") is None
    assert validate_backend_config("http://localhost:54321", "key") is None


def test_create_gateway_for_valid_settings() -> None:
    settings = PromptHubSettings(
        supabase_url="https://demo.supabase.co",
        supabase_anon_key="anon",
        client_info="tests",
    )

    gateway = create_backend_gateway(settings)

    assert isinstance(gateway, SupabaseGateway)
    assert gateway.url == "https://demo.supabase.co"


def test_invalid_settings_leave_gateway_unavailable(caplog: LogCaptureFixture) -> None:
    settings = PromptHubSettings(supabase_url="ftp://demo", supabase_anon_key="anon")

    with caplog.at_level(logging.WARNING, logger="prompthub.backend"):
        assert create_backend_gateway(settings) is None

    assert "Invalid Supabase URL format" in caplog.text


def test_accessor_caches_first_resolution() -> None:
    """The unavailable state sticks until reset, even if settings change."""
    missing = PromptHubSettings()
    valid = PromptHubSettings(supabase_url="https://demo.supabase.co", supabase_anon_key="anon")

    assert get_backend_gateway(missing) is None
    assert get_backend_gateway(valid) is None

    reset_backend_gateway()
    first = get_backend_gateway(valid)
    assert first is not None
    assert get_backend_gateway(valid) is first
