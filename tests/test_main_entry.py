"""Tests for the command-line entry point wiring."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeGateway
from pytest import CaptureFixture, MonkeyPatch

import main
from config import PromptHubSettings
from core.factory import build_prompt_hub
from core.notifications import NotificationCenter


@pytest.fixture()
def no_logging_conf(tmp_path: Path, monkeypatch: MonkeyPatch) -> list[str]:
    monkeypatch.chdir(tmp_path)
    return ["--logging-config", str(tmp_path / "absent.conf")]


def test_print_settings_masks_key(
    monkeypatch: MonkeyPatch,
    capsys: CaptureFixture[str],
    no_logging_conf: list[str],
) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key-1234567890")

    assert main.main([*no_logging_conf, "--print-settings"]) == 0

    output = capsys.readouterr().out
    assert "Supabase URL: https://demo.supabase.co" in output
    assert "anon-key-1234567890" not in output
    assert "set (anon...7890)" in output
    assert "Backend status: ready" in output


def test_settings_failure_exits_with_code_2(
    monkeypatch: MonkeyPatch,
    no_logging_conf: list[str],
) -> None:
    monkeypatch.setenv("PROMPTHUB_PROMPT_CACHE_TTL_SECONDS", "0")

    assert main.main([*no_logging_conf, "list"]) == 2


def test_missing_backend_exits_with_code_3(
    capsys: CaptureFixture[str],
    no_logging_conf: list[str],
) -> None:
    assert main.main([*no_logging_conf, "list"]) == 3
    assert "Supabase client not initialized" in capsys.readouterr().out


def test_default_command_lists_prompts(
    monkeypatch: MonkeyPatch,
    gateway: FakeGateway,
    capsys: CaptureFixture[str],
    no_logging_conf: list[str],
) -> None:
    def _build(settings: PromptHubSettings):  # type: ignore[no-untyped-def]
        return build_prompt_hub(settings, gateway=gateway, notifications=NotificationCenter())

    monkeypatch.setattr(main, "build_prompt_hub", _build)

    assert main.main(no_logging_conf) == 0
    assert "prompt-3" in capsys.readouterr().out
