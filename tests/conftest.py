"""Pytest configuration for shared test fixtures and fakes.

Updates:
  v0.2.0 - 2026-10-14 - Add gated in-memory gateway for single-flight scenarios.
  v0.1.0 - 2026-10-08 - Reset process singletons and backend environment between tests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from pytest import MonkeyPatch

from core.backend import AuthSession, GatewayError, OAuthRedirect, reset_backend_gateway
from core.factory import reset_prompt_hub
from models.prompt_model import Prompt, PromptDraft
from models.user_model import ProfileRow, ProviderIdentity

_BACKEND_ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "NEXT_PUBLIC_SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    "PROMPTHUB_SUPABASE_URL",
    "PROMPTHUB_SUPABASE_ANON_KEY",
    "PROMPTHUB_CONFIG_JSON",
    "PROMPTHUB_ENV_FILE",
    "PROMPTHUB_PROMPT_CACHE_TTL_SECONDS",
    "PROMPTHUB_AUTH_TIMEOUT_SECONDS",
    "PROMPTHUB_PROFILE_TIMEOUT_SECONDS",
    "PROMPTHUB_OAUTH_PROVIDER",
    "PROMPTHUB_SITE_URL",
    "PROMPTHUB_CLIENT_INFO",
)

BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: MonkeyPatch) -> Iterator[None]:
    """Clear backend environment and process-wide singletons around each test."""
    for name in _BACKEND_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_backend_gateway()
    reset_prompt_hub()
    yield
    reset_backend_gateway()
    reset_prompt_hub()


def make_prompt(index: int, **overrides: Any) -> Prompt:
    """Return a prompt whose ``created_at`` grows with *index*."""
    values: dict[str, Any] = {
        "id": f"prompt-{index}",
        "title": f"Prompt {index}",
        "description": f"Description {index}",
        "prompt_text": f"Body {index}",
        "model": "gpt-4o",
        "tags": ["writing"],
        "author_id": "user-1",
        "created_at": BASE_TIME + timedelta(minutes=index),
    }
    values.update(overrides)
    return Prompt(**values)


def make_identity(
    identity_id: str = "user-1",
    email: str | None = "ada@example.com",
    metadata: Mapping[str, Any] | None = None,
) -> ProviderIdentity:
    return ProviderIdentity(
        id=identity_id,
        email=email,
        user_metadata=dict(metadata or {}),
        created_at=BASE_TIME,
    )


class ManualClock:
    """Deterministic replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _Subscription:
    def __init__(self, gateway: FakeGateway) -> None:
        self._gateway = gateway
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False
        self._gateway.auth_callbacks.clear()


@dataclass
class FakeGateway:
    """In-memory gateway recording calls; ``*_gate`` events hold calls open."""

    prompts: list[Prompt] = field(default_factory=list)
    identity: ProviderIdentity | None = None
    profile_rows: dict[str, ProfileRow] = field(default_factory=dict)
    query_error: GatewayError | None = None
    get_error: GatewayError | None = None
    insert_error: GatewayError | None = None
    delete_error: GatewayError | None = None
    identity_error: BaseException | None = None
    profile_error: BaseException | None = None
    sign_in_error: GatewayError | None = None
    sign_up_error: GatewayError | None = None
    sign_out_error: GatewayError | None = None
    sign_up_returns_session: bool = True
    identity_delay: float = 0.0
    profile_delay: float = 0.0
    query_gate: asyncio.Event | None = None
    identity_gate: asyncio.Event | None = None
    calls: dict[str, int] = field(default_factory=dict)
    inserted: list[PromptDraft] = field(default_factory=list)
    sign_up_attributes: list[dict[str, Any]] = field(default_factory=list)
    redirects: list[str | None] = field(default_factory=list)
    auth_callbacks: list[Any] = field(default_factory=list)
    subscriptions: list[_Subscription] = field(default_factory=list)
    _next_id: int = 1000

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def count(self, name: str) -> int:
        return self.calls.get(name, 0)

    # Auth ---------------------------------------------------------------

    async def get_current_identity(self) -> ProviderIdentity | None:
        self._count("get_current_identity")
        if self.identity_gate is not None:
            await self.identity_gate.wait()
        if self.identity_delay:
            await asyncio.sleep(self.identity_delay)
        if self.identity_error is not None:
            raise self.identity_error
        return self.identity

    async def get_profile_row(self, identity_id: str) -> ProfileRow | None:
        self._count("get_profile_row")
        if self.profile_delay:
            await asyncio.sleep(self.profile_delay)
        if self.profile_error is not None:
            raise self.profile_error
        return self.profile_rows.get(identity_id)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        self._count("sign_in_with_password")
        if self.sign_in_error is not None:
            raise self.sign_in_error
        self.identity = self.identity or make_identity(email=email)
        return AuthSession(identity=self.identity, access_token="token")

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        self._count("sign_in_with_oauth")
        self.redirects.append(redirect_to)
        if self.sign_in_error is not None:
            raise self.sign_in_error
        return OAuthRedirect(provider=provider, url=f"https://auth.example.com/{provider}")

    async def sign_up(
        self,
        email: str,
        password: str,
        attributes: Mapping[str, Any],
        redirect_to: str | None = None,
    ) -> AuthSession:
        self._count("sign_up")
        self.sign_up_attributes.append(dict(attributes))
        self.redirects.append(redirect_to)
        if self.sign_up_error is not None:
            raise self.sign_up_error
        if not self.sign_up_returns_session:
            return AuthSession(identity=None)
        self.identity = make_identity(email=email, metadata=attributes)
        return AuthSession(identity=self.identity, access_token="token")

    async def sign_out(self) -> None:
        self._count("sign_out")
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.identity = None

    async def on_auth_state_change(self, callback: Any) -> _Subscription:
        self._count("on_auth_state_change")
        self.auth_callbacks.append(callback)
        subscription = _Subscription(self)
        self.subscriptions.append(subscription)
        return subscription

    def emit_auth_event(self, event: str, session: AuthSession | None) -> None:
        for callback in list(self.auth_callbacks):
            callback(event, session)

    # Prompts ------------------------------------------------------------

    async def query_prompts(self) -> list[Prompt]:
        self._count("query_prompts")
        if self.query_gate is not None:
            await self.query_gate.wait()
        if self.query_error is not None:
            raise self.query_error
        return sorted(self.prompts, key=lambda prompt: prompt.created_at, reverse=True)

    async def get_prompt_by_id(self, prompt_id: str) -> Prompt | None:
        self._count("get_prompt_by_id")
        if self.get_error is not None:
            raise self.get_error
        return next((prompt for prompt in self.prompts if prompt.id == prompt_id), None)

    async def insert_prompt(self, draft: PromptDraft) -> Prompt:
        self._count("insert_prompt")
        if self.insert_error is not None:
            raise self.insert_error
        self.inserted.append(draft)
        self._next_id += 1
        created = Prompt(
            id=f"prompt-{self._next_id}",
            title=draft.title,
            description=draft.description,
            prompt_text=draft.prompt_text,
            model=draft.model,
            tags=list(draft.tags),
            author_id=draft.author_id,
            created_at=BASE_TIME + timedelta(days=1),
        )
        self.prompts.append(created)
        return created

    async def delete_prompt(self, prompt_id: str) -> None:
        self._count("delete_prompt")
        if self.delete_error is not None:
            raise self.delete_error
        self.prompts = [prompt for prompt in self.prompts if prompt.id != prompt_id]

    async def aclose(self) -> None:
        self._count("aclose")


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway(prompts=[make_prompt(index) for index in range(1, 4)])


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()
