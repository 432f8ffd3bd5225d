"""Tests for the process-wide prompt cache.

Updates:
  v0.2.1 - 2026-10-18 - Cover cancelled callers and malformed backend rows.
  v0.2.0 - 2026-10-13 - Cover permission-denied fetches and waiter release on failure.
  v0.1.0 - 2026-10-08 - Cover freshness window, request coalescing and writes.
"""

from __future__ import annotations

import asyncio

import pytest
from conftest import FakeGateway, ManualClock, make_prompt

from core.backend import GatewayError, GatewayPermissionError, MalformedRowError
from core.exceptions import (
    BackendUnavailableError,
    PermissionDeniedError,
    PromptCreateError,
    PromptDeleteError,
    PromptFetchError,
    PromptFetchPermissionError,
)
from core.notifications import CacheEventKind, NotificationCenter
from core.prompt_cache import PromptCache
from models.prompt_model import PromptDraft


def _draft(title: str = "New prompt") -> PromptDraft:
    return PromptDraft.from_form(
        title=title,
        description="desc",
        prompt_text="Write a haiku",
        model="gpt-4o",
        author_id="user-1",
        tags="poetry, short",
    )


@pytest.mark.asyncio()
async def test_fetch_all_returns_newest_first(gateway: FakeGateway, clock: ManualClock) -> None:
    """The collection keeps the backend's created_at-descending order."""
    cache = PromptCache(gateway, clock=clock)

    prompts = await cache.fetch_all()

    assert [prompt.id for prompt in prompts] == ["prompt-3", "prompt-2", "prompt-1"]
    assert cache.last_fetched_at == clock.now
    assert cache.error is None
    assert not cache.loading


@pytest.mark.asyncio()
async def test_fresh_cache_skips_backend(gateway: FakeGateway, clock: ManualClock) -> None:
    """Reads inside the freshness window are served from memory."""
    cache = PromptCache(gateway, clock=clock, ttl_seconds=60)
    await cache.fetch_all()
    clock.advance(59)

    await cache.fetch_all()

    assert gateway.count("query_prompts") == 1


@pytest.mark.asyncio()
async def test_stale_cache_refetches(gateway: FakeGateway, clock: ManualClock) -> None:
    """Reads at or past the freshness window go back to the backend."""
    cache = PromptCache(gateway, clock=clock, ttl_seconds=60)
    await cache.fetch_all()
    gateway.prompts.append(make_prompt(9))
    clock.advance(60)

    prompts = await cache.fetch_all()

    assert gateway.count("query_prompts") == 2
    assert prompts[0].id == "prompt-9"


@pytest.mark.asyncio()
async def test_returned_list_is_a_copy(gateway: FakeGateway, clock: ManualClock) -> None:
    """Mutating a returned list leaves the cached snapshot untouched."""
    cache = PromptCache(gateway, clock=clock)
    prompts = await cache.fetch_all()
    prompts.clear()

    assert len(cache.prompts) == 3


@pytest.mark.asyncio()
async def test_concurrent_callers_share_one_backend_read(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """Overlapping callers join the in-flight read instead of issuing their own."""
    gateway.query_gate = asyncio.Event()
    cache = PromptCache(gateway, clock=clock)

    tasks = [asyncio.create_task(cache.fetch_all()) for _ in range(5)]
    await asyncio.sleep(0)
    assert cache.loading
    gateway.query_gate.set()
    results = await asyncio.gather(*tasks)

    assert gateway.count("query_prompts") == 1
    assert all(result == results[0] for result in results)
    assert not cache.loading


@pytest.mark.asyncio()
async def test_failed_fetch_releases_waiters_with_same_error(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """Joined callers receive the in-flight failure and the flag is cleared."""
    gateway.query_gate = asyncio.Event()
    gateway.query_error = GatewayError("connection reset")
    cache = PromptCache(gateway, clock=clock)

    tasks = [asyncio.create_task(cache.fetch_all()) for _ in range(3)]
    await asyncio.sleep(0)
    gateway.query_gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert gateway.count("query_prompts") == 1
    assert all(isinstance(result, PromptFetchError) for result in results)
    assert str(results[0]) == "Failed to fetch prompts: connection reset"
    assert cache.error == "Failed to fetch prompts: connection reset"
    assert not cache.loading
    assert cache.last_fetched_at is None


@pytest.mark.asyncio()
async def test_failed_fetch_keeps_last_known_good(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """A failed refresh leaves the previous collection and timestamp in place."""
    cache = PromptCache(gateway, clock=clock)
    await cache.fetch_all()
    fetched_at = cache.last_fetched_at
    clock.advance(120)
    gateway.query_error = GatewayError("timeout")

    with pytest.raises(PromptFetchError):
        await cache.fetch_all()

    assert len(cache.prompts) == 3
    assert cache.last_fetched_at == fetched_at

    gateway.query_error = None
    await cache.fetch_all()
    assert cache.error is None


@pytest.mark.asyncio()
async def test_permission_denied_fetch_uses_dedicated_error(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """Row-level security denials surface as a permission error."""
    gateway.query_error = GatewayPermissionError("denied", status=403, code="42501")
    cache = PromptCache(gateway, clock=clock)

    with pytest.raises(PromptFetchPermissionError) as excinfo:
        await cache.fetch_all()

    assert isinstance(excinfo.value, PermissionDeniedError)
    assert "insufficient permissions" in str(excinfo.value)


@pytest.mark.asyncio()
async def test_freshness_uses_fetch_start_time(clock: ManualClock) -> None:
    """The timestamp is taken when the read starts, not when it completes."""

    class SlowGateway(FakeGateway):
        async def query_prompts(self):  # type: ignore[override]
            clock.advance(30)
            return await super().query_prompts()

    cache = PromptCache(SlowGateway(prompts=[make_prompt(1)]), clock=clock)
    started = clock.now

    await cache.fetch_all()

    assert cache.last_fetched_at == started


@pytest.mark.asyncio()
async def test_unavailable_backend_raises_configuration_error() -> None:
    """Without a gateway every read raises immediately and records the error."""
    cache = PromptCache(None)

    with pytest.raises(BackendUnavailableError) as excinfo:
        await cache.fetch_all()

    assert "Supabase client not initialized" in str(excinfo.value)
    assert cache.error == str(excinfo.value)
    assert not cache.available
    assert await cache.fetch_by_id("prompt-1") is None
    with pytest.raises(BackendUnavailableError):
        await cache.create(_draft())
    with pytest.raises(BackendUnavailableError):
        await cache.delete("prompt-1")


@pytest.mark.asyncio()
async def test_fetch_by_id_prefers_cache(gateway: FakeGateway, clock: ManualClock) -> None:
    """Cached prompts are returned without a backend round-trip."""
    cache = PromptCache(gateway, clock=clock)
    await cache.fetch_all()

    prompt = await cache.fetch_by_id("prompt-2")

    assert prompt is not None and prompt.title == "Prompt 2"
    assert gateway.count("get_prompt_by_id") == 0


@pytest.mark.asyncio()
async def test_fetch_by_id_reads_backend_without_touching_cache(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """Single-record reads never populate the collection or its timestamp."""
    cache = PromptCache(gateway, clock=clock)

    prompt = await cache.fetch_by_id("prompt-1")
    missing = await cache.fetch_by_id("nope")

    assert prompt is not None
    assert missing is None
    assert cache.prompts == ()
    assert cache.last_fetched_at is None


@pytest.mark.asyncio()
async def test_fetch_by_id_error_is_not_found(gateway: FakeGateway, clock: ManualClock) -> None:
    """Backend failures on single reads are reported as not found."""
    gateway.get_error = GatewayError("boom")
    cache = PromptCache(gateway, clock=clock)

    assert await cache.fetch_by_id("prompt-1") is None


@pytest.mark.asyncio()
async def test_create_prepends_backend_record(gateway: FakeGateway, clock: ManualClock) -> None:
    """Created prompts appear first without refreshing the timestamp."""
    center = NotificationCenter()
    events = []
    center.subscribe(events.append)
    cache = PromptCache(gateway, clock=clock, notifications=center)
    await cache.fetch_all()
    fetched_at = cache.last_fetched_at

    created = await cache.create(_draft())

    assert cache.prompts[0] is created
    assert len(cache.prompts) == 4
    assert created.tags == ["poetry", "short"]
    assert cache.last_fetched_at == fetched_at
    assert gateway.count("query_prompts") == 1
    assert events[-1].kind is CacheEventKind.PROMPT_CREATED
    assert events[-1].payload["prompt_id"] == created.id


@pytest.mark.asyncio()
async def test_failed_create_leaves_cache_unchanged(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """A rejected insert surfaces the backend message and changes nothing."""
    cache = PromptCache(gateway, clock=clock)
    await cache.fetch_all()
    before = cache.prompts
    gateway.insert_error = GatewayError("duplicate key value")

    with pytest.raises(PromptCreateError, match="Failed to create prompt: duplicate key value"):
        await cache.create(_draft())

    assert cache.prompts == before


@pytest.mark.asyncio()
async def test_delete_removes_record(gateway: FakeGateway, clock: ManualClock) -> None:
    """Deleted prompts are dropped from the cached collection."""
    cache = PromptCache(gateway, clock=clock)
    await cache.fetch_all()

    await cache.delete("prompt-2")

    assert [prompt.id for prompt in cache.prompts] == ["prompt-3", "prompt-1"]
    assert cache.find("prompt-2") is None


@pytest.mark.asyncio()
async def test_failed_delete_leaves_cache_unchanged(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """A rejected delete surfaces the backend message and keeps the record."""
    cache = PromptCache(gateway, clock=clock)
    await cache.fetch_all()
    gateway.delete_error = GatewayError("permission denied", code="42501")

    with pytest.raises(PromptDeleteError, match="Failed to delete prompt: permission denied"):
        await cache.delete("prompt-2")

    assert cache.find("prompt-2") is not None


@pytest.mark.asyncio()
async def test_load_events_are_published(gateway: FakeGateway, clock: ManualClock) -> None:
    """Successful and failed loads notify subscribers."""
    center = NotificationCenter()
    events = []
    center.subscribe(events.append)
    cache = PromptCache(gateway, clock=clock, notifications=center)

    await cache.fetch_all()
    clock.advance(61)
    gateway.query_error = GatewayError("offline")
    with pytest.raises(PromptFetchError):
        await cache.fetch_all()

    kinds = [event.kind for event in events]
    assert kinds == [CacheEventKind.PROMPTS_LOADED, CacheEventKind.PROMPTS_FAILED]
    assert events[0].payload["count"] == 3


@pytest.mark.asyncio()
async def test_cancelled_caller_still_populates_cache(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """A caller that stops waiting does not abort the read other callers joined."""
    gateway.query_gate = asyncio.Event()
    cache = PromptCache(gateway, clock=clock)

    first = asyncio.create_task(cache.fetch_all())
    second = asyncio.create_task(cache.fetch_all())
    await asyncio.sleep(0)
    first.cancel()
    await asyncio.sleep(0)
    gateway.query_gate.set()

    assert len(await second) == 3
    assert first.cancelled()
    assert gateway.count("query_prompts") == 1
    assert len(cache.prompts) == 3
    assert cache.last_fetched_at == clock.now
    assert not cache.loading


@pytest.mark.asyncio()
async def test_malformed_rows_fail_the_fetch(gateway: FakeGateway, clock: ManualClock) -> None:
    """Unparseable backend rows surface as a fetch error, not a raw exception."""
    gateway.query_error = MalformedRowError(
        "Malformed prompt row: reported_count must be a non-negative integer"
    )
    cache = PromptCache(gateway, clock=clock)

    with pytest.raises(PromptFetchError, match="Malformed prompt row"):
        await cache.fetch_all()

    assert cache.error is not None and "Malformed prompt row" in cache.error
    assert cache.last_fetched_at is None


@pytest.mark.asyncio()
async def test_malformed_inserted_row_forces_resync(
    gateway: FakeGateway,
    clock: ManualClock,
) -> None:
    """An insert whose returned row cannot be read marks the cache stale."""
    cache = PromptCache(gateway, clock=clock)
    await cache.fetch_all()
    gateway.insert_error = MalformedRowError("Malformed prompt row: bad created_at")

    with pytest.raises(PromptCreateError, match="Malformed prompt row"):
        await cache.create(_draft())

    assert cache.last_fetched_at is None
    await cache.fetch_all()
    assert gateway.count("query_prompts") == 2
