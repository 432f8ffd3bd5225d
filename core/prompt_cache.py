"""Process-wide prompt list cache with freshness window and request coalescing.

Updates:
  v0.3.1 - 2026-10-18 - Resync on the next read when an inserted row comes back malformed.
  v0.3.0 - 2026-10-13 - Translate row-level security denials into a dedicated fetch error.
  v0.2.0 - 2026-10-12 - Release queued callers with the in-flight error instead of hanging.
  v0.1.0 - 2026-10-07 - Extract prompt list caching, create, and delete into a service object.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from config.settings import DEFAULT_PROMPT_CACHE_TTL_SECONDS

from .backend.base import GatewayError, MalformedRowError
from .cache import FetchDecision, SingleFlight, needs_fetch
from .exceptions import (
    BackendUnavailableError,
    PromptCreateError,
    PromptDeleteError,
    PromptFetchError,
    PromptFetchPermissionError,
)
from .notifications import CacheEventKind, NotificationCenter

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Callable

    from models.prompt_model import Prompt, PromptDraft

    from .backend import BackendGateway

logger = logging.getLogger("prompthub.prompt_cache")

__all__ = ["PromptCache"]


class PromptCache:
    """Serve the full prompt collection to any number of concurrent callers.

    The cached collection keeps the backend's newest-first order; prompts
    created through :meth:`create` are placed at the front.
    """

    def __init__(
        self,
        gateway: BackendGateway | None,
        *,
        ttl_seconds: float = DEFAULT_PROMPT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        notifications: NotificationCenter | None = None,
    ) -> None:
        self._gateway = gateway
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._notifications = notifications or NotificationCenter()
        self._prompts: tuple[Prompt, ...] = ()
        self._last_fetched_at: float | None = None
        self._error: str | None = None
        self._flight: SingleFlight[tuple[Prompt, ...]] = SingleFlight("prompt fetch")

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def prompts(self) -> tuple[Prompt, ...]:
        """Return the cached collection snapshot."""
        return self._prompts

    @property
    def last_fetched_at(self) -> float | None:
        """Return the clock reading of the last successful fetch."""
        return self._last_fetched_at

    @property
    def loading(self) -> bool:
        """Return ``True`` while a backend read is in flight."""
        return self._flight.in_progress

    @property
    def error(self) -> str | None:
        """Return the message of the last failed fetch, cleared on success."""
        return self._error

    @property
    def ttl_seconds(self) -> float:
        """Return the freshness window in seconds."""
        return self._ttl_seconds

    @property
    def available(self) -> bool:
        """Return ``True`` when a backend gateway is configured."""
        return self._gateway is not None

    def find(self, prompt_id: str) -> Prompt | None:
        """Return the cached prompt with *prompt_id*, without any backend call."""
        for prompt in self._prompts:
            if prompt.id == prompt_id:
                return prompt
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_all(self) -> list[Prompt]:
        """Return all prompts, reading from the backend only when the cache is stale."""
        decision = needs_fetch(
            self._clock(),
            self._last_fetched_at,
            self._flight.in_progress,
            self._ttl_seconds,
        )
        if decision is FetchDecision.USE_CACHE:
            logger.debug("Prompt cache hit", extra={"count": len(self._prompts)})
            return list(self._prompts)
        if decision is FetchDecision.JOIN_IN_FLIGHT:
            return list(await self._flight.join())
        if self._gateway is None:
            exc = BackendUnavailableError()
            self._error = str(exc)
            logger.warning("Prompt fetch skipped: backend gateway unavailable")
            raise exc
        return list(await self._flight.run(self._load))

    async def _load(self) -> tuple[Prompt, ...]:
        assert self._gateway is not None
        started_at = self._clock()
        self._error = None
        try:
            records = await self._gateway.query_prompts()
        except GatewayError as exc:
            error = self._fetch_error(exc)
            self._error = str(error)
            logger.error("Error fetching prompts: %s", exc.message, extra={"code": exc.code})
            self._notifications.emit(CacheEventKind.PROMPTS_FAILED, error=self._error)
            raise error from exc
        self._prompts = tuple(records)
        self._last_fetched_at = started_at
        self._notifications.emit(CacheEventKind.PROMPTS_LOADED, count=len(self._prompts))
        return self._prompts

    @staticmethod
    def _fetch_error(exc: GatewayError) -> PromptFetchError:
        if exc.is_permission_denied:
            return PromptFetchPermissionError(
                "Failed to fetch prompts: insufficient permissions, "
                "check the row-level security policies for the prompts table"
            )
        return PromptFetchError(f"Failed to fetch prompts: {exc.message}")

    async def fetch_by_id(self, prompt_id: str) -> Prompt | None:
        """Return one prompt from the cache or a single-record backend read.

        Backend failures are logged and reported as not-found; the collection
        and its timestamp are never touched.
        """
        cached = self.find(prompt_id)
        if cached is not None:
            return cached
        if self._gateway is None:
            logger.warning("Prompt lookup skipped: backend gateway unavailable")
            return None
        try:
            return await self._gateway.get_prompt_by_id(prompt_id)
        except GatewayError as exc:
            logger.error(
                "Error fetching prompt: %s",
                exc.message,
                extra={"prompt_id": prompt_id, "code": exc.code},
            )
            return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, draft: PromptDraft) -> Prompt:
        """Insert *draft* and prepend the backend-assigned record to the cache."""
        if self._gateway is None:
            raise BackendUnavailableError()
        logger.debug("Adding prompt", extra={"title": draft.title, "author_id": draft.author_id})
        try:
            created = await self._gateway.insert_prompt(draft)
        except MalformedRowError as exc:
            # The row was written but cannot be cached; force the next read to resync.
            self._last_fetched_at = None
            logger.error("Prompt added but returned row is unusable: %s", exc.message)
            raise PromptCreateError(f"Failed to create prompt: {exc.message}") from exc
        except GatewayError as exc:
            logger.error("Error adding prompt: %s", exc.message, extra={"code": exc.code})
            raise PromptCreateError(f"Failed to create prompt: {exc.message}") from exc
        self._prompts = (created, *self._prompts)
        logger.info("Prompt added", extra={"prompt_id": created.id})
        self._notifications.emit(CacheEventKind.PROMPT_CREATED, prompt_id=created.id)
        return created

    async def delete(self, prompt_id: str) -> None:
        """Delete *prompt_id* on the backend and drop it from the cache."""
        if self._gateway is None:
            raise BackendUnavailableError()
        try:
            await self._gateway.delete_prompt(prompt_id)
        except GatewayError as exc:
            logger.error(
                "Error deleting prompt: %s",
                exc.message,
                extra={"prompt_id": prompt_id, "code": exc.code},
            )
            raise PromptDeleteError(f"Failed to delete prompt: {exc.message}") from exc
        self._prompts = tuple(prompt for prompt in self._prompts if prompt.id != prompt_id)
        self._notifications.emit(CacheEventKind.PROMPT_DELETED, prompt_id=prompt_id)
