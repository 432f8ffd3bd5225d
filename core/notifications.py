"""Application-wide notification hub for cache state changes.

Consumers (CLI views, UI bindings) subscribe here instead of polling the
caches; the prompt and session caches publish after every state change.

Updates:
  v0.2.0 - 2026-10-12 - Publish cache events (prompt list and current user changes).
  v0.1.1 - 2026-10-08 - Move Callable imports under TYPE_CHECKING.
  v0.1.0 - 2026-10-07 - Introduce notification hub with disposable subscriptions.
"""
from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("prompthub.notifications")


class CacheEventKind(str, Enum):
    """Kinds of cache changes communicated to listeners."""
    PROMPTS_LOADED = "prompts_loaded"
    PROMPTS_FAILED = "prompts_failed"
    PROMPT_CREATED = "prompt_created"
    PROMPT_DELETED = "prompt_deleted"
    USER_CHANGED = "user_changed"


@dataclass(slots=True, frozen=True)
class CacheEvent:
    """Immutable payload describing a cache change."""
    kind: CacheEventKind
    payload: dict[str, Any] = field(default_factory=dict)
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Return a serialisable representation of the event."""
        return {
            "id": str(self.id),
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "payload": dict(self.payload),
        }


class NotificationSubscription:
    """Disposable handle that removes its callback when closed."""
    def __init__(
        self,
        center: NotificationCenter,
        callback: Callable[[CacheEvent], None],
    ) -> None:
        """Store *center* subscription metadata for later cleanup."""
        self._center = center
        self._callback = callback
        self._closed = False

    def close(self) -> None:
        """Detach the stored callback if it is still active."""
        if self._closed:
            return
        self._closed = True
        self._center.unsubscribe(self._callback)

    def __enter__(self) -> NotificationSubscription:
        """Return the subscription so it can be used as a context manager."""
        return self

    def __exit__(self, *_: object) -> None:
        """Ensure the callback is removed when leaving the context."""
        self.close()


class NotificationCenter:
    """Thread-safe publish/subscribe hub for cache events."""
    def __init__(self, history_limit: int = 200) -> None:
        """Initialise the subscriber registry and bounded history queue."""
        self._subscribers: list[Callable[[CacheEvent], None]] = []
        self._lock = threading.RLock()
        self._history: deque[CacheEvent] = deque(maxlen=history_limit)

    def subscribe(self, callback: Callable[[CacheEvent], None]) -> NotificationSubscription:
        """Register *callback* to receive future events."""
        with self._lock:
            self._subscribers.append(callback)
        return NotificationSubscription(self, callback)

    def unsubscribe(self, callback: Callable[[CacheEvent], None]) -> None:
        """Remove a previously subscribed callback if present."""
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

    def publish(self, event: CacheEvent) -> None:
        """Deliver *event* to all registered subscribers."""
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)

        logger.debug("Cache event", extra={"kind": event.kind.value})

        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("Notification subscriber raised an exception")

    def emit(self, kind: CacheEventKind, **payload: Any) -> CacheEvent:
        """Build and publish an event of *kind*; return it."""
        event = CacheEvent(kind=kind, payload=payload)
        self.publish(event)
        return event

    def history(self) -> tuple[CacheEvent, ...]:
        """Return a snapshot of stored events."""
        with self._lock:
            return tuple(self._history)


notification_center = NotificationCenter()


__all__ = [
    "CacheEvent",
    "CacheEventKind",
    "NotificationCenter",
    "NotificationSubscription",
    "notification_center",
]
