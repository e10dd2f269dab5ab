"""
Lifecycle event channel for PartScout.

The browser session manager publishes here when the shared browser is torn
down for inactivity. Transports (SSE, websockets) subscribe and relay the
serialized event; nothing in the core depends on who is listening.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from partscout.utils.logging import get_logger

logger = get_logger(__name__)

SessionListener = Callable[["SessionEvent"], Awaitable[None] | None]


@dataclass(frozen=True)
class SessionEvent:
    """A browser session lifecycle event."""

    type: str
    reason: str

    @classmethod
    def closed(cls, reason: str) -> SessionEvent:
        return cls(type="closed", reason=reason)

    def to_dict(self) -> dict[str, Any]:
        """Wire shape relayed to clients."""
        return {"reason": self.reason}


class LifecycleEventBus:
    """Publish/subscribe hub for session lifecycle events.

    Sync listeners run inline. Coroutine listeners are scheduled as tasks on
    the running loop. A failing listener is logged and skipped.
    """

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []
        self._pending: set[asyncio.Task[Any]] = set()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, event: SessionEvent) -> None:
        """Deliver an event to every current listener."""
        logger.info("Lifecycle event", event_type=event.type, reason=event.reason)

        for listener in list(self._listeners):
            try:
                outcome = listener(event)
            except Exception as e:
                logger.warning("Lifecycle listener failed", error=str(e))
                continue

            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(outcome)
                self._pending.add(task)
                task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Future[Any]) -> None:
        self._pending.discard(task)  # type: ignore[arg-type]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Lifecycle listener failed", error=str(error))


_event_bus: LifecycleEventBus | None = None


def get_lifecycle_events() -> LifecycleEventBus:
    """Get or create the process-wide lifecycle event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = LifecycleEventBus()
    return _event_bus


def reset_lifecycle_events() -> None:
    """Drop the global event bus and its listeners. For testing only."""
    global _event_bus
    _event_bus = None
