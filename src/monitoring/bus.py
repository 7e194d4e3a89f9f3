# EventBus for gameboard notifications
"""
Event bus for gameboard notifications.

Provides a minimal in-process pub/sub mechanism:

- Subscribers receive MonitoringEvent objects.
- Used by:
    - Gameboard (GAMEBOARD_UPDATED / GAMEBOARD_DESTROYED)
    - GameboardFactory (GAMEBOARD_CREATED)
    - JsonFileLogger and BoardView
    - Host code that re-plans agent paths
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from .events import MonitoringEvent

logger = logging.getLogger(__name__)


# ============================================================
# Type aliases
# ============================================================

SubscriberFn = Callable[[MonitoringEvent], None]


# ============================================================
# Event Bus
# ============================================================

class EventBus:
    """
    Simple in-process event bus.

    Design goals:
    - Minimal: no external dependencies or IPC.
    - The subscriber list is protected by a Lock; delivery happens
      synchronously on the publishing thread.
    - One failing subscriber never stops delivery to the others.
    """

    def __init__(self) -> None:
        self._subscribers: List[SubscriberFn] = []
        self._lock = Lock()

    # --------------------------------------------------------
    # Subscription API
    # --------------------------------------------------------

    def subscribe(self, fn: SubscriberFn) -> None:
        """Register a subscriber to receive MonitoringEvent instances."""
        with self._lock:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: SubscriberFn) -> None:
        """
        Remove a previously registered subscriber.

        Safe to call even if `fn` is not present.
        """
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # --------------------------------------------------------
    # Publish API
    # --------------------------------------------------------

    def publish(self, event: MonitoringEvent) -> None:
        """
        Publish a MonitoringEvent to all subscribers, in subscription order.

        Takes a snapshot of subscribers under the lock, then iterates without
        holding the lock so subscribers may call back into the bus.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        for fn in subscribers:
            try:
                fn(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s", fn, event.event_type.name
                )

    # --------------------------------------------------------
    # Utility
    # --------------------------------------------------------

    def clear(self) -> None:
        """
        Remove all subscribers.

        Mostly useful for tests.
        """
        with self._lock:
            self._subscribers.clear()


__all__ = ["EventBus", "SubscriberFn"]
