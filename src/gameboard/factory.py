# single-active-board factory with creation notifications
# src/gameboard/factory.py
"""
GameboardFactory: creates Gameboard instances and tells interested parties.

Rules:
- At most one active Gameboard per factory. Creating a second one while the
  first is alive raises GameboardError.
- The slot frees up when the active board publishes GAMEBOARD_DESTROYED.
- Handlers registered with on_created() are called for every new board and,
  immediately, for the board that is already active (late subscribers do not
  miss it).
"""

from __future__ import annotations

import logging
import random
from threading import Lock
from typing import Callable, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from monitoring.logger import log_event

from .gameboard import Gameboard
from .sampler import HeightSampler
from .settings import GameboardError, ModelSettings

logger = logging.getLogger(__name__)

CreatedHandler = Callable[[Gameboard], None]


class GameboardFactory:
    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self._bus = bus if bus is not None else EventBus()
        self._lock = Lock()
        self._active: Optional[Gameboard] = None
        self._handlers: List[CreatedHandler] = []
        self._bus.subscribe(self._on_event)

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def active(self) -> Optional[Gameboard]:
        with self._lock:
            return self._active

    def create(
        self,
        settings: ModelSettings,
        sampler: HeightSampler,
        rng: Optional[random.Random] = None,
        debug_checks: bool = False,
    ) -> Gameboard:
        """Create the active Gameboard and notify handlers about it."""
        board = Gameboard(settings, sampler, bus=self._bus, rng=rng, debug_checks=debug_checks)
        with self._lock:
            if self._active is not None:
                raise GameboardError("There's already an active Gameboard.")
            self._active = board
            handlers = list(self._handlers)

        log_event(
            bus=self._bus,
            module="gameboard.factory",
            event_type=EventType.GAMEBOARD_CREATED,
            message="Gameboard created",
            payload={"board_id": board.board_id, "tile_size": settings.tile_size},
            correlation_id=board.board_id,
        )
        for handler in handlers:
            handler(board)
        return board

    def on_created(self, handler: CreatedHandler) -> None:
        """Register handler; replays the active board if there is one."""
        with self._lock:
            self._handlers.append(handler)
            active = self._active
        if active is not None:
            handler(active)

    def remove_created_handler(self, handler: CreatedHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def _on_event(self, event: MonitoringEvent) -> None:
        if event.event_type is not EventType.GAMEBOARD_DESTROYED:
            return
        with self._lock:
            if self._active is not None and self._active.board_id == event.correlation_id:
                logger.debug("Active gameboard %s released", event.correlation_id)
                self._active = None


__all__ = ["GameboardFactory", "CreatedHandler"]
