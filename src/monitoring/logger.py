# JSON logger subscribing to EventBus
"""
Structured event logging for gameboard notifications.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes MonitoringEvents as JSONL.
- log_event: convenience helper for publishing MonitoringEvents via the EventBus.

Usage patterns:

    from pathlib import Path
    from monitoring.bus import EventBus
    from monitoring.logger import JsonFileLogger

    bus = EventBus()
    sink = JsonFileLogger(Path("logs/gameboard/events.log"), bus)
    board = Gameboard(settings, sampler, bus=bus)
    ...
    sink.close()
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent

logger = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - Subscribes to an EventBus and writes one JSON object per line.
    - Ensures UTF-8 encoding.
    - Ensures parent directory exists.
    """

    def __init__(self, path: Path, bus: EventBus) -> None:
        """
        Initialize the logger and subscribe to the event bus.

        Parameters
        ----------
        path:
            Path to the log file (e.g. logs/gameboard/events.log).
        bus:
            EventBus instance to subscribe to.
        """
        self._path = path
        self._bus = bus
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event)

    @property
    def path(self) -> Path:
        return self._path

    def _on_event(self, event: MonitoringEvent) -> None:
        """Write the event as one JSON object per line."""
        if self._file.closed:
            return
        line = json.dumps(event.to_dict(), ensure_ascii=False)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except OSError:
            # Event logging must not take the engine down with it.
            logger.warning("Could not write event to %s", self._path, exc_info=True)

    def close(self) -> None:
        """Unsubscribe and close the underlying file handle."""
        self._bus.unsubscribe(self._on_event)
        self._file.close()


# ============================================================
# Convenience helper for emitting events
# ============================================================

def log_event(
    bus: EventBus,
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> MonitoringEvent:
    """
    Create and publish a MonitoringEvent, returning it.

        log_event(
            bus=self._bus,
            module="gameboard",
            event_type=EventType.GAMEBOARD_UPDATED,
            message="Scan applied",
            payload=updated_payload(removed, False),
            correlation_id=self.board_id,
        )
    """
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
    return event


__all__ = ["JsonFileLogger", "log_event"]
