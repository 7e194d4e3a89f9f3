# path: src/monitoring/events.py
"""
Event schemas for gameboard notifications.

This module defines:
- EventType enum
- MonitoringEvent (structured notification published on the EventBus)
- helpers to build the payloads hosts rely on

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed notifications emitted by the gameboard."""

    # Lifecycle
    GAMEBOARD_CREATED = auto()
    GAMEBOARD_DESTROYED = auto()

    # Model changed after scan / clear / prune
    GAMEBOARD_UPDATED = auto()

    # A path was computed (payload carries status and cost)
    PATH_CALCULATED = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Notification emitted by a gameboard or the factory.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("gameboard", "gameboard.factory")
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (removed tiles, path summary)
    correlation_id: Optional[str] = None  # Groups events of one gameboard instance

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data

    # Convenience accessors for GAMEBOARD_UPDATED payloads

    @property
    def removed_tiles(self) -> FrozenSet[Tuple[int, int]]:
        raw = self.payload.get("removed_tiles") or []
        return frozenset((int(x), int(y)) for x, y in raw)

    @property
    def is_full_reset(self) -> bool:
        return bool(self.payload.get("is_full_reset", False))


def updated_payload(removed_tiles: Iterable[Tuple[int, int]], is_full_reset: bool) -> Dict[str, Any]:
    """Payload for GAMEBOARD_UPDATED: removed tiles as sorted [x, y] pairs."""
    tiles: List[List[int]] = [[x, y] for x, y in sorted(removed_tiles)]
    return {"removed_tiles": tiles, "is_full_reset": is_full_reset}


__all__ = ["EventType", "MonitoringEvent", "updated_payload"]
