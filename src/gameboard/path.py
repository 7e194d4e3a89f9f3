# agent configuration, waypoints and path results
# src/gameboard/path.py
"""
Value types produced and consumed by the path finder.

Paths are owned by the caller. They hold copies of positions and tile
coordinates and do not track later changes to the model; use
Path.crosses() with the removed tiles from a GAMEBOARD_UPDATED event to
decide when a path went stale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List

from .geometry import Point3, Tile


class PathFindingBehaviour(Enum):
    """How the search treats transitions between surfaces."""

    # Never leave the start surface.
    SINGLE_SURFACE = auto()
    # Plain cheapest-cost search; jumps are taken whenever they are cheaper.
    INTER_SURFACE_PREFER_PERFORMANCE = auto()
    # Fewest jumps first, cheapest cost second.
    INTER_SURFACE_PREFER_RESULTS = auto()


class MovementType(Enum):
    WALK = auto()
    SURFACE_ENTRY = auto()


class PathStatus(Enum):
    COMPLETE = auto()
    PARTIAL = auto()
    INVALID = auto()


@dataclass(frozen=True)
class AgentConfiguration:
    """Per-agent path finding parameters (distances in world units)."""

    jump_penalty: float = 2.0
    max_jump_distance: float = 1.0
    behaviour: PathFindingBehaviour = PathFindingBehaviour.INTER_SURFACE_PREFER_RESULTS

    @property
    def allows_jumps(self) -> bool:
        return (
            self.behaviour is not PathFindingBehaviour.SINGLE_SURFACE
            and self.max_jump_distance > 0
        )


@dataclass(frozen=True)
class Waypoint:
    world_position: Point3
    tile_coordinates: Tile
    movement_type: MovementType = MovementType.WALK


@dataclass
class Path:
    """
    Result of a path finding call.

    A path without waypoints is always INVALID, whatever status was passed.
    cost is the accumulated search cost, jump penalties included.
    """

    waypoints: List[Waypoint] = field(default_factory=list)
    status: PathStatus = PathStatus.INVALID
    cost: float = 0.0

    def __post_init__(self) -> None:
        if not self.waypoints:
            self.status = PathStatus.INVALID

    @classmethod
    def invalid(cls) -> "Path":
        return cls([], PathStatus.INVALID)

    def __len__(self) -> int:
        return len(self.waypoints)

    @property
    def is_valid(self) -> bool:
        return self.status is not PathStatus.INVALID

    @property
    def jump_count(self) -> int:
        return sum(
            1 for w in self.waypoints if w.movement_type is MovementType.SURFACE_ENTRY
        )

    def crosses(self, tiles: Iterable[Tile], start: int = 0) -> bool:
        """True if any waypoint from index `start` on lies on one of tiles."""
        lookup = set(tiles)
        if not lookup:
            return False
        return any(w.tile_coordinates in lookup for w in self.waypoints[start:])

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view for monitoring payloads."""
        return {
            "status": self.status.name,
            "cost": self.cost,
            "waypoints": [
                {
                    "position": [w.world_position.x, w.world_position.y, w.world_position.z],
                    "tile": list(w.tile_coordinates),
                    "movement": w.movement_type.name,
                }
                for w in self.waypoints
            ],
        }


__all__ = [
    "PathFindingBehaviour",
    "MovementType",
    "PathStatus",
    "AgentConfiguration",
    "Waypoint",
    "Path",
]
