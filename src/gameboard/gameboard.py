# public facade composing model, path finder and notifications
# src/gameboard/gameboard.py
"""
Gameboard: the public query/command API.

Composes a GameboardModel, a PathFinder and an EventBus:

- scan / clear / prune mutate the model, recompute the free area and
  publish GAMEBOARD_UPDATED.
- destroy() publishes GAMEBOARD_DESTROYED once; every later call raises
  GameboardError.
- Queries (fit checks, nearest/random free position, raycast, paths) never
  raise for missing data; they return None / False / PARTIAL / INVALID.

Hosts drive the board from a single thread, once per tick. Nothing here
blocks or spawns work.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from typing import List, Optional, Set

from monitoring.bus import EventBus
from monitoring.events import EventType, updated_payload
from monitoring.logger import log_event

from .geometry import Bounds, Point3, Ray, Tile, nearest_node, node_to_world, world_to_tile
from .model import GameboardModel
from .path import AgentConfiguration, Path
from .pathfinder import PathFinder
from .sampler import HeightSampler
from .settings import GameboardError, ModelSettings
from .surface import GridNode, Surface

logger = logging.getLogger(__name__)

MODULE_NAME = "gameboard"


class Gameboard:
    """
    Holds information about unoccupied areas in the environment and answers
    navigation queries against it.
    """

    def __init__(
        self,
        settings: ModelSettings,
        sampler: HeightSampler,
        bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
        debug_checks: bool = False,
        board_id: Optional[str] = None,
    ) -> None:
        self._settings = settings
        self._bus = bus if bus is not None else EventBus()
        self._rng = rng if rng is not None else random.Random()
        self._model = GameboardModel(settings, sampler, rng=self._rng, debug_checks=debug_checks)
        self._path_finder = PathFinder(self._model)
        self._board_id = board_id or uuid.uuid4().hex
        self._destroyed = False

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ModelSettings:
        """The configuration this Gameboard was created with."""
        return self._settings

    @property
    def board_id(self) -> str:
        """Correlation id stamped on every event this board publishes."""
        return self._board_id

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def area(self) -> float:
        """The discovered free area in square meters."""
        return self._model.area

    @property
    def surfaces(self) -> List[Surface]:
        """Read-only view for visualisation consumers."""
        return self._model.surfaces

    @property
    def model(self) -> GameboardModel:
        return self._model

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def scan(self, origin: Point3, range_: float) -> Set[Tile]:
        """
        Sample the environment in a range x range window below origin, add
        newly free tiles and remove newly occupied ones.

        Returns the removed tile coordinates (also published).
        """
        self._ensure_alive()
        removed = self._model.scan(origin, range_)
        self._publish_updated("Scan applied", removed, is_full_reset=False)
        return removed

    def clear(self) -> None:
        """Removes all surfaces from the Gameboard."""
        self._ensure_alive()
        self._model.clear()
        self._publish_updated("Gameboard cleared", set(), is_full_reset=True)

    def prune(self, keep_origin: Point3, range_: float) -> Set[Tile]:
        """Removes nodes outside the range x range window around keep_origin."""
        self._ensure_alive()
        removed = self._model.prune(keep_origin, range_)
        self._publish_updated("Gameboard pruned", removed, is_full_reset=True)
        return removed

    def destroy(self) -> None:
        """Tear the board down and publish GAMEBOARD_DESTROYED (once)."""
        if self._destroyed:
            logger.warning("Gameboard %s already destroyed", self._board_id)
            return
        self._model.clear()
        self._destroyed = True
        log_event(
            bus=self._bus,
            module=MODULE_NAME,
            event_type=EventType.GAMEBOARD_DESTROYED,
            message="Gameboard destroyed",
            payload={"board_id": self._board_id},
            correlation_id=self._board_id,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def check_fit(self, center: Point3, size: float) -> bool:
        """Whether a size x size footprint around center lies on one surface."""
        self._ensure_alive()
        return self._model.check_fit(center, size)

    def is_on_gameboard(self, position: Point3, tolerance: float) -> bool:
        """Whether position projects onto a tile within tolerance of its elevation."""
        self._ensure_alive()
        return self._model.is_on_gameboard(position, tolerance)

    def raycast(self, ray: Ray) -> Optional[Point3]:
        """Nearest hit of ray on any surface plane, if any."""
        self._ensure_alive()
        return self._model.raycast(ray)

    def find_nearest_free_position(
        self,
        source: Point3,
        range_: Optional[float] = None,
    ) -> Optional[Point3]:
        """
        Nearest free tile centre to source.

        Without range_, only the source tile and its 8 neighbours are
        considered. With range_, the search window spans range_ in every
        direction (size = 2 * range_).
        """
        self._ensure_alive()
        if self._model.area == 0:
            return None
        reference = world_to_tile(source, self._settings.tile_size)
        node = nearest_node(self._candidates(reference, range_), reference)
        if node is None:
            return None
        return node_to_world(node, self._settings.tile_size)

    def find_random_position(
        self,
        source: Optional[Point3] = None,
        range_: Optional[float] = None,
    ) -> Optional[Point3]:
        """
        Random free tile centre.

        Without source, picks uniformly among all tiles. With source (and
        range_, defaulting to the whole board), picks uniformly inside the
        window spanning range_ in every direction.
        """
        self._ensure_alive()
        if source is None or range_ is None:
            return self._model.find_random_free_position()
        if self._model.area == 0:
            return None

        reference = world_to_tile(source, self._settings.tile_size)
        candidates = self._candidates(reference, range_)
        if not candidates:
            return None
        return node_to_world(self._rng.choice(candidates), self._settings.tile_size)

    def calculate_path(
        self,
        from_position: Point3,
        to_position: Point3,
        agent: AgentConfiguration,
        max_steps: Optional[int] = None,
    ) -> Path:
        """Walkable path between two positions for the given agent."""
        self._ensure_alive()
        path = self._path_finder.calculate_path(from_position, to_position, agent, max_steps)
        log_event(
            bus=self._bus,
            module=MODULE_NAME,
            event_type=EventType.PATH_CALCULATED,
            message=f"Path {path.status.name.lower()}",
            payload={
                "status": path.status.name,
                "cost": path.cost,
                "waypoints": len(path),
                "jumps": path.jump_count,
            },
            correlation_id=self._board_id,
        )
        return path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise GameboardError(f"Gameboard {self._board_id} has been destroyed.")

    def _candidates(self, reference: Tile, range_: Optional[float]) -> List[GridNode]:
        index = self._model.index
        if range_ is None:
            candidates: List[GridNode] = []
            own = index.get(reference)
            if own is not None:
                candidates.append(own)
            candidates.extend(index.query_neighbors(reference))
            return candidates

        half = int(math.floor(max(range_, 0.0) / self._settings.tile_size))
        return list(index.query_range(Bounds.around(reference, half)))

    def _publish_updated(self, message: str, removed: Set[Tile], is_full_reset: bool) -> None:
        log_event(
            bus=self._bus,
            module=MODULE_NAME,
            event_type=EventType.GAMEBOARD_UPDATED,
            message=message,
            payload=updated_payload(removed, is_full_reset),
            correlation_id=self._board_id,
        )


__all__ = ["Gameboard"]
