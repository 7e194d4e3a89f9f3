# best-first path search over the gameboard model
# src/gameboard/pathfinder.py
"""
Path finding over GameboardModel.

Graph:
- Nodes are GridNodes.
- Walk edges join 8-neighbours on the same surface; cost is the planar
  distance between tile centres.
- Jump edges leave a surface border node towards any node of another
  surface within agent.max_jump_distance; cost is the planar distance plus
  agent.jump_penalty.

Frontier ordering:
- INTER_SURFACE_PREFER_RESULTS: (jump count, cost). Any jump-free route
  beats a route with a jump, however long the detour.
- SINGLE_SURFACE / INTER_SURFACE_PREFER_PERFORMANCE: cost plus the planar
  distance to the destination (A*).
Equal keys pop in insertion order (FIFO), which fixes the path shape for a
given model state.

If the destination is never settled, the result is a PARTIAL path to the
settled node nearest to the destination (ties: lower cost, then earlier
settled).
"""

from __future__ import annotations

import heapq
import logging
import math
from typing import Dict, Iterator, List, Optional, Tuple

from .geometry import Bounds, Point3, Tile, tile_distance, tile_to_world, world_to_tile
from .model import GameboardModel
from .path import (
    AgentConfiguration,
    MovementType,
    Path,
    PathFindingBehaviour,
    PathStatus,
    Waypoint,
)

logger = logging.getLogger(__name__)

_EPS = 1e-9

# (neighbour, edge cost, is_jump)
Edge = Tuple[Tile, float, bool]


class PathFinder:
    """Stateless search engine bound to one model."""

    def __init__(self, model: GameboardModel) -> None:
        self._model = model

    def calculate_path(
        self,
        from_position: Point3,
        to_position: Point3,
        agent: AgentConfiguration,
        max_steps: Optional[int] = None,
    ) -> Path:
        """
        Search a path between two world positions.

        max_steps bounds the number of settled nodes; when it runs out the
        best partial path found so far is returned.
        """
        model = self._model
        ts = model.settings.tile_size
        start = world_to_tile(from_position, ts)
        goal = world_to_tile(to_position, ts)

        if model.is_empty() or start not in model.index:
            return Path.invalid()

        if start == goal:
            return Path([self._waypoint(start, MovementType.WALK)], PathStatus.COMPLETE, 0.0)

        prefer_results = agent.behaviour is PathFindingBehaviour.INTER_SURFACE_PREFER_RESULTS
        goal_centre = tile_to_world(goal, 0.0, ts)

        def remaining(tile: Tile) -> float:
            return tile_to_world(tile, 0.0, ts).planar_distance_to(goal_centre)

        counter = 0
        open_heap: List[tuple] = []
        g_score: Dict[Tile, float] = {start: 0.0}
        jumps: Dict[Tile, int] = {start: 0}
        came_from: Dict[Tile, Tile] = {}
        via_jump: Dict[Tile, bool] = {start: False}
        closed = set()

        def push(tile: Tile) -> None:
            nonlocal counter
            if prefer_results:
                key: tuple = (jumps[tile], g_score[tile], counter, tile)
            else:
                key = (g_score[tile] + remaining(tile), counter, tile)
            heapq.heappush(open_heap, key)
            counter += 1

        push(start)

        best = start
        best_key = (remaining(start), 0.0)
        reached = False
        steps_remaining = max_steps

        while open_heap:
            if steps_remaining is not None and steps_remaining <= 0:
                break

            current = heapq.heappop(open_heap)[-1]
            if current in closed:
                continue
            closed.add(current)
            if steps_remaining is not None:
                steps_remaining -= 1

            current_key = (remaining(current), g_score[current])
            if current_key < best_key:
                best = current
                best_key = current_key

            if current == goal:
                reached = True
                break

            for nxt, cost, is_jump in self._edges(current, agent):
                if nxt in closed:
                    continue
                tentative_g = g_score[current] + cost
                tentative_j = jumps[current] + (1 if is_jump else 0)

                old_g = g_score.get(nxt)
                if old_g is None:
                    better = True
                elif prefer_results:
                    old_j = jumps[nxt]
                    better = tentative_j < old_j or (
                        tentative_j == old_j and tentative_g < old_g - _EPS
                    )
                else:
                    better = tentative_g < old_g - _EPS

                if better:
                    g_score[nxt] = tentative_g
                    jumps[nxt] = tentative_j
                    came_from[nxt] = current
                    via_jump[nxt] = is_jump
                    push(nxt)

        end = goal if reached else best
        status = PathStatus.COMPLETE if reached else PathStatus.PARTIAL
        tiles = _reconstruct_path(came_from, end)
        waypoints = [
            self._waypoint(
                tile,
                MovementType.SURFACE_ENTRY if via_jump.get(tile) else MovementType.WALK,
            )
            for tile in tiles
        ]

        logger.debug(
            "path %s -> %s: %s, %d waypoints, cost=%.4f, settled=%d",
            start,
            goal,
            status.name,
            len(waypoints),
            g_score[end],
            len(closed),
        )
        return Path(waypoints, status, g_score[end])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _edges(self, tile: Tile, agent: AgentConfiguration) -> Iterator[Edge]:
        model = self._model
        index = model.index
        ts = model.settings.tile_size
        sid = model.surface_id_of(tile)

        for neighbour in index.query_neighbors(tile):
            if model.surface_id_of(neighbour.coordinates) == sid:
                yield neighbour.coordinates, tile_distance(tile, neighbour.coordinates) * ts, False

        if not agent.allows_jumps or not model.is_border(tile):
            return

        reach = agent.max_jump_distance
        half = int(math.ceil(reach / ts))
        origin = tile_to_world(tile, 0.0, ts)
        targets: List[Tuple[float, Tile]] = []
        for other in index.query_range(Bounds.around(tile, half)):
            other_sid = model.surface_id_of(other.coordinates)
            if other_sid is None or other_sid == sid:
                continue
            distance = origin.planar_distance_to(tile_to_world(other.coordinates, 0.0, ts))
            if distance <= reach + _EPS:
                targets.append((distance, other.coordinates))

        for distance, coord in sorted(targets):
            yield coord, distance + agent.jump_penalty, True

    def _waypoint(self, tile: Tile, movement: MovementType) -> Waypoint:
        node = self._model.index.get(tile)
        elevation = node.elevation if node is not None else 0.0
        return Waypoint(
            world_position=tile_to_world(tile, elevation, self._model.settings.tile_size),
            tile_coordinates=tile,
            movement_type=movement,
        )


def _reconstruct_path(came_from: Dict[Tile, Tile], current: Tile) -> List[Tile]:
    """Reconstruct full path from came_from map."""
    path: List[Tile] = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


__all__ = ["PathFinder"]
