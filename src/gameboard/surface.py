# grid nodes and surfaces (connected walkable tile sets)
# src/gameboard/surface.py
"""
GridNode and Surface.

A Surface stores tile coordinates only. The nodes themselves (and their
elevations) live in the model-owned SpatialIndex, so splitting or merging a
surface only moves coordinates between sets.

Only gameboard.model mutates a Surface. The underscore-prefixed helpers are
the mutation surface; everything public is a read-only view.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator, Set

from .geometry import Tile

if TYPE_CHECKING:
    from .spatial_index import SpatialIndex


@dataclass(frozen=True)
class GridNode:
    """
    One confirmed walkable tile.

    Identity is by coordinates only: two nodes at the same tile compare
    equal regardless of elevation. Elevation changes replace the node.
    """

    coordinates: Tile
    elevation: float = field(compare=False)


class Surface:
    """
    A connected set of tiles considered mutually walkable at one elevation band.

    elevation is the mean elevation of the members. min/max elevation are
    tracked so merges can check the combined band cheaply.
    """

    def __init__(self, surface_id: int, index: "SpatialIndex") -> None:
        self._surface_id = surface_id
        self._index = index
        self._coords: Set[Tile] = set()
        self._elevation_sum: float = 0.0
        self._min_elevation: float = math.inf
        self._max_elevation: float = -math.inf

    # ------------------------------------------------------------------
    # Read-only API
    # ------------------------------------------------------------------

    @property
    def surface_id(self) -> int:
        return self._surface_id

    @property
    def elevation(self) -> float:
        if not self._coords:
            return 0.0
        return self._elevation_sum / len(self._coords)

    @property
    def min_elevation(self) -> float:
        return self._min_elevation

    @property
    def max_elevation(self) -> float:
        return self._max_elevation

    def contains(self, coord: Tile) -> bool:
        return coord in self._coords

    def __contains__(self, coord: object) -> bool:
        return coord in self._coords

    def __len__(self) -> int:
        return len(self._coords)

    def is_empty(self) -> bool:
        return not self._coords

    def coordinates(self) -> Iterator[Tile]:
        """Member coordinates in ascending order."""
        return iter(sorted(self._coords))

    def elements(self) -> Iterator[GridNode]:
        """Member nodes in ascending coordinate order."""
        for coord in sorted(self._coords):
            node = self._index.get(coord)
            if node is not None:
                yield node

    def band_with(self, elevation: float) -> float:
        """Height of the elevation band if a node at `elevation` were added."""
        if not self._coords:
            return 0.0
        return max(self._max_elevation, elevation) - min(self._min_elevation, elevation)

    def __repr__(self) -> str:
        return (
            f"Surface(id={self._surface_id}, tiles={len(self._coords)}, "
            f"elevation={self.elevation:.3f})"
        )

    # ------------------------------------------------------------------
    # Model-only mutation
    # ------------------------------------------------------------------

    def _add(self, node: GridNode) -> None:
        if node.coordinates in self._coords:
            return
        self._coords.add(node.coordinates)
        self._elevation_sum += node.elevation
        self._min_elevation = min(self._min_elevation, node.elevation)
        self._max_elevation = max(self._max_elevation, node.elevation)

    def _discard(self, coord: Tile) -> None:
        """
        Drop a member. The index must still hold the old node so its
        elevation can be subtracted; callers detach before re-indexing.
        """
        if coord not in self._coords:
            return
        node = self._index.get(coord)
        self._coords.discard(coord)
        if node is not None:
            self._elevation_sum -= node.elevation

    def _take_all(self) -> Set[Tile]:
        coords = self._coords
        self._coords = set()
        self._elevation_sum = 0.0
        self._min_elevation = math.inf
        self._max_elevation = -math.inf
        return coords

    def _extend(self, nodes: Iterable[GridNode]) -> None:
        for node in nodes:
            self._add(node)

    def _recompute_band(self) -> None:
        """Rebuild sum/min/max from the index after removals or updates."""
        total = 0.0
        lo = math.inf
        hi = -math.inf
        for coord in self._coords:
            node = self._index.get(coord)
            if node is None:
                continue
            total += node.elevation
            lo = min(lo, node.elevation)
            hi = max(hi, node.elevation)
        self._elevation_sum = total
        self._min_elevation = lo
        self._max_elevation = hi


__all__ = ["GridNode", "Surface"]
