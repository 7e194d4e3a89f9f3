# hash-grid index over confirmed grid nodes
# src/gameboard/spatial_index.py
"""
SpatialIndex: the global set of GridNodes keyed by tile coordinate.

Storage:
- _nodes:   coord -> GridNode (point lookups)
- _buckets: bucket key -> {coord: GridNode} (range queries)
- _order / _slot: dense coordinate list for O(1) uniform random picks

The index knows nothing about surfaces. GameboardModel keeps the two in
step on every scan/prune/clear.
"""

from __future__ import annotations

import random
from typing import Dict, Iterator, List, Optional, Tuple

from .geometry import Bounds, Tile
from .surface import GridNode

# Orientation order used by query_neighbors: cardinals first, then diagonals.
NEIGHBOR_OFFSETS: Tuple[Tile, ...] = (
    (1, 0),
    (-1, 0),
    (0, 1),
    (0, -1),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
)

DEFAULT_BUCKET_SIZE = 16


class SpatialIndex:
    """Hash grid of fixed-size square buckets."""

    def __init__(self, bucket_size: int = DEFAULT_BUCKET_SIZE) -> None:
        if bucket_size <= 0:
            raise ValueError("bucket_size must be positive")
        self._bucket_size = bucket_size
        self._nodes: Dict[Tile, GridNode] = {}
        self._buckets: Dict[Tile, Dict[Tile, GridNode]] = {}
        self._order: List[Tile] = []
        self._slot: Dict[Tile, int] = {}

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _bucket_key(self, coord: Tile) -> Tile:
        # Floor division keeps negative coordinates in the right bucket.
        return (coord[0] // self._bucket_size, coord[1] // self._bucket_size)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, node: GridNode) -> None:
        """Insert a node, replacing any node already at its coordinate."""
        coord = node.coordinates
        if coord not in self._nodes:
            self._slot[coord] = len(self._order)
            self._order.append(coord)
        self._nodes[coord] = node
        self._buckets.setdefault(self._bucket_key(coord), {})[coord] = node

    def remove(self, coord: Tile) -> Optional[GridNode]:
        """Remove and return the node at coord, or None if absent."""
        node = self._nodes.pop(coord, None)
        if node is None:
            return None

        key = self._bucket_key(coord)
        bucket = self._buckets.get(key)
        if bucket is not None:
            bucket.pop(coord, None)
            if not bucket:
                del self._buckets[key]

        # swap-remove from the dense list
        idx = self._slot.pop(coord)
        last = self._order.pop()
        if last != coord:
            self._order[idx] = last
            self._slot[last] = idx

        return node

    def clear(self) -> None:
        self._nodes.clear()
        self._buckets.clear()
        self._order.clear()
        self._slot.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, coord: Tile) -> Optional[GridNode]:
        return self._nodes.get(coord)

    def __contains__(self, coord: object) -> bool:
        return coord in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[GridNode]:
        return iter(list(self._nodes.values()))

    def query_range(self, bounds: Bounds) -> Iterator[GridNode]:
        """
        Lazily yield nodes inside bounds (inclusive).

        Visits only the buckets the rectangle overlaps, unless that is more
        buckets than there are nodes, in which case it filters all nodes.
        """
        if bounds.is_empty() or not self._nodes:
            return

        b = self._bucket_size
        bx0, by0 = bounds.min_x // b, bounds.min_y // b
        bx1, by1 = bounds.max_x // b, bounds.max_y // b
        bucket_span = (bx1 - bx0 + 1) * (by1 - by0 + 1)

        if bucket_span > len(self._buckets):
            for coord, node in sorted(self._nodes.items()):
                if bounds.contains(coord):
                    yield node
            return

        for bx in range(bx0, bx1 + 1):
            for by in range(by0, by1 + 1):
                bucket = self._buckets.get((bx, by))
                if not bucket:
                    continue
                for coord, node in list(bucket.items()):
                    if bounds.contains(coord):
                        yield node

    def query_neighbors(self, coord: Tile) -> Iterator[GridNode]:
        """Occupied 8-neighbours of coord, in NEIGHBOR_OFFSETS order."""
        x, y = coord
        for dx, dy in NEIGHBOR_OFFSETS:
            node = self._nodes.get((x + dx, y + dy))
            if node is not None:
                yield node

    def random_node(self, rng: random.Random) -> Optional[GridNode]:
        """Uniform random node, or None when empty."""
        if not self._order:
            return None
        coord = self._order[rng.randrange(len(self._order))]
        return self._nodes[coord]


__all__ = ["SpatialIndex", "NEIGHBOR_OFFSETS", "DEFAULT_BUCKET_SIZE"]
