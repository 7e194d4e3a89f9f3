# world <-> tile conversions and small geometric value types
# src/gameboard/geometry.py
"""
Geometry helpers for the gameboard.

This module owns the minimal vector types the engine needs (Point3, Ray,
Bounds) and the pure conversion functions between world space and the
discrete tile grid.

Conventions:
- World space is y-up. The ground plane is x-z.
- Tile (i, j) covers x in [i * tile_size, (i + 1) * tile_size) and
  z in [j * tile_size, (j + 1) * tile_size).
- Tile world positions are tile centres.

Nothing here validates tile_size; ModelSettings does that once at
construction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator, Optional, Tuple

if TYPE_CHECKING:
    from .surface import GridNode

# (i, j) integer tile coordinates on the x-z plane
Tile = Tuple[int, int]


@dataclass(frozen=True)
class Point3:
    """Immutable 3D point / vector in world space."""

    x: float
    y: float
    z: float

    def __add__(self, other: "Point3") -> "Point3":
        return Point3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Point3") -> "Point3":
        return Point3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scaled(self, factor: float) -> "Point3":
        return Point3(self.x * factor, self.y * factor, self.z * factor)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def distance_to(self, other: "Point3") -> float:
        return (self - other).length()

    def planar_distance_to(self, other: "Point3") -> float:
        """Distance on the x-z plane, ignoring elevation."""
        return math.hypot(self.x - other.x, self.z - other.z)


@dataclass(frozen=True)
class Ray:
    """Half-line starting at origin and pointing along direction."""

    origin: Point3
    direction: Point3

    def point_at(self, t: float) -> Point3:
        return self.origin + self.direction.scaled(t)


@dataclass(frozen=True)
class Bounds:
    """
    Axis-aligned rectangle in tile space, inclusive on both ends.

    An empty rectangle (min > max on either axis) contains nothing.
    """

    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @classmethod
    def around(cls, center: Tile, half_extent: int) -> "Bounds":
        """Square window of (2 * half_extent + 1) tiles per side."""
        cx, cy = center
        return cls(cx - half_extent, cy - half_extent, cx + half_extent, cy + half_extent)

    def contains(self, coord: Tile) -> bool:
        x, y = coord
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def grown(self, margin: int) -> "Bounds":
        return Bounds(
            self.min_x - margin,
            self.min_y - margin,
            self.max_x + margin,
            self.max_y + margin,
        )

    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    def tile_count(self) -> int:
        if self.is_empty():
            return 0
        return (self.max_x - self.min_x + 1) * (self.max_y - self.min_y + 1)

    def tiles(self) -> Iterator[Tile]:
        """Row-major iteration: x outer, y inner."""
        for x in range(self.min_x, self.max_x + 1):
            for y in range(self.min_y, self.max_y + 1):
                yield (x, y)


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def world_to_tile(position: Point3, tile_size: float) -> Tile:
    """Tile whose footprint contains the projected world position."""
    return (
        int(math.floor(position.x / tile_size)),
        int(math.floor(position.z / tile_size)),
    )


def tile_to_world(coord: Tile, elevation: float, tile_size: float) -> Point3:
    """World-space centre of a tile at the given elevation."""
    i, j = coord
    return Point3((i + 0.5) * tile_size, elevation, (j + 0.5) * tile_size)


def node_to_world(node: "GridNode", tile_size: float) -> Point3:
    return tile_to_world(node.coordinates, node.elevation, tile_size)


def window_half_extent(range_: float, tile_size: float) -> int:
    """
    Half extent (in tiles) of a range x range square window.

    A non-positive range yields a window of just the centre tile.
    """
    if range_ <= 0:
        return 0
    return int(math.floor(range_ / (2.0 * tile_size)))


def tile_distance(a: Tile, b: Tile) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def nearest_node(
    candidates: Optional[Iterable["GridNode"]],
    reference_tile: Tile,
) -> Optional["GridNode"]:
    """
    Return the candidate closest to reference_tile in tile space.

    Ties keep the first candidate encountered, so results are deterministic
    for a fixed iteration order. Returns None for no candidates.
    """
    if candidates is None:
        return None

    best: Optional["GridNode"] = None
    best_d2 = math.inf
    rx, ry = reference_tile
    for node in candidates:
        x, y = node.coordinates
        d2 = (x - rx) * (x - rx) + (y - ry) * (y - ry)
        if d2 < best_d2:
            best = node
            best_d2 = d2
    return best


__all__ = [
    "Tile",
    "Point3",
    "Ray",
    "Bounds",
    "world_to_tile",
    "tile_to_world",
    "node_to_world",
    "window_half_extent",
    "tile_distance",
    "nearest_node",
]
