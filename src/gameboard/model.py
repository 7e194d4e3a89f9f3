# surface reconstruction from streamed height samples
# src/gameboard/model.py
"""
GameboardModel: owns the SpatialIndex and the Surfaces built on top of it.

Responsibilities:
- Ingest scan windows through a HeightSampler and confirm/reject tiles.
- Keep index and surfaces consistent on every scan/prune/clear.
- Split surfaces that lose connectivity and merge surfaces that become
  one walkable region.
- Answer geometric queries (fit checks, raycasts, random free tiles).

It does NOT:
- Compute paths (gameboard.pathfinder).
- Publish notifications (the Gameboard facade does that).

Reconciliation policy
---------------------
Removal: every surface that lost tiles is flood-filled from the orphaned
neighbours of the removed tiles, in the order they were recorded. The first
component keeps the surface (and its id); further components become new
surfaces in discovery order.

Addition: new tiles are assigned in ascending coordinate order. A tile joins
the oldest neighbouring surface it is step-compatible with whose elevation
band can take it; otherwise it starts a new surface. Any other compatible
neighbouring surface is then merged if the combined band fits. When two
surfaces merge, the older one absorbs the younger one.

Update: a tile whose new elevation still fits its surface keeps it. Every
surface that took such an update is merged with step-compatible neighbours
the same way as after an addition.
"""

from __future__ import annotations

import logging
import math
import random
from collections import deque
from typing import Dict, Iterable, List, Optional, Set, cast

from .geometry import (
    Bounds,
    Point3,
    Ray,
    Tile,
    node_to_world,
    tile_to_world,
    window_half_extent,
    world_to_tile,
)
from .sampler import HeightSampler, SampleResult
from .settings import ModelSettings
from .spatial_index import NEIGHBOR_OFFSETS, SpatialIndex
from .surface import GridNode, Surface

logger = logging.getLogger(__name__)

_EPS = 1e-9


class GameboardModel:
    """Incrementally maintained navigable-area model."""

    def __init__(
        self,
        settings: ModelSettings,
        sampler: HeightSampler,
        rng: Optional[random.Random] = None,
        debug_checks: bool = False,
    ) -> None:
        self._settings = settings
        self._sampler = sampler
        self._rng = rng if rng is not None else random.Random()
        self._debug_checks = debug_checks

        self._index = SpatialIndex()
        # Surfaces keyed by id; dict order is creation order.
        self._surfaces: Dict[int, Surface] = {}
        # coord -> owning surface id
        self._owner: Dict[Tile, int] = {}
        self._next_surface_id = 0

        self._area = 0.0
        self._max_slope_tan = math.tan(math.radians(settings.max_slope))

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ModelSettings:
        return self._settings

    @property
    def index(self) -> SpatialIndex:
        return self._index

    @property
    def surfaces(self) -> List[Surface]:
        """Surfaces in creation order."""
        return list(self._surfaces.values())

    @property
    def area(self) -> float:
        """Discovered free area in square world units."""
        return self._area

    def is_empty(self) -> bool:
        return not self._surfaces

    def surface_of(self, coord: Tile) -> Optional[Surface]:
        sid = self._owner.get(coord)
        if sid is None:
            return None
        return self._surfaces.get(sid)

    def surface_id_of(self, coord: Tile) -> Optional[int]:
        return self._owner.get(coord)

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def scan(self, origin: Point3, range_: float) -> Set[Tile]:
        """
        Sample a range x range window around origin and update the model.

        Returns the coordinates removed by this call.
        """
        ts = self._settings.tile_size
        window = Bounds.around(world_to_tile(origin, ts), window_half_extent(range_, ts))
        half_kernel = self._settings.kernel_size // 2
        samples = self._sample(window.grown(half_kernel), origin.y)

        confirmed: Dict[Tile, float] = {}
        rejected: List[Tile] = []
        for coord in window.tiles():
            elevation = self._confirm(coord, samples, half_kernel)
            if elevation is None:
                rejected.append(coord)
            else:
                confirmed[coord] = elevation

        removed = self._apply(confirmed, rejected)

        logger.debug(
            "scan at tile %s: %d confirmed, %d removed, %d surfaces, area=%.4f",
            world_to_tile(origin, ts),
            len(confirmed),
            len(removed),
            len(self._surfaces),
            self._area,
        )
        return removed

    def prune(self, keep_origin: Point3, range_: float) -> Set[Tile]:
        """Remove every node outside the range x range window around keep_origin."""
        ts = self._settings.tile_size
        keep = Bounds.around(
            world_to_tile(keep_origin, ts), window_half_extent(range_, ts)
        )
        doomed = sorted(node.coordinates for node in self._index if not keep.contains(node.coordinates))

        removed = self._apply({}, doomed)
        logger.debug("prune kept %s, removed %d tiles", keep, len(removed))
        return removed

    def clear(self) -> None:
        """Remove all surfaces and nodes."""
        self._index.clear()
        self._surfaces.clear()
        self._owner.clear()
        self._area = 0.0
        if self._debug_checks:
            self.check_invariants()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_random_free_position(self) -> Optional[Point3]:
        """Uniformly random free tile centre, or None when nothing is mapped."""
        if self._area == 0:
            return None
        node = self._index.random_node(self._rng)
        if node is None:
            return None
        return node_to_world(node, self._settings.tile_size)

    def check_fit(self, center: Point3, size: float) -> bool:
        """
        True iff a size x size footprint around center lies on one surface.

        Height is not taken into account.
        """
        ts = self._settings.tile_size
        surface = self.surface_of(world_to_tile(center, ts))
        if surface is None:
            return False

        half = abs(size) * 0.5
        lo = world_to_tile(Point3(center.x - half, center.y, center.z - half), ts)
        hi = world_to_tile(Point3(center.x + half, center.y, center.z + half), ts)
        for coord in Bounds(lo[0], lo[1], hi[0], hi[1]).tiles():
            if not surface.contains(coord):
                return False
        return True

    def raycast(self, ray: Ray) -> Optional[Point3]:
        """
        Nearest intersection of ray with any surface plane whose hit tile
        belongs to that surface. Ties keep the earlier surface.
        """
        dy = ray.direction.y
        if dy == 0:
            return None

        ts = self._settings.tile_size
        speed = ray.direction.length()
        best: Optional[Point3] = None
        best_distance = math.inf
        for surface in self._surfaces.values():
            t = (surface.elevation - ray.origin.y) / dy
            if t < 0:
                continue
            hit = ray.point_at(t)
            if not surface.contains(world_to_tile(hit, ts)):
                continue
            distance = t * speed
            if distance < best_distance:
                best = hit
                best_distance = distance
        return best

    def is_on_gameboard(self, position: Point3, tolerance: float) -> bool:
        node = self._index.get(world_to_tile(position, self._settings.tile_size))
        if node is None:
            return False
        return abs(node.elevation - position.y) <= tolerance

    def is_border(self, coord: Tile) -> bool:
        """True when fewer than 8 neighbours share coord's surface."""
        sid = self._owner.get(coord)
        if sid is None:
            return False
        x, y = coord
        for dx, dy in NEIGHBOR_OFFSETS:
            if self._owner.get((x + dx, y + dy)) != sid:
                return True
        return False

    def steps_compatible(self, a: GridNode, b: GridNode) -> bool:
        """Whether two adjacent nodes may belong to the same surface."""
        rise = abs(a.elevation - b.elevation)
        if rise > self._settings.step_height + _EPS:
            return False
        ax, ay = a.coordinates
        bx, by = b.coordinates
        run = math.hypot(ax - bx, ay - by) * self._settings.tile_size
        return rise <= run * self._max_slope_tan + _EPS

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """
        Assert index/surface consistency, band and connectivity.

        Meant for tests and debug runs; raises AssertionError on violation.
        """
        seen: Set[Tile] = set()
        tolerance = self._settings.flat_floor_tolerance
        for sid, surface in self._surfaces.items():
            assert surface.surface_id == sid, f"surface key mismatch for {surface!r}"
            assert not surface.is_empty(), f"empty surface {sid} kept alive"

            coords = set(surface.coordinates())
            elevations = []
            for coord in coords:
                assert coord not in seen, f"{coord} belongs to more than one surface"
                seen.add(coord)
                node = self._index.get(coord)
                assert node is not None, f"{coord} in surface {sid} but not indexed"
                assert self._owner.get(coord) == sid, f"owner map stale for {coord}"
                elevations.append(node.elevation)

            assert max(elevations) - min(elevations) <= tolerance + _EPS, (
                f"surface {sid} spans more than the flat floor tolerance"
            )
            start = min(coords)
            assert self._flood(start, coords) == coords, f"surface {sid} is disconnected"

        assert len(seen) == len(self._index), "indexed nodes without a surface"
        assert len(self._owner) == len(self._index), "owner map out of step with index"

    # ------------------------------------------------------------------
    # Scan internals
    # ------------------------------------------------------------------

    def _sample(self, bounds: Bounds, height: float) -> Dict[Tile, Optional[SampleResult]]:
        ts = self._settings.tile_size
        samples: Dict[Tile, Optional[SampleResult]] = {}
        for coord in bounds.tiles():
            point = tile_to_world(coord, height, ts)
            samples[coord] = self._sampler.sample(
                point,
                self._settings.max_sample_distance,
                collision_filter=self._settings.collision_filter,
            )
        return samples

    def _confirm(
        self,
        coord: Tile,
        samples: Dict[Tile, Optional[SampleResult]],
        half_kernel: int,
    ) -> Optional[float]:
        """Elevation of coord if its kernel is complete, flat and gentle enough."""
        own = samples.get(coord)
        if own is None or own.blocked:
            return None
        if half_kernel == 0:
            return own.elevation

        x, y = coord
        tolerance = self._settings.flat_floor_tolerance
        for dx in range(-half_kernel, half_kernel + 1):
            for dy in range(-half_kernel, half_kernel + 1):
                s = samples.get((x + dx, y + dy))
                if s is None or s.blocked:
                    return None
                if abs(s.elevation - own.elevation) > tolerance:
                    return None

        # central differences across the kernel; the loop above proved
        # every kernel sample present
        span = 2 * half_kernel * self._settings.tile_size
        east = cast(SampleResult, samples[(x + half_kernel, y)])
        west = cast(SampleResult, samples[(x - half_kernel, y)])
        north = cast(SampleResult, samples[(x, y + half_kernel)])
        south = cast(SampleResult, samples[(x, y - half_kernel)])
        gx = (east.elevation - west.elevation) / span
        gz = (north.elevation - south.elevation) / span
        if math.hypot(gx, gz) > self._max_slope_tan + _EPS:
            return None
        return own.elevation

    def _apply(self, confirmed: Dict[Tile, float], rejected: Iterable[Tile]) -> Set[Tile]:
        removed: Set[Tile] = set()
        # surface id -> orphaned neighbour coords, in discovery order
        touched: Dict[int, List[Tile]] = {}
        updated: Set[int] = set()

        for coord in rejected:
            if coord in self._index:
                self._detach(coord, touched)
                self._index.remove(coord)
                removed.add(coord)

        pending: List[GridNode] = []
        for coord in sorted(confirmed):
            node = GridNode(coord, confirmed[coord])
            sid = self._owner.get(coord)
            if sid is not None:
                surface = self._surfaces[sid]
                if self._fits_in_place(node, surface):
                    surface._discard(coord)
                    self._index.insert(node)
                    surface._add(node)
                    updated.add(sid)
                    continue
                self._detach(coord, touched)
            self._index.insert(node)
            pending.append(node)

        reshaped = self._split(touched)

        # An in-place elevation change can make a tile step-compatible with a
        # neighbouring surface, so updated surfaces are merge candidates too.
        for sid in sorted(updated - set(touched)):
            surface = self._surfaces.get(sid)
            if surface is None:
                continue
            surface._recompute_band()
            reshaped.append(surface)

        for node in pending:
            self._assign(node)

        for surface in reshaped:
            if surface.surface_id in self._surfaces:
                self._merge_neighbours(surface)

        self._recalculate_area()
        if self._debug_checks:
            self.check_invariants()
        return removed

    def _fits_in_place(self, node: GridNode, surface: Surface) -> bool:
        if surface.band_with(node.elevation) > self._settings.flat_floor_tolerance + _EPS:
            return False
        if len(surface) == 1:
            return True
        for neighbour in self._index.query_neighbors(node.coordinates):
            if surface.contains(neighbour.coordinates) and self.steps_compatible(node, neighbour):
                return True
        return False

    def _detach(self, coord: Tile, touched: Dict[int, List[Tile]]) -> None:
        """Drop coord from its surface, remembering orphaned neighbours."""
        sid = self._owner.pop(coord)
        surface = self._surfaces[sid]
        surface._discard(coord)
        seeds = touched.setdefault(sid, [])
        for neighbour in self._index.query_neighbors(coord):
            if surface.contains(neighbour.coordinates):
                seeds.append(neighbour.coordinates)

    def _split(self, touched: Dict[int, List[Tile]]) -> List[Surface]:
        """Split surfaces that lost tiles into connected components."""
        reshaped: List[Surface] = []
        for sid in sorted(touched):
            surface = self._surfaces.get(sid)
            if surface is None:
                continue
            if surface.is_empty():
                del self._surfaces[sid]
                continue

            remaining = set(surface.coordinates())
            seeds = [c for c in touched[sid] if c in remaining]
            # Every component borders a removed tile, so seeds normally
            # cover them all; sorted leftovers keep this total regardless.
            seeds.extend(sorted(remaining))

            components: List[Set[Tile]] = []
            assigned: Set[Tile] = set()
            for seed in seeds:
                if len(assigned) == len(remaining):
                    break
                if seed in assigned:
                    continue
                component = self._flood(seed, remaining)
                assigned |= component
                components.append(component)

            if len(components) == 1:
                surface._recompute_band()
                reshaped.append(surface)
                continue

            logger.debug("surface %d split into %d parts", sid, len(components))
            surface._take_all()
            surface._extend(self._nodes(components[0]))
            reshaped.append(surface)
            for component in components[1:]:
                part = self._new_surface()
                part._extend(self._nodes(component))
                for coord in component:
                    self._owner[coord] = part.surface_id
                reshaped.append(part)
        return reshaped

    def _assign(self, node: GridNode) -> None:
        """Attach a freshly indexed node to a surface."""
        coord = node.coordinates
        candidates: List[int] = []
        for neighbour in self._index.query_neighbors(coord):
            sid = self._owner.get(neighbour.coordinates)
            if sid is None or sid in candidates:
                continue
            if self.steps_compatible(node, neighbour):
                candidates.append(sid)
        candidates.sort()

        tolerance = self._settings.flat_floor_tolerance
        target: Optional[Surface] = None
        for sid in candidates:
            surface = self._surfaces[sid]
            if surface.band_with(node.elevation) <= tolerance + _EPS:
                target = surface
                break
        if target is None:
            target = self._new_surface()

        target._add(node)
        self._owner[coord] = target.surface_id

        keeper = target.surface_id
        for sid in candidates:
            if sid != keeper and sid in self._surfaces:
                keeper = self._try_merge(keeper, sid)

    def _merge_neighbours(self, surface: Surface) -> None:
        """Merge surface with any step-compatible neighbouring surface."""
        candidates: Set[int] = set()
        sid = surface.surface_id
        for coord in surface.coordinates():
            node = self._index.get(coord)
            if node is None:
                continue
            for neighbour in self._index.query_neighbors(coord):
                other = self._owner.get(neighbour.coordinates)
                if other is None or other == sid or other in candidates:
                    continue
                if self.steps_compatible(node, neighbour):
                    candidates.add(other)

        keeper = sid
        for other in sorted(candidates):
            if other != keeper and other in self._surfaces and keeper in self._surfaces:
                keeper = self._try_merge(keeper, other)

    def _try_merge(self, a: int, b: int) -> int:
        """Merge a and b if their combined band fits. Returns the surviving id of a."""
        first, second = self._surfaces[a], self._surfaces[b]
        band = max(first.max_elevation, second.max_elevation) - min(
            first.min_elevation, second.min_elevation
        )
        if band > self._settings.flat_floor_tolerance + _EPS:
            return a

        keep, drop = (first, second) if a < b else (second, first)
        coords = drop._take_all()
        keep._extend(self._nodes(coords))
        for coord in coords:
            self._owner[coord] = keep.surface_id
        del self._surfaces[drop.surface_id]
        logger.debug("merged surface %d into %d", drop.surface_id, keep.surface_id)
        return keep.surface_id

    # ------------------------------------------------------------------
    # Small helpers
    # ------------------------------------------------------------------

    def _new_surface(self) -> Surface:
        surface = Surface(self._next_surface_id, self._index)
        self._surfaces[surface.surface_id] = surface
        self._next_surface_id += 1
        return surface

    def _nodes(self, coords: Iterable[Tile]) -> List[GridNode]:
        nodes = []
        for coord in sorted(coords):
            node = self._index.get(coord)
            if node is not None:
                nodes.append(node)
        return nodes

    @staticmethod
    def _flood(start: Tile, allowed: Set[Tile]) -> Set[Tile]:
        """8-connected flood fill restricted to allowed."""
        reached = {start}
        frontier = deque([start])
        while frontier:
            x, y = frontier.popleft()
            for dx, dy in NEIGHBOR_OFFSETS:
                nxt = (x + dx, y + dy)
                if nxt in allowed and nxt not in reached:
                    reached.add(nxt)
                    frontier.append(nxt)
        return reached

    def _recalculate_area(self) -> None:
        count = sum(len(surface) for surface in self._surfaces.values())
        self._area = count * self._settings.tile_area


__all__ = ["GameboardModel"]
