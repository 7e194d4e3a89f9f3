# tests/test_gameboard_model.py
"""
Tests for gameboard.model.GameboardModel.

Covers:
- index/surface consistency after every mutation (debug_checks=True)
- scan idempotence
- surfaces split when a removal disconnects them, merge when a scan joins them
- elevation bands never exceed flat_floor_tolerance
- kernel/slope/blocked rejection
- check_fit boundary, raycast, prune, clear
- random free positions stay on the board, last-tile removal drops the surface
"""

from __future__ import annotations

import random
from typing import Dict, Tuple

import pytest

from gameboard.geometry import Point3, Ray
from gameboard.model import GameboardModel
from gameboard.settings import ModelSettings
from gameboard.testing.fakes import GridHeightSampler, HeightFieldSampler, rectangle


def make_model(
    heights: Dict[Tuple[int, int], float],
    tile_size: float = 1.0,
    kernel_size: int = 1,
    seed: int = 0,
    **overrides,
) -> Tuple[GameboardModel, GridHeightSampler]:
    settings = ModelSettings(tile_size=tile_size, kernel_size=kernel_size, **overrides)
    sampler = GridHeightSampler(tile_size=tile_size, heights=dict(heights))
    model = GameboardModel(settings, sampler, rng=random.Random(seed), debug_checks=True)
    return model, sampler


def over(x: float, z: float, tile_size: float = 1.0, height: float = 5.0) -> Point3:
    """World point above the centre of tile (x, z)."""
    return Point3((x + 0.5) * tile_size, height, (z + 0.5) * tile_size)


def sizes(model: GameboardModel):
    return sorted(len(s) for s in model.surfaces)


# ---------------------------------------------------------------------------
# Scan basics
# ---------------------------------------------------------------------------


def test_flat_scan_builds_one_surface() -> None:
    model, _ = make_model(rectangle(0, 0, 4, 4))

    removed = model.scan(over(2, 2), 10.0)

    assert removed == set()
    assert sizes(model) == [25]
    assert model.area == pytest.approx(25.0)
    surface = model.surfaces[0]
    assert surface.elevation == pytest.approx(0.0)
    assert list(surface.coordinates())[0] == (0, 0)
    model.check_invariants()


def test_scan_window_only_samples_its_range() -> None:
    model, sampler = make_model(rectangle(0, 0, 20, 20))

    model.scan(over(10, 10), 4.0)

    # half extent 2 -> 5 x 5 tiles
    assert sizes(model) == [25]
    assert len(sampler.calls) == 25
    assert all(call.max_distance == model.settings.max_sample_distance for call in sampler.calls)


def test_scan_is_idempotent() -> None:
    model, _ = make_model(rectangle(0, 0, 5, 3))
    model.scan(over(2, 2), 12.0)
    ids_before = [s.surface_id for s in model.surfaces]
    area_before = model.area

    removed = model.scan(over(2, 2), 12.0)

    assert removed == set()
    assert [s.surface_id for s in model.surfaces] == ids_before
    assert model.area == area_before
    assert len(model.index) == 24


def test_out_of_reach_samples_are_no_ground() -> None:
    model, _ = make_model(rectangle(0, 0, 2, 2), max_sample_distance=1.0)

    model.scan(over(1, 1, height=5.0), 6.0)

    assert model.is_empty()
    assert model.area == 0.0


def test_blocked_tiles_are_not_confirmed() -> None:
    model, sampler = make_model(rectangle(0, 0, 4, 4))
    sampler.block([(2, 2)])

    model.scan(over(2, 2), 10.0)

    assert (2, 2) not in model.index
    assert sizes(model) == [24]


# ---------------------------------------------------------------------------
# Kernel and slope
# ---------------------------------------------------------------------------


def test_kernel_rejects_tiles_with_incomplete_neighbourhood() -> None:
    model, _ = make_model(rectangle(0, 0, 6, 6), kernel_size=3)

    model.scan(over(3, 3), 20.0)

    assert sizes(model) == [25]
    assert (0, 0) not in model.index
    assert (1, 1) in model.index


def test_kernel_rejects_steep_slopes() -> None:
    settings = ModelSettings(
        tile_size=1.0,
        kernel_size=3,
        flat_floor_tolerance=2.0,
        step_height=0.5,
        max_sample_distance=50.0,
    )
    steep = GameboardModel(settings, HeightFieldSampler(lambda x, z: 0.6 * x), debug_checks=True)
    gentle = GameboardModel(settings, HeightFieldSampler(lambda x, z: 0.3 * x), debug_checks=True)

    steep.scan(over(5, 5, height=20.0), 6.0)
    gentle.scan(over(5, 5, height=20.0), 6.0)

    assert steep.is_empty()
    assert sizes(gentle) == [49]


def test_kernel_rejects_bumpy_floor() -> None:
    heights = rectangle(0, 0, 6, 6)
    heights[(3, 3)] = 0.5
    model, _ = make_model(heights, kernel_size=3)

    model.scan(over(3, 3), 20.0)

    # every tile whose 3x3 kernel sees the bump is rejected
    for x in range(2, 5):
        for y in range(2, 5):
            assert (x, y) not in model.index
    assert (1, 1) in model.index


# ---------------------------------------------------------------------------
# Surface reconstruction
# ---------------------------------------------------------------------------


def test_step_separates_box_from_floor() -> None:
    heights = rectangle(0, 0, 4, 4)
    heights[(2, 2)] = 0.5
    model, _ = make_model(heights)

    model.scan(over(2, 2), 10.0)

    assert sizes(model) == [1, 24]
    floor = model.surface_of((0, 0))
    box = model.surface_of((2, 2))
    assert floor is not box
    assert box.elevation == pytest.approx(0.5)


def test_surface_band_never_exceeds_tolerance() -> None:
    heights = {(x, y): 0.05 * x for x in range(10) for y in range(3)}
    model, _ = make_model(heights)

    model.scan(over(5, 1), 20.0)

    assert sizes(model) == [15, 15]
    for surface in model.surfaces:
        assert surface.max_elevation - surface.min_elevation <= 0.2 + 1e-9


def test_removal_splits_surface_into_connected_parts() -> None:
    model, sampler = make_model(rectangle(0, 0, 6, 2))
    model.scan(over(3, 1), 16.0)
    (before,) = model.surfaces

    sampler.remove([(3, 0), (3, 1), (3, 2)])
    removed = model.scan(over(3, 1), 16.0)

    assert removed == {(3, 0), (3, 1), (3, 2)}
    assert sizes(model) == [9, 9]
    assert before.surface_id in [s.surface_id for s in model.surfaces]
    left = model.surface_of((0, 0))
    right = model.surface_of((6, 2))
    assert left is not right
    model.check_invariants()


def test_partial_removal_keeps_surface_connected() -> None:
    model, sampler = make_model(rectangle(0, 0, 4, 4))
    model.scan(over(2, 2), 10.0)

    sampler.remove([(2, 2)])
    model.scan(over(2, 2), 0.0)

    assert sizes(model) == [24]


def test_scan_bridging_two_surfaces_merges_them() -> None:
    heights = rectangle(0, 0, 2, 2)
    heights.update(rectangle(4, 0, 6, 2))
    model, sampler = make_model(heights)
    model.scan(over(3, 1), 16.0)
    assert sizes(model) == [9, 9]
    oldest = min(s.surface_id for s in model.surfaces)

    sampler.set_heights(rectangle(3, 0, 3, 2))
    model.scan(over(3, 1), 16.0)

    assert sizes(model) == [21]
    assert model.surfaces[0].surface_id == oldest


def test_in_place_elevation_change_merges_neighbouring_surface() -> None:
    ts = 0.15
    heights = rectangle(0, 0, 4, 4, elevation=0.0)
    heights.update(rectangle(5, 0, 9, 4, elevation=0.12))
    model, sampler = make_model(heights, tile_size=ts)
    model.scan(over(5, 2, tile_size=ts), 3.0)
    assert sizes(model) == [25, 25]
    lower = model.surface_id_of((0, 0))

    # the seam column drops halfway, within step reach of both sides
    sampler.set_heights(rectangle(5, 0, 5, 4, elevation=0.06))
    removed = model.scan(over(5, 2, tile_size=ts), 3.0)

    assert removed == set()
    assert model.steps_compatible(model.index.get((4, 0)), model.index.get((5, 0)))
    assert sizes(model) == [50]
    assert model.surfaces[0].surface_id == lower
    assert model.surfaces[0].elevation == pytest.approx((5 * 0.06 + 20 * 0.12) / 50)

    fresh, _ = make_model(dict(sampler.heights), tile_size=ts)
    fresh.scan(over(5, 2, tile_size=ts), 3.0)
    assert sizes(fresh) == sizes(model)


def test_elevation_change_updates_or_moves_tile() -> None:
    model, sampler = make_model(rectangle(0, 0, 4, 4))
    model.scan(over(2, 2), 10.0)
    floor_id = model.surface_id_of((2, 2))

    sampler.set_heights({(2, 2): 0.05})
    model.scan(over(2, 2), 10.0)
    assert model.surface_id_of((2, 2)) == floor_id
    assert model.index.get((2, 2)).elevation == pytest.approx(0.05)
    assert model.surfaces[0].elevation == pytest.approx(0.05 / 25)

    sampler.set_heights({(2, 2): 0.5})
    model.scan(over(2, 2), 10.0)
    assert model.surface_id_of((2, 2)) != floor_id
    assert sizes(model) == [1, 24]


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_random_free_position_is_on_gameboard() -> None:
    model, _ = make_model(rectangle(0, 0, 9, 9), tile_size=0.15)
    model.scan(Point3(0.75, 1.0, 0.75), 3.0)
    assert sizes(model) == [100]

    for _ in range(200):
        position = model.find_random_free_position()
        assert position is not None
        assert model.is_on_gameboard(position, 0.01)


def test_random_free_position_is_seeded() -> None:
    first, _ = make_model(rectangle(0, 0, 9, 9), seed=42)
    second, _ = make_model(rectangle(0, 0, 9, 9), seed=42)
    for model in (first, second):
        model.scan(over(5, 5), 20.0)

    assert [first.find_random_free_position() for _ in range(10)] == [
        second.find_random_free_position() for _ in range(10)
    ]


def test_random_free_position_empty_model() -> None:
    model, _ = make_model({})
    assert model.find_random_free_position() is None


def test_is_on_gameboard_respects_tolerance() -> None:
    model, _ = make_model(rectangle(0, 0, 2, 2))
    model.scan(over(1, 1), 6.0)

    assert model.is_on_gameboard(Point3(1.5, 0.05, 1.5), 0.1)
    assert not model.is_on_gameboard(Point3(1.5, 0.5, 1.5), 0.1)
    assert not model.is_on_gameboard(Point3(10.5, 0.0, 1.5), 0.1)


def test_check_fit_rejects_footprint_spanning_two_surfaces() -> None:
    heights = rectangle(0, 0, 4, 4)
    heights.update(rectangle(5, 0, 9, 4, elevation=0.5))
    model, _ = make_model(heights)
    model.scan(over(5, 2), 20.0)
    assert sizes(model) == [25, 25]

    assert model.check_fit(Point3(4.0, 0.0, 2.5), 1.0)
    assert model.check_fit(Point3(2.5, 0.0, 2.5), 3.0)
    assert not model.check_fit(Point3(4.9, 0.0, 2.5), 1.0)
    assert not model.check_fit(Point3(2.5, 0.0, 2.5), 6.0)
    assert not model.check_fit(Point3(20.0, 0.0, 2.5), 1.0)


def test_raycast_hits_nearest_surface_owning_the_tile() -> None:
    heights = rectangle(0, 0, 4, 4)
    heights[(2, 2)] = 0.5
    model, _ = make_model(heights)
    model.scan(over(2, 2), 10.0)

    down = Point3(0.0, -1.0, 0.0)
    assert model.raycast(Ray(Point3(2.5, 5.0, 2.5), down)) == Point3(2.5, 0.5, 2.5)
    assert model.raycast(Ray(Point3(0.5, 5.0, 0.5), down)) == Point3(0.5, 0.0, 0.5)
    assert model.raycast(Ray(Point3(9.5, 5.0, 9.5), down)) is None
    assert model.raycast(Ray(Point3(0.5, 5.0, 0.5), Point3(0.0, 1.0, 0.0))) is None
    assert model.raycast(Ray(Point3(0.5, 5.0, 0.5), Point3(1.0, 0.0, 0.0))) is None


# ---------------------------------------------------------------------------
# Prune / clear / last tile
# ---------------------------------------------------------------------------


def test_prune_drops_everything_outside_window() -> None:
    model, _ = make_model(rectangle(0, 0, 9, 0), tile_size=0.5)
    model.scan(over(5, 0, tile_size=0.5), 20.0)
    assert len(model.index) == 10

    removed = model.prune(over(1, 0, tile_size=0.5), 1.0)

    assert removed == {(x, 0) for x in range(3, 10)}
    assert sizes(model) == [3]
    assert model.area == pytest.approx(3 * 0.25)


def test_clear_empties_everything() -> None:
    model, _ = make_model(rectangle(0, 0, 3, 3))
    model.scan(over(1, 1), 10.0)

    model.clear()

    assert model.is_empty()
    assert len(model.index) == 0
    assert model.area == 0.0
    assert model.surface_of((0, 0)) is None


def test_removing_last_tile_deletes_surface() -> None:
    heights = rectangle(0, 0, 2, 2)
    heights[(5, 5)] = 0.0
    model, sampler = make_model(heights, tile_size=0.5)
    model.scan(over(3, 3, tile_size=0.5), 10.0)
    assert sizes(model) == [1, 9]
    lonely = model.surface_of((5, 5))
    area_before = model.area

    sampler.remove([(5, 5)])
    removed = model.scan(over(5, 5, tile_size=0.5), 0.0)

    assert removed == {(5, 5)}
    assert lonely.surface_id not in [s.surface_id for s in model.surfaces]
    assert model.area == pytest.approx(area_before - 0.25)
