#!/usr/bin/env python3
"""
tools/smoke_gameboard.py

Minimal harness to sanity-check Gameboard wiring.

Builds a synthetic room out of GridHeightSampler heights:
    - a floor with a box standing on it
    - a raised platform separated from the floor by a gap
Then:
    - creates a board through GameboardFactory
    - scans around a moving origin (the host's job in a real app)
    - calculates a path floor -> platform
    - drops an obstacle on the path and re-plans when the update
      notification says the path went stale
    - prints the board with BoardView

Everything runs offline; no 3D engine is needed.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running as a script
# ---------------------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# ---------------------------------------------------------------------------
# Imports from the project
# ---------------------------------------------------------------------------

from env.loader import load_gameboard_config  # type: ignore[import]
from gameboard import GameboardFactory, Point3  # type: ignore[import]
from gameboard.path import Path as GameboardPath  # type: ignore[import]
from gameboard.testing.fakes import GridHeightSampler, rectangle  # type: ignore[import]
from monitoring.board_view import BoardView  # type: ignore[import]
from monitoring.events import EventType, MonitoringEvent  # type: ignore[import]
from monitoring.logger import JsonFileLogger  # type: ignore[import]
from monitoring.logging_config import configure_logging  # type: ignore[import]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _print_header(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def build_room(tile_size: float) -> GridHeightSampler:
    """Floor 0..29 x 0..19 at 0.0 with a box, plus a platform at 0.5."""
    heights = rectangle(0, 0, 29, 19, elevation=0.0)
    # box on the floor: its top is far above step height
    heights.update(rectangle(12, 6, 15, 9, elevation=0.9))
    # gap, then a raised platform
    for x in range(20, 23):
        for y in range(0, 20):
            heights.pop((x, y), None)
    heights.update(rectangle(23, 0, 29, 19, elevation=0.5))
    return GridHeightSampler(tile_size=tile_size, heights=heights)


def run(config: Optional[Path], profile: Optional[str], events_log: Optional[Path]) -> None:
    cfg = load_gameboard_config(config, profile)
    ts = cfg.model_settings.tile_size

    _print_header(f"Profile '{cfg.name}': tile_size={ts}, behaviour={cfg.agent.behaviour.name}")

    sampler = build_room(ts)
    factory = GameboardFactory()
    sink = JsonFileLogger(events_log, factory.bus) if events_log is not None else None

    board = factory.create(cfg.model_settings, sampler)
    view = BoardView(board)

    # Scan like a host would: sweep the origin over the room.
    height = 2.0
    scan_range = max(cfg.scan.range, 8 * ts)
    x = 0.0
    while x <= 30 * ts:
        z = 0.0
        while z <= 20 * ts:
            board.scan(Point3(x, height, z), scan_range)
            z += scan_range / 2
        x += scan_range / 2

    print(f"Area: {board.area:.3f} m², surfaces: {len(board.surfaces)}")

    start = Point3(2.5 * ts, 0.0, 10.5 * ts)
    goal = Point3(27.5 * ts, 0.5, 10.5 * ts)
    path = board.calculate_path(start, goal, cfg.agent)
    view.set_path(path)

    _print_header(f"Path floor -> platform: {path.status.name}, cost={path.cost:.3f}")
    view.print()

    # Re-plan when a scan removes tiles the path runs through.
    stale: List[bool] = []
    current: List[GameboardPath] = [path]

    def on_event(event: MonitoringEvent) -> None:
        if event.event_type != EventType.GAMEBOARD_UPDATED:
            return
        if event.is_full_reset or current[0].crosses(event.removed_tiles):
            stale.append(True)

    factory.bus.subscribe(on_event)

    obstacle = path.waypoints[len(path.waypoints) // 3].tile_coordinates if path.waypoints else (5, 10)
    sampler.block([obstacle])
    board.scan(Point3((obstacle[0] + 0.5) * ts, height, (obstacle[1] + 0.5) * ts), 4 * ts)

    if stale:
        current[0] = board.calculate_path(start, goal, cfg.agent)
        view.set_path(current[0])
        _print_header(
            f"Obstacle at {obstacle}; re-planned: {current[0].status.name}, cost={current[0].cost:.3f}"
        )
    else:
        _print_header(f"Obstacle at {obstacle} did not touch the path")
    view.print()

    board.destroy()
    view.close()
    if sink is not None:
        sink.close()
    _print_header("Smoke run completed")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Smoke test harness for the Gameboard engine",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to gameboard.yaml")
    parser.add_argument("--profile", default=None, help="Profile name inside the config file")
    parser.add_argument(
        "--events-log",
        type=Path,
        default=None,
        help="Write gameboard notifications as JSON lines to this file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    run(args.config, args.profile, args.events_log)


if __name__ == "__main__":
    main()
