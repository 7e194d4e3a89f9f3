#tests/test_monitoring_board_view.py
"""
Smoke tests for monitoring.board_view.BoardView.

Covers:
- Grid and surface table render cleanly
- Stale flag follows update notifications
- Path overlay is drawn and dropped when the path goes stale
- Events from other boards are ignored
"""

from __future__ import annotations

import io

from rich.console import Console

from gameboard import AgentConfiguration, Gameboard, ModelSettings, Point3
from gameboard.testing.fakes import GridHeightSampler, rectangle
from monitoring.board_view import ENTRY_CHAR, TILE_CHAR, WALK_CHAR, BoardView
from monitoring.bus import EventBus


def make_view():
    heights = rectangle(0, 0, 4, 4)
    heights.update(rectangle(10, 0, 14, 4))
    sampler = GridHeightSampler(tile_size=1.0, heights=heights)
    bus = EventBus()
    board = Gameboard(ModelSettings(tile_size=1.0, kernel_size=1), sampler, bus=bus)
    console = Console(file=io.StringIO(), width=120, color_system=None)
    view = BoardView(board, console=console)
    return board, sampler, view, console


def scan_all(board: Gameboard) -> None:
    board.scan(Point3(7.5, 5.0, 2.5), 30.0)


def grid_rows(view: BoardView):
    return [row for row in view.render_grid().plain.split("\n") if row]


def test_view_renders_grid_and_table() -> None:
    board, _, view, console = make_view()
    scan_all(board)

    view.print()
    output = console.file.getvalue()

    assert "Surface" in output
    assert "Elevation" in output
    rows = grid_rows(view)
    assert len(rows) == 5
    assert all(len(row) == 15 for row in rows)
    assert rows[0].count(TILE_CHAR) == 10


def test_empty_board_renders_placeholder() -> None:
    _, _, view, _ = make_view()
    assert "<empty board>" in view.render_grid().plain


def test_stale_flag_follows_updates() -> None:
    board, _, view, _ = make_view()
    assert view.stale

    view.render()
    assert not view.stale

    scan_all(board)
    assert view.stale


def test_path_overlay_and_invalidation() -> None:
    board, sampler, view, _ = make_view()
    scan_all(board)
    agent = AgentConfiguration(jump_penalty=2.0, max_jump_distance=6.0)
    path = board.calculate_path(Point3(0.5, 0.0, 0.5), Point3(14.5, 0.0, 0.5), agent)

    view.set_path(path)
    bottom = grid_rows(view)[-1]
    assert bottom[10] == ENTRY_CHAR
    assert bottom.count(WALK_CHAR) == 9

    sampler.block([(12, 0)])
    board.scan(Point3(12.5, 5.0, 0.5), 0.0)

    assert WALK_CHAR not in view.render_grid().plain


def test_destroyed_board_and_foreign_events() -> None:
    board, _, view, console = make_view()
    scan_all(board)
    view.render()

    other = Gameboard(ModelSettings(), GridHeightSampler(tile_size=0.15), bus=board.bus)
    other.destroy()
    assert not view.destroyed
    assert not view.stale

    board.destroy()
    assert view.destroyed

    view.print()
    assert "Gameboard destroyed" in console.file.getvalue()
    view.close()
    assert board.bus.subscriber_count == 0


def test_run_drives_ticks_on_the_same_thread() -> None:
    board, _, view, _ = make_view()
    origins = [Point3(2.5, 5.0, 2.5), Point3(12.5, 5.0, 2.5)]
    areas = []

    def tick() -> None:
        board.scan(origins[len(areas) % 2], 6.0)
        areas.append(board.area)

    ran = view.run(tick, frames=4, interval=0.0)

    assert ran == 4
    assert areas[0] == 25.0
    assert areas[-1] == 50.0
    assert not view.stale
    assert not view.destroyed


def test_run_stops_when_board_is_destroyed() -> None:
    board, _, view, console = make_view()
    calls = []

    def tick() -> None:
        calls.append(len(calls))
        if len(calls) == 1:
            scan_all(board)
        elif len(calls) == 3:
            board.destroy()

    ran = view.run(tick, frames=10, interval=0.0)

    assert ran == 3
    assert view.destroyed
    assert "Gameboard destroyed" in console.file.getvalue()
