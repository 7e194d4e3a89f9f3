# rich-based terminal view of a gameboard
# src/monitoring/board_view.py
"""
Terminal board view for the gameboard.

A lightweight read-only renderer (using `rich`) that draws:

- Tile grid:
    - one colour per surface
    - optional path overlay (walk steps and surface entries)

- Surface table:
    - id, tile count, mean elevation

It subscribes to the EventBus only to learn when its picture went stale
(GAMEBOARD_UPDATED) or the board is gone (GAMEBOARD_DESTROYED). Rendering
polls the board directly and never mutates it.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gameboard.gameboard import Gameboard
from gameboard.geometry import Bounds, Tile
from gameboard.path import MovementType, Path

from .bus import EventBus
from .events import EventType, MonitoringEvent


SURFACE_PALETTE = (
    "green",
    "cyan",
    "yellow",
    "magenta",
    "blue",
    "bright_green",
    "bright_cyan",
    "bright_yellow",
    "bright_magenta",
    "bright_blue",
)

TILE_CHAR = "■"
EMPTY_CHAR = "·"
WALK_CHAR = "o"
ENTRY_CHAR = "J"


# ============================================================
# Board View
# ============================================================

class BoardView:
    """
    Terminal renderer bound to one Gameboard and its EventBus.

    `stale` turns True whenever the board publishes an update and back to
    False after the next render().
    """

    def __init__(
        self,
        gameboard: Gameboard,
        bus: Optional[EventBus] = None,
        console: Optional[Console] = None,
        max_width: int = 80,
        max_height: int = 40,
    ) -> None:
        self._board = gameboard
        self._bus = bus if bus is not None else gameboard.bus
        self._console = console or Console()
        self._max_width = max_width
        self._max_height = max_height

        self._path: Optional[Path] = None
        self._stale = True
        self._destroyed = False

        self._bus.subscribe(self._on_event)

    # --------------------------------------------------------
    # State
    # --------------------------------------------------------

    @property
    def stale(self) -> bool:
        return self._stale

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def set_path(self, path: Optional[Path]) -> None:
        """Overlay path on the next render (None removes the overlay)."""
        self._path = path
        self._stale = True

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        if event.correlation_id != self._board.board_id:
            return

        if event.event_type == EventType.GAMEBOARD_UPDATED:
            self._stale = True
            if event.is_full_reset or (
                self._path is not None and self._path.crosses(event.removed_tiles)
            ):
                self._path = None

        elif event.event_type == EventType.GAMEBOARD_DESTROYED:
            self._destroyed = True
            self._path = None
            self._stale = True

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _colour_map(self) -> Dict[Tile, str]:
        colours: Dict[Tile, str] = {}
        for surface in self._board.surfaces:
            colour = SURFACE_PALETTE[surface.surface_id % len(SURFACE_PALETTE)]
            for coord in surface.coordinates():
                colours[coord] = colour
        return colours

    def _path_overlay(self) -> Dict[Tile, str]:
        overlay: Dict[Tile, str] = {}
        if self._path is None:
            return overlay
        for waypoint in self._path.waypoints:
            if waypoint.movement_type is MovementType.SURFACE_ENTRY:
                overlay[waypoint.tile_coordinates] = ENTRY_CHAR
            else:
                overlay.setdefault(waypoint.tile_coordinates, WALK_CHAR)
        return overlay

    def _extent(self, coords) -> Optional[Bounds]:
        coords = list(coords)
        if not coords:
            return None
        xs = [c[0] for c in coords]
        ys = [c[1] for c in coords]
        min_x, min_y = min(xs), min(ys)
        max_x = min(max(xs), min_x + self._max_width - 1)
        max_y = min(max(ys), min_y + self._max_height - 1)
        return Bounds(min_x, min_y, max_x, max_y)

    def render_grid(self) -> Text:
        """Tile grid, highest row first so +z points up on screen."""
        colours = self._colour_map()
        overlay = self._path_overlay()
        extent = self._extent(list(colours) + list(overlay))

        txt = Text()
        if extent is None:
            txt.append("<empty board>", style="dim")
            return txt

        for y in range(extent.max_y, extent.min_y - 1, -1):
            for x in range(extent.min_x, extent.max_x + 1):
                coord = (x, y)
                colour = colours.get(coord)
                mark = overlay.get(coord)
                if mark is not None:
                    txt.append(mark, style=f"bold red on {colour}" if colour else "bold red")
                elif colour is not None:
                    txt.append(TILE_CHAR, style=colour)
                else:
                    txt.append(EMPTY_CHAR, style="dim")
            txt.append("\n")
        return txt

    def render_surfaces(self) -> Table:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Surface", style="bold", justify="right")
        table.add_column("Tiles", justify="right")
        table.add_column("Elevation", justify="right")

        surfaces = self._board.surfaces
        if not surfaces:
            table.add_row("<none>", "-", "-")
        for surface in surfaces:
            colour = SURFACE_PALETTE[surface.surface_id % len(SURFACE_PALETTE)]
            table.add_row(
                Text(str(surface.surface_id), style=colour),
                str(len(surface)),
                f"{surface.elevation:.3f}",
            )
        return table

    def _subtitle(self) -> str:
        parts = [f"area={self._board.area:.3f} m²"]
        if self._path is not None:
            parts.append(
                f"path={self._path.status.name.lower()} "
                f"cost={self._path.cost:.2f} jumps={self._path.jump_count}"
            )
        return "  ".join(parts)

    def render(self) -> Panel:
        """Build the full panel and clear the stale flag."""
        self._stale = False
        if self._destroyed:
            return Panel(
                Text("Gameboard destroyed", style="bold red"),
                title=f"Gameboard {self._board.board_id[:8]}",
                border_style="red",
            )
        return Panel(
            Group(self.render_grid(), self.render_surfaces()),
            title=f"Gameboard {self._board.board_id[:8]}",
            subtitle=self._subtitle(),
            border_style="cyan",
        )

    def print(self) -> None:
        self._console.print(self.render())

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(
        self,
        tick: Callable[[], None],
        frames: Optional[int] = None,
        interval: float = 0.25,
    ) -> int:
        """
        Drive the host loop and live-refresh the view on the current thread.

        tick() is the host's per-frame work (scan, prune, re-plan). It runs
        before each redraw, so the board is never read while it is being
        mutated. Stops when the board is destroyed or after `frames` ticks;
        returns the number of ticks run.
        """
        count = 0
        with Live(self.render(), console=self._console, auto_refresh=False) as live:
            while not self._destroyed:
                if frames is not None and count >= frames:
                    break
                tick()
                count += 1
                if self._stale:
                    live.update(self.render(), refresh=True)
                if interval > 0:
                    time.sleep(interval)
            live.update(self.render(), refresh=True)
        return count


__all__ = ["BoardView", "SURFACE_PALETTE"]
