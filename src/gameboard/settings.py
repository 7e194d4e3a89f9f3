# model settings and configuration errors
# src/gameboard/settings.py
"""
ModelSettings: immutable configuration of a GameboardModel.

Validation happens once, in __post_init__. A ModelSettings instance that
exists is a valid one; the rest of the engine never re-checks these values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

MAX_SLOPE_LIMIT = 40.0


class ConfigurationError(ValueError):
    """Raised for invalid gameboard settings or config files."""


class GameboardError(RuntimeError):
    """Raised for lifecycle misuse (destroyed board, second active board)."""


@dataclass(frozen=True)
class ModelSettings:
    """
    Calibration for free-area detection.

    tile_size:
        Metric size of a grid tile containing one node.
    flat_floor_tolerance:
        How far elevations may spread and still count as one flat floor
        despite meshing noise. Also the maximum elevation band of a Surface.
    max_slope:
        Maximum slope angle (degrees) an area can have and still be walkable.
    step_height:
        Maximum elevation difference between two adjacent tiles on the same
        Surface.
    kernel_size:
        Side length (tiles, odd) of the neighbourhood sampled around a tile
        to decide whether it is flat enough.
    max_sample_distance:
        Length of the downward sensing ray cast from the scan origin height.
    collision_filter:
        Opaque value handed to the HeightSampler unchanged.
    """

    tile_size: float = 0.15
    flat_floor_tolerance: float = 0.2
    max_slope: float = 25.0
    step_height: float = 0.1
    kernel_size: int = 3
    max_sample_distance: float = 10.0
    collision_filter: Optional[Any] = None

    def __post_init__(self) -> None:
        if not self.tile_size > 0:
            raise ConfigurationError("Tile size must be greater than zero.")
        if not self.flat_floor_tolerance > 0:
            raise ConfigurationError("Flat floor tolerance must be greater than zero.")
        if self.max_slope > MAX_SLOPE_LIMIT:
            raise ConfigurationError(
                f"MaxSlope must be less than or equal to {MAX_SLOPE_LIMIT:g} degrees."
            )
        if self.max_slope < 0:
            raise ConfigurationError("MaxSlope must be positive.")
        if not self.step_height > 0:
            raise ConfigurationError("Step height must be greater than zero.")
        if self.kernel_size < 1:
            raise ConfigurationError("Kernel size must be at least 1.")
        if self.kernel_size % 2 == 0:
            raise ConfigurationError("Kernel size must be an odd number.")
        if not self.max_sample_distance > 0:
            raise ConfigurationError("Max sample distance must be greater than zero.")

    @property
    def tile_area(self) -> float:
        return self.tile_size * self.tile_size


__all__ = [
    "ModelSettings",
    "ConfigurationError",
    "GameboardError",
    "MAX_SLOPE_LIMIT",
]
