# HeightSampler interface definition
# src/gameboard/sampler.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .geometry import Point3


@dataclass(frozen=True)
class SampleResult:
    """Ground hit reported by a HeightSampler."""

    elevation: float
    blocked: bool = False


class HeightSampler(Protocol):
    """Abstract sensing source the model scans through.

    In a 3D host this is a downward physics raycast against the environment
    mesh; any other source (depth buffer lookup, simulated sensor, heightmap)
    works as long as it honours this contract:

    - one call per sampled tile per scan
    - no side effects visible to the model
    - None means "no ground here"
    """

    def sample(
        self,
        world_point: Point3,
        max_distance: float,
        collision_filter: Optional[Any] = None,
    ) -> Optional[SampleResult]:
        """Look straight down from world_point for at most max_distance."""
        ...


__all__ = ["SampleResult", "HeightSampler"]
