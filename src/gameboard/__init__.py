# gameboard package
# src/gameboard/__init__.py
"""
Gameboard: navigable-area mapping and path finding over sampled terrain.

Exports:
    - Gameboard / GameboardFactory: public facade and single-board factory
    - ModelSettings, AgentConfiguration: configuration value types
    - Path, Waypoint and the path enums
    - Point3, Ray: world-space geometry
    - GameboardError, ConfigurationError: error types
"""

from __future__ import annotations

from .factory import GameboardFactory
from .gameboard import Gameboard
from .geometry import Point3, Ray
from .path import (
    AgentConfiguration,
    MovementType,
    Path,
    PathFindingBehaviour,
    PathStatus,
    Waypoint,
)
from .sampler import HeightSampler, SampleResult
from .settings import ConfigurationError, GameboardError, ModelSettings
from .surface import GridNode, Surface

__all__ = [
    "Gameboard",
    "GameboardFactory",
    "Point3",
    "Ray",
    "AgentConfiguration",
    "MovementType",
    "Path",
    "PathFindingBehaviour",
    "PathStatus",
    "Waypoint",
    "HeightSampler",
    "SampleResult",
    "ConfigurationError",
    "GameboardError",
    "ModelSettings",
    "GridNode",
    "Surface",
]
