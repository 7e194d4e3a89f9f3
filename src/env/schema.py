# GameboardProfile and ScanSettings dataclasses
# src/env/schema.py

from dataclasses import dataclass

from gameboard.path import AgentConfiguration
from gameboard.settings import ModelSettings


@dataclass(frozen=True)
class ScanSettings:
    """How often and how far a host scans around its origin."""
    interval: float  # seconds between scans
    range: float     # side length (world units) of the scanned square


@dataclass(frozen=True)
class GameboardProfile:
    """Resolved gameboard configuration for one active profile."""
    name: str
    model_settings: ModelSettings
    agent: AgentConfiguration
    scan: ScanSettings
