from __future__ import annotations

import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from gameboard.path import AgentConfiguration, PathFindingBehaviour
from gameboard.settings import ConfigurationError, ModelSettings

from .schema import GameboardProfile, ScanSettings


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG = CONFIG_ROOT / "gameboard.yaml"

# Overrides the `profile:` key of the config file when set.
PROFILE_ENV_VAR = "GAMEBOARD_PROFILE"

_MODEL_KEYS = {f.name for f in fields(ModelSettings)}
_AGENT_KEYS = {"jump_penalty", "max_jump_distance", "behaviour"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def _select_profile(cfg: Dict[str, Any], override: Optional[str]) -> Tuple[str, Dict[str, Any]]:
    """Return (active_profile_name, active_profile_mapping)."""
    profile_name = override or os.getenv(PROFILE_ENV_VAR) or cfg.get("profile")
    if not profile_name:
        raise ConfigurationError("gameboard.yaml must define a 'profile' key.")
    profiles = cfg.get("profiles")
    if not isinstance(profiles, dict):
        raise ConfigurationError("gameboard.yaml must define a 'profiles' mapping.")
    if profile_name not in profiles:
        raise KeyError(f"Profile '{profile_name}' not found in gameboard.yaml profiles.")
    profile = profiles[profile_name] or {}
    if not isinstance(profile, dict):
        raise ConfigurationError(f"Profile '{profile_name}' must be a mapping.")
    return profile_name, profile


def _section(profile: Dict[str, Any], key: str, allowed: set) -> Dict[str, Any]:
    raw = profile.get(key) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"'{key}' section must be a mapping.")
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{key}' section: {', '.join(unknown)}")
    return raw


def _parse_behaviour(value: Any) -> PathFindingBehaviour:
    if isinstance(value, PathFindingBehaviour):
        return value
    try:
        return PathFindingBehaviour[str(value).strip().upper()]
    except KeyError:
        choices = ", ".join(b.name.lower() for b in PathFindingBehaviour)
        raise ConfigurationError(
            f"Unknown path finding behaviour '{value}' (expected one of: {choices})"
        ) from None


def _build_model_settings(raw: Dict[str, Any]) -> ModelSettings:
    try:
        return ModelSettings(**raw)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid model settings: {exc}") from exc


def _number(raw: Dict[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}.")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}.") from None


def _build_agent(raw: Dict[str, Any]) -> AgentConfiguration:
    kwargs: Dict[str, Any] = dict(raw)
    for key in ("jump_penalty", "max_jump_distance"):
        if key in kwargs:
            kwargs[key] = _number(kwargs, key, 0.0)
    if "behaviour" in kwargs:
        kwargs["behaviour"] = _parse_behaviour(kwargs["behaviour"])
    agent = AgentConfiguration(**kwargs)
    if agent.jump_penalty < 0:
        raise ConfigurationError("Jump penalty must not be negative.")
    if agent.max_jump_distance < 0:
        raise ConfigurationError("Max jump distance must not be negative.")
    return agent


def _build_scan(raw: Dict[str, Any]) -> ScanSettings:
    interval = _number(raw, "interval", 0.1)
    range_ = _number(raw, "range", 1.5)
    if not interval > 0:
        raise ConfigurationError("Scan interval must be greater than zero.")
    if not range_ > 0:
        raise ConfigurationError("Scan range must be greater than zero.")
    return ScanSettings(interval=interval, range=range_)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_gameboard_config(
    path: Optional[Path] = None,
    profile: Optional[str] = None,
) -> GameboardProfile:
    """
    Main entry point: returns a fully resolved GameboardProfile.

    The active profile is, in order: the `profile` argument, the
    GAMEBOARD_PROFILE environment variable, the file's `profile:` key.
    """
    cfg = _load_yaml(Path(path) if path is not None else DEFAULT_CONFIG)
    name, active = _select_profile(cfg, profile)

    model_settings = _build_model_settings(_section(active, "model", _MODEL_KEYS))
    agent = _build_agent(_section(active, "agent", _AGENT_KEYS))
    scan = _build_scan(_section(active, "scan", {"interval", "range"}))

    return GameboardProfile(
        name=name,
        model_settings=model_settings,
        agent=agent,
        scan=scan,
    )
