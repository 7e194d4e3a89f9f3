# src/monitoring/logging_config.py
"""
Logging setup for gameboard hosts and tools.

Call configure_logging() once from your entrypoint:

    from monitoring.logging_config import configure_logging
    configure_logging("DEBUG", log_file=Path("logs/gameboard/engine.log"))

Scan and path summaries from gameboard.model and gameboard.pathfinder are
logged at DEBUG; lifecycle misuse at WARNING. The GAMEBOARD_LOG_LEVEL
environment variable overrides the level passed in.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LEVEL_ENV_VAR = "GAMEBOARD_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(level: Union[int, str]) -> int:
    """Turn 'debug' / 'INFO' / 10 into a logging level; unknown names mean INFO."""
    override = os.getenv(LEVEL_ENV_VAR)
    if override:
        level = override
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
) -> None:
    """
    Attach a stdout handler (and optionally a file handler) to the root logger.

    Does nothing if the root logger already has handlers, so libraries and
    test runners that configured logging first keep their setup.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT)

    stream = logging.StreamHandler(stream=sys.stdout)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(resolve_level(level))


__all__ = ["configure_logging", "resolve_level", "LEVEL_ENV_VAR"]
