"""Logging helpers shared by every fx_radar module."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL_ENV = "FX_RADAR_LOG_LEVEL"

_PACKAGE_LOGGER: Optional[logging.Logger] = None


def configured_level() -> int:
    """Level named by ``FX_RADAR_LOG_LEVEL``; unknown names fall back to INFO."""

    name = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str = "fx_radar") -> logging.Logger:
    """Return the logger for ``name``, configuring output on first use."""
    global _PACKAGE_LOGGER
    if _PACKAGE_LOGGER is None:
        logging.basicConfig(level=configured_level(), format=LOG_FORMAT)
        _PACKAGE_LOGGER = logging.getLogger("fx_radar")
    return logging.getLogger(name)
