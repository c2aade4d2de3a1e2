"""Configuration management for the daily budget tracker.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in daily_budget/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("BUDGET_DB_PATH", DATA_DIR / "daily_budget.db")
).resolve()

# CSV exports land in the user's Downloads folder unless overridden
EXPORT_DIR = Path(
    os.getenv("BUDGET_EXPORT_DIR", Path.home() / "Downloads")
)

# Settings row defaults
DEFAULT_DAILY_ALLOCATION = 50.0
DEFAULT_MONTHLY_NET_INCOME = 0.0

LOG_LEVEL = os.getenv("BUDGET_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, DB_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger once.

    Calling this repeatedly (Streamlit re-runs the script on every
    interaction) does not stack handlers.
    """
    logger = logging.getLogger("daily_budget")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level or LOG_LEVEL)
    return logger
