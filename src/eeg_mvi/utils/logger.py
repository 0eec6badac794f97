"""Centralized logger factory used across the MVI engine.

Provides a single function `get_logger` that returns a configured `logging.Logger`.
All modules should import and use this logger factory to keep messages consistent.
"""

from __future__ import annotations
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def get_logger(name: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Create or retrieve a module-scoped logger.

    Args:
        name: Optional logger name (defaults to package-level 'eeg_mvi').
        level: Level applied the first time the logger is configured.

    Returns:
        Configured logging.Logger instance.
    """
    logger = logging.getLogger(name or "eeg_mvi")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger


def set_verbosity(verbose: bool) -> None:
    """Switch every already-created `eeg_mvi` logger between DEBUG and INFO."""
    level = logging.DEBUG if verbose else logging.INFO
    for name in list(logging.root.manager.loggerDict):
        if name == "eeg_mvi" or name.startswith("eeg_mvi."):
            logging.getLogger(name).setLevel(level)
