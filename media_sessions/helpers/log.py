"""Logging helpers."""

from __future__ import annotations

import logging

from media_sessions.constants import LOGGER_NAME, VERBOSE_LOG_LEVEL

logging.addLevelName(VERBOSE_LOG_LEVEL, "VERBOSE")


def is_valid_log_level(level: str) -> bool:
    """Return if the given name is a known log level (including verbose)."""
    return level.upper() in logging.getLevelNamesMapping()


def setup_logging(level: str) -> logging.Logger:
    """Set the level of the package logger, return the logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    return logger
