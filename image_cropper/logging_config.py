"""
Logging configuration for the ``image_cropper`` namespace.

Modules log through ``logging.getLogger(__name__)``; this only attaches
handlers, so importing the core never configures logging by itself.
"""

import logging
import os
import sys

from image_cropper.config import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL_ENV


def resolve_level(level: int | str | None = None) -> int:
    """Turn a level name or number into a logging level, falling back to the environment, then INFO."""
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Configures the package logger with a stdout handler and an optional file handler.

    Args:
        level: Logging level; defaults to $IMAGE_CROPPER_LOG_LEVEL or INFO.
        log_file: Optional path to also write logs to.
    """
    level = resolve_level(level)
    logger = logging.getLogger("image_cropper")
    logger.setLevel(level)

    # Avoid duplicate handlers when called twice
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s", logging.getLevelName(level))
    return logger
