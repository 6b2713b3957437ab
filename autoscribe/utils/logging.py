"""Logging setup for autoscribe.

All modules log through children of the "autoscribe" logger. Level,
format and an optional log file come from the logging section of
config.yaml.
"""

import logging
import sys
from typing import Optional

_LOGGER_NAME = "autoscribe"


def _make_handler(
    handler: logging.Handler, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Attach console and optional file handlers to the package logger.

    Handlers from an earlier call are closed and removed first, so
    calling this more than once does not duplicate output or leak files.
    The console handler writes to stderr; stdout is reserved for command
    output such as dry-run listings.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        log_format: logging.Formatter format string.
        log_file: Also append log records to this file when given.

    Returns:
        The configured "autoscribe" logger.
    """
    package_logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    package_logger.setLevel(numeric_level)
    formatter = logging.Formatter(log_format)

    package_logger.addHandler(
        _make_handler(logging.StreamHandler(sys.stderr), numeric_level, formatter)
    )
    if log_file:
        package_logger.addHandler(
            _make_handler(logging.FileHandler(log_file), numeric_level, formatter)
        )

    package_logger.debug("Logging initialized at level %s", level)
    return package_logger
