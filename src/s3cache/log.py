"""Logging setup for the s3cache command line.

Library modules only create module-level loggers; handlers are installed
here, by the CLI, and nowhere else.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from s3cache.core.exceptions import ConfigurationError


LOGGER_NAME = "s3cache"


def configure_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """Attach a Rich handler to the s3cache logger.

    Calling this again replaces the previous handler instead of stacking
    another one.

    Args:
        level: Level name such as "INFO" or "DEBUG".
        console: Console to log to; defaults to stderr.

    Returns:
        The configured package logger.

    Raises:
        ConfigurationError: If level is not a known level name.
    """
    name = level.strip().upper()
    if name not in logging.getLevelNamesMapping():
        raise ConfigurationError(
            f"Unknown log level '{level}'; use DEBUG, INFO, WARNING, or ERROR",
            setting="log-level",
        )

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        show_time=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(name)
    return logger
