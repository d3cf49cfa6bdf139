"""Centralised logging configuration.

Importing this module applies the default format once. The level comes from
``ESCALE_LOG_LEVEL`` (default ``INFO``). Other modules should simply import
`logging` and call `logging.getLogger(__name__)`.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """(Re)apply the package-wide logging format at *level*."""
    level = level or os.getenv("ESCALE_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


configure_logging()

__all__ = ["logging", "configure_logging", "LOG_FORMAT"]
