"""
Logging setup for VlogSphere, built on loguru.

Modules obtain a bound logger with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once at startup to pick the level.
"""

import os
import sys

from loguru import logger as _logger

from vlogsphere.config import CONFIG

_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_configured = False


def setup_logging(level: str | None = None) -> None:
    """
    Configure the global loguru sink.

    Args:
        level: Minimum level to emit. Falls back to LOGURU_LEVEL, then
            CONFIG.LOG_LEVEL.
    """
    global _configured

    level = level or os.getenv("LOGURU_LEVEL") or CONFIG.LOG_LEVEL
    _logger.remove()
    _logger.configure(extra={"name": "vlogsphere"})
    _logger.add(sys.stderr, level=level.upper(), format=_FORMAT)
    _configured = True


def get_logger(name: str):
    """Return a loguru logger bound to the given module name."""
    if not _configured:
        _logger.configure(extra={"name": "vlogsphere"})
    return _logger.bind(name=name)
