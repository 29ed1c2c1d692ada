"""Action log configuration."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from menukeeper.config.models import LoggingSettings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
PACKAGE_LOGGER = "menukeeper"


def configure_logging(settings: LoggingSettings, log_path: Path) -> logging.Handler:
    """Attach an append-only rotating log file to the package logger.

    Calling this again for the same file returns the existing handler.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    resolved = str(log_path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == resolved:
            return handler

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        resolved,
        mode="a",
        maxBytes=max(0, settings.max_size_mb) * 1024 * 1024,
        backupCount=max(0, settings.backup_count),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(_level(settings.level))
    return handler


def detach_logging(handler: logging.Handler) -> None:
    """Remove and close a handler returned by `configure_logging`."""
    logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)
    handler.close()


def _level(name: str) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else logging.INFO


__all__ = ["configure_logging", "detach_logging", "LOG_FORMAT"]
