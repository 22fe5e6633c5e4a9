"""
Logger configuration.

Installs one stdout handler on the root logger and quiets the HTTP and
database client libraries used by the storage adapters. Safe to call more
than once; each call replaces the previous handler.

Dependencies: logging (stdlib)
System role: Centralized logging configuration
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "qdrant_client", "sqlalchemy.engine")


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int = logging.INFO) -> None:
    """
    Route all records to stdout at ``level``.

    Args:
        level: Level name (case-insensitive) or number; unknown names fall back to INFO
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(stream)
    root.setLevel(_resolve_level(level))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
