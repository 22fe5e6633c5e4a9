"""
Structured logging helpers.

Context values attached through ``extra`` are flattened to short strings:
collections become item counts and long strings are truncated, so an
ingestion report or a list of failed document IDs never floods a log line.
Keys that clash with LogRecord attributes are prefixed with ``ctx_``.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any

_RESERVED_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Render a context value for a log record.

    Args:
        value: Any value
        max_length: Longer renderings are cut and annotated with the full length

    Returns:
        str: ``list(3 items)``, ``dict(2 keys)``, or ``str(value)`` truncated
    """
    if value is None:
        return "None"
    if isinstance(value, (list, tuple, set, frozenset)):
        rendered = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        rendered = f"dict({len(value)} keys)"
    else:
        try:
            rendered = value if isinstance(value, str) else str(value)
        except Exception as e:
            return f"<unable to log: {type(e).__name__}>"

    if len(rendered) > max_length:
        return f"{rendered[:max_length]}... (truncated, {len(rendered)} total)"
    return rendered


def _as_extra(context: dict[str, Any]) -> dict[str, str]:
    return {
        (f"ctx_{key}" if key in _RESERVED_KEYS else key): safe_log_value(value)
        for key, value in context.items()
    }


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    """Log ``message`` at ``level`` with flattened context fields."""
    logger.log(level, message, extra=_as_extra(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log an error with its traceback plus ``error_type`` and ``error_msg`` fields.

    Args:
        logger: Target logger
        message: Log message
        exc: Exception being reported
        **context: Additional context fields
    """
    extra = _as_extra(context)
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = safe_log_value(str(exc))
    logger.error(message, exc_info=exc, extra=extra)
