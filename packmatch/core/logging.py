"""Structured logging configuration for packmatch.

Lines are key=value pairs. Search and probe timings (fields ending in
``_ms``) are rounded and suffixed, enum states are logged by value, and
free text such as queries is quoted so a line splits cleanly on spaces:

    level=INFO module=search_session message="Search complete" city=Paris state=local_results elapsed_ms=3.42ms
"""

import logging
import sys
from enum import Enum
from typing import Any

# Always printed first, in this order
_LEADING_FIELDS = ("timestamp", "level", "module", "function", "message", "city")


def _format_value(key: str, value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if key.endswith("_ms") and isinstance(value, int | float) and not isinstance(value, bool):
        return f"{value:.2f}ms"
    text = str(value)
    if not text or any(c.isspace() for c in text) or '"' in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """key=value formatter with latency and state formatting."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured output."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        if hasattr(record, "city"):
            log_data["city"] = record.city

        if hasattr(record, "extra_data"):
            for key, value in record.extra_data.items():
                if key not in _LEADING_FIELDS:
                    log_data[key] = value

        line = " ".join(f"{k}={_format_value(k, v)}" for k, v in log_data.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        # Debug output in dev only
        try:
            from packmatch.core.config import get_settings

            settings = get_settings()
            logger.setLevel(logging.DEBUG if settings.PACKMATCH_ENV == "dev" else logging.INFO)
        except Exception:
            logger.setLevel(logging.INFO)

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Context fields; ``city`` is promoted next to the message
    """
    extra: dict[str, Any] = {}
    if "city" in kwargs:
        extra["city"] = kwargs.pop("city")
    extra["extra_data"] = kwargs

    logger.log(level, msg, extra=extra)
