# backend/cryptofolio/utils/logging.py
"""
Logging configuration for Cryptofolio.

One stdout handler on the root logger, with every record stamped with the
request's correlation id. Output is human-readable text by default or one
JSON object per line with LOG_FORMAT=json.

Log Levels:
    DEBUG   - Cache hits/misses, provider payload details
    INFO    - Business events (user registered, holding added, cache flushed)
    WARNING - Recoverable issues (retries, version conflicts, mock fallback)
    ERROR   - Failures requiring attention (provider down, unhandled errors)

Environment Configuration:
    LOG_LEVEL=DEBUG|INFO|WARNING|ERROR|CRITICAL
    LOG_FORMAT=text|json
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from cryptofolio.config import settings
from cryptofolio.utils.context import get_correlation_id

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "-"

# Third-party loggers raised to WARNING
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "urllib3",
    "passlib",
    "asyncio",
]

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# LogRecord attributes that are not user-supplied `extra` fields
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
})


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to every record passing through the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record:

    {"timestamp": "...", "level": "INFO", "logger": "cryptofolio.routers.portfolio",
     "correlation_id": "abc-123", "message": "...", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        # default=str keeps Decimals and datetimes in extra serialisable
        return json.dumps(entry, default=str)


def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
) -> None:
    """
    Configure the root logger. Call once at startup, before the app is built.

    Args:
        level: Overrides settings.log_level
        log_format: 'text' or 'json'; overrides settings.log_format

    Raises:
        ValueError: Unknown log level
    """
    level_name = (level or settings.log_level).upper().strip()
    if level_name not in _LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_name}'. "
            f"Valid levels are: {', '.join(_LEVELS)}"
        )
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(_LEVELS[level_name])
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}"
    )
