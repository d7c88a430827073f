"""Logging setup: one stdout handler writing pipe-separated lines."""

import logging
import sys
from datetime import datetime, timezone

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiosqlite")


class StructuredFormatter(logging.Formatter):
    """`timestamp | LEVEL | logger | message`, UTC with milliseconds."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return f"{stamp:%Y-%m-%dT%H:%M:%S}.{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        line = f"{self.formatTime(record)} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO") -> None:
    """Send every logger to stdout at `level`. Calling it again replaces the handler.

    Args:
        level: Log level name; unknown names fall back to INFO
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
