"""Logging configuration for the catalog search core.

Log records carry the id of the search session that produced them, so
interleaved output from concurrent sessions can be told apart.
"""

import logging
import sys
from contextvars import ContextVar
from typing import TextIO

from catalog_search.config import get_settings

LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(session_id)s | "
    "%(name)s:%(funcName)s:%(lineno)d | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty libraries capped at WARNING
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)


class SessionIdFilter(logging.Filter):
    """Stamp each record with the current search session id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = session_id_var.get() or "N/A"
        return True


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name for terminal output."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # Other handlers share the record, so restore the plain name afterwards
        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure root logging for the catalog search core.

    Replaces any existing root handlers with a single stream handler that
    tags records with the search session id. Colors are used only when the
    stream is a terminal.

    Args:
        level: Log level name (default: settings.log_level)
        stream: Output stream (default: stdout)
    """
    level = (level or get_settings().log_level).upper()
    stream = stream or sys.stdout

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    formatter_class = ColoredFormatter if stream.isatty() else logging.Formatter
    handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SessionIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured with level: {level}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_session_id(session_id: str) -> None:
    """Bind ``session_id`` to log records emitted from the current context."""
    session_id_var.set(session_id)


def clear_session_id() -> None:
    session_id_var.set(None)
