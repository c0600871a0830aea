"""Logging configuration for stagecraft.

Uses Python's standard logging module with support for:
- File logging via config or STAGECRAFT_LOG environment variable
- Verbosity levels: error(0), info(1), debug(2)
- Stderr fallback when no log file is configured
- Structured LogLine records for collaborators that want category/level lines
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stagecraft.config.schema import LoggingConfig

# Module-level logger
logger = logging.getLogger("stagecraft")

_initialized = False

# Map string level names to logging constants
_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Map LogLine / verbose levels to log levels (0=errors, 1=info, 2=debug)
_VERBOSITY_MAP = {
    0: logging.ERROR,
    1: logging.INFO,
    2: logging.DEBUG,
}


@dataclass(slots=True)
class LogLine:
    """A structured log line.

    Attributes:
        category: Component that produced the line (e.g. "api", "agent")
        message: Human-readable message
        level: 0 = error, 1 = info, 2 = debug
        auxiliary: Optional structured extras
    """

    message: str
    category: str | None = None
    level: int = 1
    auxiliary: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> LogLine:
        """Build a LogLine from a wire payload (dict or bare string)."""
        if isinstance(payload, dict):
            level = payload.get("level", 1)
            return cls(
                message=str(payload.get("message", "")),
                category=payload.get("category"),
                level=level if isinstance(level, int) else 1,
                auxiliary=payload.get("auxiliary") or {},
            )
        return cls(message=str(payload))


LogSink = Callable[[LogLine], None]


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Initialize logging based on configuration.

    Call this once at startup. Subsequent calls are no-ops.

    Verbosity levels (config.logging.verbose):
        0 = error  - errors only
        1 = info   - normal operation (default)
        2 = debug  - step-level diagnostics

    Args:
        config: Optional LoggingConfig with level, verbose, and file settings.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    # verbose (int) takes precedence over level (str)
    log_level = logging.INFO
    if config:
        if config.verbose is not None:
            log_level = _VERBOSITY_MAP.get(config.verbose, logging.DEBUG)
        elif config.level:
            log_level = _LEVEL_MAP.get(config.level.upper(), logging.INFO)

    logger.setLevel(log_level)

    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s [%(name)s]: %(message)s", datefmt="%H:%M:%S"
    )

    log_path = config.file if config and config.file else os.environ.get("STAGECRAFT_LOG")

    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[stagecraft] Failed to open log file: {e}", file=sys.stderr)
                _add_stderr_handler(formatter, log_level)
    elif sys.stderr.isatty():
        _add_stderr_handler(formatter, log_level)


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    """Add a stderr handler to the logger."""
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for a child logger (e.g., "remote", "agent").
              If None, returns the root stagecraft logger.
    """
    if name:
        return logger.getChild(name)
    return logger


def default_log_sink(line: LogLine) -> None:
    """Route a LogLine to the stagecraft logger for its category."""
    level = _VERBOSITY_MAP.get(line.level, logging.DEBUG)
    get_logger(line.category).log(level, "%s", line.message)


def emit(sink: LogSink | None, category: str, message: str, level: int = 1) -> None:
    """Send a line to ``sink``, falling back to the stdlib logger."""
    line = LogLine(message=message, category=category, level=level)
    (sink or default_log_sink)(line)
