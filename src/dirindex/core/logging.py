"""Centralized logging for dirindex.

Four verbosity levels:
- QUIET (0): warnings + errors
- NORMAL (1): info + warnings + errors
- VERBOSE (2): detailed info
- DEBUG (3): everything including internal state

Usage:
    from dirindex.core.logging import get_logger, set_verbosity

    logger = get_logger(__name__)
    set_verbosity(2)

    logger.verbose("Scanning /srv/files/docs")
    logger.warning("Manifest record dropped")

Every emitted line is also published to the process-wide LogBus so that
other components (CLI, web UI, tests) can observe log output without
capturing stdout.
"""

from __future__ import annotations

import contextlib
import sys
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum

from dirindex.core.config import LoggingPolicy


class VerbosityLevel(IntEnum):
    """Verbosity levels."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


_VERBOSITY: VerbosityLevel = VerbosityLevel.NORMAL
_USE_COLORS: bool = True


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    message: str
    logger_name: str
    created: float = field(default_factory=time.time)

    @property
    def plain(self) -> str:
        return f"[{self.level_name.lower()}] {self.message}"


class LogBus:
    """Fail-safe fan-out of log records to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[tuple[str | None, Callable[[LogRecord], None]]] = []

    def subscribe(
        self, cb: Callable[[LogRecord], None], *, level_name: str | None = None
    ) -> None:
        self._subscribers.append((level_name, cb))

    def unsubscribe(self, cb: Callable[[LogRecord], None]) -> None:
        self._subscribers = [(lvl, sub) for lvl, sub in self._subscribers if sub is not cb]

    def publish(self, record: LogRecord) -> None:
        for level_name, cb in list(self._subscribers):
            if level_name is not None and level_name != record.level_name:
                continue
            try:
                cb(record)
            except Exception:
                # Must not go through the logger again.
                with contextlib.suppress(Exception):
                    sys.stderr.write("LogBus subscriber raised; suppressed.\n" + traceback.format_exc())

    def clear(self) -> None:
        self._subscribers.clear()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS


def set_verbosity(level: int | VerbosityLevel) -> None:
    """Set global verbosity level.

    Args:
        level: Verbosity level (0-3 or VerbosityLevel enum)
    """
    global _VERBOSITY
    _VERBOSITY = VerbosityLevel(level)


def get_verbosity() -> VerbosityLevel:
    return _VERBOSITY


def set_colors(enabled: bool) -> None:
    global _USE_COLORS
    _USE_COLORS = enabled


def apply_logging_policy(policy: LoggingPolicy) -> None:
    """Map a resolved LoggingPolicy onto the global verbosity."""
    if policy.level_name == "debug":
        set_verbosity(VerbosityLevel.DEBUG)
    elif policy.level_name == "verbose":
        set_verbosity(VerbosityLevel.VERBOSE)
    elif policy.emit_info:
        set_verbosity(VerbosityLevel.NORMAL)
    else:
        set_verbosity(VerbosityLevel.QUIET)


class DirIndexLogger:
    """Logger with verbosity support."""

    COLORS = {
        "DEBUG": "\033[36m",
        "VERBOSE": "\033[34m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "RESET": "\033[0m",
    }

    def __init__(self, name: str) -> None:
        self.name = name

    def _log(self, level: VerbosityLevel, level_name: str, message: str) -> None:
        if level > _VERBOSITY:
            return

        get_log_bus().publish(
            LogRecord(level_name=level_name, message=message, logger_name=self.name)
        )

        # stdout carries only info/verbose/debug.
        stream = sys.stderr if level_name in ("WARNING", "ERROR") else sys.stdout
        if _USE_COLORS and stream.isatty():
            color = self.COLORS.get(level_name, "")
            print(f"{color}[{level_name.lower()}]{self.COLORS['RESET']} {message}", file=stream)
        else:
            print(f"[{level_name.lower()}] {message}", file=stream)

    def debug(self, message: str) -> None:
        self._log(VerbosityLevel.DEBUG, "DEBUG", message)

    def verbose(self, message: str) -> None:
        self._log(VerbosityLevel.VERBOSE, "VERBOSE", message)

    def info(self, message: str) -> None:
        self._log(VerbosityLevel.NORMAL, "INFO", message)

    def warning(self, message: str) -> None:
        self._log(VerbosityLevel.QUIET, "WARNING", message)

    def error(self, message: str) -> None:
        # Errors are always shown.
        self._log(VerbosityLevel.QUIET, "ERROR", message)


_LOGGERS: dict[str, DirIndexLogger] = {}


def get_logger(name: str = "dirindex") -> DirIndexLogger:
    """Get logger instance for module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = DirIndexLogger(name)
    return _LOGGERS[name]
