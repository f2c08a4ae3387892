"""dirindex core: configuration, errors, logging and diagnostics."""

from dirindex.core.config import ConfigResolver, LoggingPolicy, default_config
from dirindex.core.errors import (
    ConfigError,
    DirIndexError,
    ListingError,
    NotADirectoryError,
    NotFoundError,
    SandboxViolationError,
    ScanFailureError,
)
from dirindex.core.events import EventBus, get_event_bus
from dirindex.core.logging import (
    VerbosityLevel,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    set_colors,
    set_verbosity,
)

__all__ = [
    # Config
    "ConfigResolver",
    "LoggingPolicy",
    "default_config",
    # Errors
    "DirIndexError",
    "ConfigError",
    "ListingError",
    "SandboxViolationError",
    "NotFoundError",
    "NotADirectoryError",
    "ScanFailureError",
    # Events
    "EventBus",
    "get_event_bus",
    # Logging
    "VerbosityLevel",
    "apply_logging_policy",
    "get_logger",
    "get_verbosity",
    "set_colors",
    "set_verbosity",
]
