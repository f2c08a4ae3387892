"""Error handling with friendly messages."""

from __future__ import annotations


class DirIndexError(Exception):
    """Base exception for all dirindex errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(DirIndexError):
    """Configuration error."""

    pass


class ListingError(DirIndexError):
    """Listing operation error.

    Subclasses carry a stable machine-readable ``code`` used by the
    presentation layer when building error envelopes.
    """

    code = "LISTING_ERROR"


class SandboxViolationError(ListingError):
    """Requested path escapes the sandbox root."""

    code = "SANDBOX_VIOLATION"


class NotFoundError(ListingError):
    """Requested path does not exist."""

    code = "NOT_FOUND"


class NotADirectoryError(ListingError):
    """Requested path exists but is not a directory."""

    code = "NOT_A_DIRECTORY"


class ScanFailureError(ListingError):
    """I/O failure while enumerating a directory or reading a manifest."""

    code = "SCAN_FAILURE"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Cannot read '{path}': {reason}",
            "Check that the directory exists and is readable",
        )
