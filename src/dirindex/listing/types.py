"""Types for the listing engine.

ASCII-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from urllib.parse import urlsplit


def is_url(path: str) -> bool:
    """Return True for a well-formed absolute URL (scheme and host present)."""
    try:
        parts = urlsplit(path)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc) and not any(c.isspace() for c in path)


@dataclass(frozen=True)
class Entry:
    """One listed item, real or virtual."""

    name: str
    path: str
    is_dir: bool
    size: int
    mtime: float
    mime_type: str = ""

    @property
    def is_external(self) -> bool:
        return is_url(self.path)

    @property
    def extension(self) -> str:
        """Lower-cased substring after the last '.' in name ('' if none)."""
        _stem, dot, ext = self.name.rpartition(".")
        return ext.lower() if dot else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "is_dir": self.is_dir,
            "size": self.size,
            "mtime": self.mtime,
            "mime_type": self.mime_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Entry:
        return cls(
            name=str(data["name"]),
            path=str(data["path"]),
            is_dir=bool(data["is_dir"]),
            size=int(data["size"]),
            mtime=float(data["mtime"]),
            mime_type=str(data.get("mime_type", "")),
        )


class SortKey(StrEnum):
    """Sort orders supported by the query engine."""

    NAME = "name"
    SIZE = "size"
    TIME = "time"

    @classmethod
    def parse(cls, value: str | SortKey | None) -> SortKey:
        """Map a client-supplied value to a SortKey; unknown values sort by name."""
        if isinstance(value, SortKey):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.NAME


@dataclass
class ManifestRecord:
    """In-progress manifest record.

    Accumulates optional fields and only yields a complete record once the
    required field set (filename, url, type) is present.
    """

    filename: str | None = None
    url: str | None = None
    type: str | None = None
    extras: dict[str, str] = field(default_factory=dict)

    def set(self, key: str, value: str) -> None:
        if key in ("filename", "name"):
            self.filename = value or None
        elif key == "url":
            self.url = value or None
        elif key == "type":
            self.type = value or None
        else:
            self.extras[key] = value

    def is_complete(self) -> bool:
        return self.filename is not None and self.url is not None and self.type is not None

    def is_empty(self) -> bool:
        return self.filename is None and self.url is None and self.type is None and not self.extras


@dataclass(frozen=True)
class ManifestParseResult:
    """Outcome of parsing one manifest."""

    entries: list[Entry]
    dropped: int = 0
    rejected: int = 0


@dataclass(frozen=True)
class AggregateStats:
    """Summary of one aggregation, used for logging and diagnostics."""

    real_count: int = 0
    virtual_count: int = 0
    cache_hit: bool = False
    persisted: bool = False
    manifests: int = 0
    dropped: int = 0
    rejected: int = 0

    def as_summary(self) -> dict[str, Any]:
        return {
            "real_count": self.real_count,
            "virtual_count": self.virtual_count,
            "cache_hit": self.cache_hit,
            "persisted": self.persisted,
            "manifests": self.manifests,
            "dropped": self.dropped,
            "rejected": self.rejected,
        }
