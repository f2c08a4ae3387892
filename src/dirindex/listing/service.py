"""Listing service: the single entry point used by presentation layers.

Resolve -> aggregate (cache, scan, manifests) -> filter/sort. The service is
UI-agnostic; the HTTP API and the CLI both go through it.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from dirindex.core.config import ConfigResolver
from dirindex.core.diagnostics import observe_operation
from dirindex.core.errors import ListingError

from .aggregator import Aggregator
from .cache import SnapshotCache
from .paths import normalize_rel_path, resolve_listing_path
from .query import apply_query
from .types import Entry, SortKey


@dataclass(frozen=True)
class ListingSettings:
    """Resolved configuration for the listing engine."""

    root_dir: Path
    cache_dir: Path
    cache_enabled: bool = True
    ttl_seconds: int = 30
    max_payload_bytes: int = 50000
    hide_dotfiles: bool = True

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> ListingSettings:
        """Build settings from ConfigResolver.

        Configuration keys:
        - root_dir
        - listing.hide_dotfiles
        - cache.enabled, cache.ttl_seconds, cache.max_payload_bytes, cache.dir

        Raises:
            ConfigError: a value is missing or invalid
        """
        return cls(
            root_dir=Path(resolver.resolve_str("root_dir")).expanduser(),
            cache_dir=Path(resolver.resolve_str("cache.dir")).expanduser(),
            cache_enabled=resolver.resolve_bool("cache.enabled"),
            ttl_seconds=resolver.resolve_int("cache.ttl_seconds", minimum=0),
            max_payload_bytes=resolver.resolve_int("cache.max_payload_bytes", minimum=0),
            hide_dotfiles=resolver.resolve_bool("listing.hide_dotfiles"),
        )


@dataclass(frozen=True)
class ListingResult:
    """Explicit success/failure outcome of a listing.

    A failed listing never looks like an empty directory: ``ok`` is False
    and ``error`` is set.
    """

    path: str = ""
    entries: list[Entry] = field(default_factory=list)
    error: ListingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ListingService:
    """Browse a sandboxed tree with virtual entries."""

    def __init__(
        self,
        settings: ListingSettings,
        *,
        cache: SnapshotCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.cache = cache or SnapshotCache(
            settings.cache_dir,
            ttl_seconds=settings.ttl_seconds,
            max_payload_bytes=settings.max_payload_bytes,
            enabled=settings.cache_enabled,
            clock=clock,
        )
        self.aggregator = Aggregator(
            settings.root_dir,
            self.cache,
            hide_dotfiles=settings.hide_dotfiles,
            clock=clock,
        )

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> ListingService:
        return cls(ListingSettings.from_resolver(resolver))

    @property
    def root_dir(self) -> Path:
        return self.settings.root_dir

    def list_directory(
        self,
        rel_path: str | None = "",
        *,
        name_filter: str = "",
        extension_filter: str = "",
        sort_key: SortKey | str = SortKey.NAME,
    ) -> tuple[str, list[Entry]]:
        """List a directory, filtered and sorted.

        Returns:
            (canonical root-relative path of the listed directory, entries)

        Raises:
            SandboxViolationError, NotFoundError, NotADirectoryError,
            ScanFailureError
        """
        base = {
            "root": str(self.settings.root_dir),
            "rel_path": rel_path,
            "name_filter": name_filter,
            "extension_filter": extension_filter,
            "sort": str(SortKey.parse(sort_key)),
        }
        with observe_operation(component="listing", operation="listing.list", base=base) as summary:
            abs_dir = resolve_listing_path(self.settings.root_dir, rel_path)
            # Snapshots are keyed by abs_dir, so entry paths must derive from it too.
            canonical_rel = normalize_rel_path(
                abs_dir.relative_to(self.settings.root_dir.resolve()).as_posix()
            )
            merged, stats = self.aggregator.aggregate(abs_dir, canonical_rel)
            entries = apply_query(
                merged,
                name_filter=name_filter,
                extension_filter=extension_filter,
                sort_key=sort_key,
            )

            summary["resolved_path"] = str(abs_dir)
            summary.update(stats.as_summary())
            summary["merged_count"] = len(merged)
            summary["items_count"] = len(entries)
            return canonical_rel, entries

    def list(
        self,
        rel_path: str | None = "",
        *,
        name_filter: str = "",
        extension_filter: str = "",
        sort_key: SortKey | str = SortKey.NAME,
    ) -> list[Entry]:
        """Entries of list_directory() without the canonical path."""
        _path, entries = self.list_directory(
            rel_path,
            name_filter=name_filter,
            extension_filter=extension_filter,
            sort_key=sort_key,
        )
        return entries

    def try_list(
        self,
        rel_path: str | None = "",
        *,
        name_filter: str = "",
        extension_filter: str = "",
        sort_key: SortKey | str = SortKey.NAME,
    ) -> ListingResult:
        """Like list_directory(), but returns listing errors instead of raising them."""
        try:
            path, entries = self.list_directory(
                rel_path,
                name_filter=name_filter,
                extension_filter=extension_filter,
                sort_key=sort_key,
            )
        except ListingError as e:
            return ListingResult(error=e)
        return ListingResult(path=path, entries=entries)
