"""Merge real and virtual entries for one directory, through the snapshot cache."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

from dirindex.core.logging import get_logger

from .cache import SnapshotCache
from .manifest import discover_manifests, parse_manifest
from .scanner import scan_directory
from .types import AggregateStats, Entry

_logger = get_logger(__name__)


class Aggregator:
    """Produce the unfiltered, unsorted entry list of a resolved directory.

    Order is real entries first, then virtual entries in manifest order.
    Nothing is deduplicated.
    """

    def __init__(
        self,
        root_dir: Path,
        cache: SnapshotCache,
        *,
        hide_dotfiles: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.root_dir = root_dir
        self.cache = cache
        self.hide_dotfiles = hide_dotfiles
        self._clock = clock

    def aggregate(self, abs_dir: Path, rel_path: str) -> tuple[list[Entry], AggregateStats]:
        """Return merged entries for abs_dir and a summary of how they were built.

        Raises:
            ScanFailureError: the directory or one of its manifests is unreadable
        """
        cached = self.cache.load(abs_dir)
        if cached is not None:
            _logger.debug(f"Cache hit for {abs_dir}")
            # Snapshots do not record which entries were virtual.
            return cached, AggregateStats(cache_hit=True)

        real = scan_directory(abs_dir, rel_path, hide_dotfiles=self.hide_dotfiles)

        virtual: list[Entry] = []
        dropped = rejected = 0
        manifests = discover_manifests(abs_dir)
        now = self._clock()
        for manifest in manifests:
            result = parse_manifest(manifest, root_dir=self.root_dir, now=now)
            virtual.extend(result.entries)
            dropped += result.dropped
            rejected += result.rejected

        merged = real + virtual
        persisted = self.cache.store(abs_dir, merged)

        return merged, AggregateStats(
            real_count=len(real),
            virtual_count=len(virtual),
            cache_hit=False,
            persisted=persisted,
            manifests=len(manifests),
            dropped=dropped,
            rejected=rejected,
        )
