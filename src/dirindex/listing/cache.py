"""Snapshot cache for merged directory listings.

One JSON snapshot per resolved directory::

    {"path": "/srv/files/docs", "created_at": 1700000000.0, "entries": [...]}

Snapshots expire purely by age; nothing invalidates them when the directory
changes. Concurrent misses may each rewrite the same snapshot; writes replace
the whole file, so the last writer wins and readers never see a torn file.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import tempfile
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from dirindex.core.logging import get_logger

from .types import Entry

_logger = get_logger(__name__)


def cache_key(abs_dir: Path | str) -> str:
    """Deterministic key for a resolved directory path."""
    return hashlib.sha256(str(abs_dir).encode("utf-8")).hexdigest()


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class SnapshotCache:
    """File-backed, TTL-governed store of merged entry lists."""

    def __init__(
        self,
        cache_dir: Path,
        *,
        ttl_seconds: int,
        max_payload_bytes: int,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = cache_dir
        self.ttl_seconds = ttl_seconds
        self.max_payload_bytes = max_payload_bytes
        self.enabled = enabled
        self._clock = clock

    def snapshot_path(self, abs_dir: Path | str) -> Path:
        return self.cache_dir / f"snapshot_{cache_key(abs_dir)}.json"

    def load(self, abs_dir: Path | str) -> list[Entry] | None:
        """Return cached entries for abs_dir, or None on miss or expiry."""
        if not self.enabled:
            return None

        path = self.snapshot_path(abs_dir)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            _logger.warning(f"Cache snapshot unreadable: {path.name}: {e}")
            return None

        try:
            data = json.loads(raw)
            created_at = float(data["created_at"])
            if data["path"] != str(abs_dir):
                _logger.warning(f"Cache key collision for {abs_dir}; ignoring snapshot")
                return None
            age = self._clock() - created_at
            if not 0 <= age < self.ttl_seconds:
                return None
            return [Entry.from_dict(item) for item in data["entries"]]
        except (ValueError, KeyError, TypeError) as e:
            _logger.warning(f"Cache snapshot corrupt: {path.name}: {type(e).__name__}: {e}")
            return None

    def store(self, abs_dir: Path | str, entries: Sequence[Entry]) -> bool:
        """Persist entries as the snapshot for abs_dir.

        Returns:
            True if a snapshot was written. Payloads at or above
            max_payload_bytes are not persisted, and a failed write is logged
            rather than raised.
        """
        if not self.enabled:
            return False

        items = [e.to_dict() for e in entries]
        size = len(json.dumps(items, ensure_ascii=False, separators=(",", ":")).encode("utf-8"))
        if size >= self.max_payload_bytes:
            _logger.debug(
                f"Snapshot for {abs_dir} not cached: {size} bytes >= {self.max_payload_bytes}"
            )
            return False

        record: dict[str, Any] = {
            "path": str(abs_dir),
            "created_at": self._clock(),
            "entries": items,
        }
        payload = json.dumps(record, ensure_ascii=False, separators=(",", ":"))
        try:
            _atomic_write_text(self.snapshot_path(abs_dir), payload)
        except OSError as e:
            _logger.warning(f"Cache snapshot write failed for {abs_dir}: {e}")
            return False
        return True
