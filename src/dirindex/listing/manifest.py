"""Manifest parsing and discovery.

A manifest is a text file inside a listed directory whose name starts with
``drive`` and ends with ``.txt`` (case-insensitive). It declares virtual
entries as groups of ``key: value`` lines::

    filename: Report.pdf
    url: https://example.com/r.pdf
    type: pdf

    filename: Scans
    url: archive/scans
    type: folder

A record is emitted as soon as it has ``filename`` (alias ``name``), ``url``
and ``type``; the accumulator then starts over. Lines without a colon are
ignored without resetting the record. An incomplete record left at the end of
the file is dropped.
"""

from __future__ import annotations

import os
import re
import time
from collections.abc import Iterable
from pathlib import Path

from dirindex.core.diagnostics import observe_operation
from dirindex.core.errors import ScanFailureError
from dirindex.core.logging import get_logger

from .paths import is_within_root
from .types import Entry, ManifestParseResult, ManifestRecord, is_url

_logger = get_logger(__name__)

MANIFEST_NAME_RE = re.compile(r"^drive.*\.txt$", re.IGNORECASE)

FOLDER_TYPE = "folder"
DEFAULT_MIME_TYPE = "application/octet-stream"

TYPE_MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "txt": "text/plain",
    FOLDER_TYPE: "",
}


def is_manifest_name(name: str) -> bool:
    return MANIFEST_NAME_RE.match(name) is not None


def mime_for_type(type_name: str) -> str:
    return TYPE_MIME_TYPES.get(type_name.strip().lower(), DEFAULT_MIME_TYPE)


def discover_manifests(abs_dir: Path) -> list[Path]:
    """Return manifest files directly inside abs_dir, sorted by name.

    Raises:
        ScanFailureError: abs_dir cannot be enumerated
    """
    try:
        with os.scandir(abs_dir) as it:
            found = [
                Path(de.path)
                for de in it
                if is_manifest_name(de.name) and de.is_file(follow_symlinks=True)
            ]
    except OSError as e:
        raise ScanFailureError(str(abs_dir), e.strerror or type(e).__name__) from e
    return sorted(found, key=lambda p: p.name)


def _finalize(record: ManifestRecord, root_dir: Path, now: float) -> Entry | None:
    """Turn a complete record into an Entry, or None if its target escapes root."""
    assert record.filename is not None and record.url is not None and record.type is not None

    type_name = record.type.lower()
    path = record.url.strip("/")

    if is_url(path):
        size, mtime = 0, now
    else:
        target = (root_dir / path).resolve()
        if not is_within_root(root_dir, target):
            return None
        try:
            st = target.stat()
        except OSError:
            size, mtime = 0, now
        else:
            size, mtime = int(st.st_size), float(st.st_mtime)

    return Entry(
        name=record.filename,
        path=path,
        is_dir=type_name == FOLDER_TYPE,
        size=size,
        mtime=mtime,
        mime_type=mime_for_type(type_name),
    )


def parse_manifest_lines(
    lines: Iterable[str], *, root_dir: Path, now: float | None = None
) -> ManifestParseResult:
    """Parse manifest lines into virtual entries.

    Args:
        lines: Raw manifest lines (line endings allowed)
        root_dir: Sandbox root; relative ``url`` values are resolved against it
        now: Timestamp used for entries without an authoritative mtime

    Returns:
        ManifestParseResult with entries in declaration order plus counts of
        dropped (incomplete trailing) and rejected (escaping) records.
    """
    now = time.time() if now is None else now
    root_resolved = root_dir.resolve()

    entries: list[Entry] = []
    rejected = 0
    record = ManifestRecord()

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        key, sep, value = line.partition(":")
        if sep:
            record.set(key.strip().lower(), value.strip())

        if record.is_complete():
            entry = _finalize(record, root_resolved, now)
            if entry is None:
                rejected += 1
                _logger.warning(
                    f"Manifest record rejected: url escapes root url={record.url!r}"
                )
            else:
                entries.append(entry)
            record = ManifestRecord()

    dropped = 0 if record.is_empty() else 1
    return ManifestParseResult(entries=entries, dropped=dropped, rejected=rejected)


def parse_manifest(path: Path, *, root_dir: Path, now: float | None = None) -> ManifestParseResult:
    """Read and parse one manifest file.

    Raises:
        ScanFailureError: the manifest cannot be read
    """
    with observe_operation(
        component="listing",
        operation="listing.manifest",
        base={"manifest": str(path), "rel_path": path.name},
    ) as summary:
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                result = parse_manifest_lines(f, root_dir=root_dir, now=now)
        except OSError as e:
            raise ScanFailureError(str(path), e.strerror or type(e).__name__) from e

        if result.dropped:
            _logger.warning(
                f"Manifest {path.name!r}: dropped {result.dropped} incomplete trailing record"
            )

        summary["items_count"] = len(result.entries)
        summary["dropped"] = result.dropped
        summary["rejected"] = result.rejected
        return result
