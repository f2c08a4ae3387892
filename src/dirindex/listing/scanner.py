"""Real directory enumeration for the listing engine."""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path

import puremagic

from dirindex.core.errors import ScanFailureError
from dirindex.core.logging import get_logger

from .manifest import is_manifest_name
from .types import Entry

_logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
EMPTY_MIME_TYPE = "application/x-empty"


def _sniff_mime_type(path: str) -> str:
    """Identify content by its magic bytes."""
    try:
        if os.path.getsize(path) == 0:
            return EMPTY_MIME_TYPE
        matches = puremagic.magic_file(path)
    except (OSError, puremagic.PureError):
        return DEFAULT_MIME_TYPE

    for match in matches:
        if match.mime_type:
            return str(match.mime_type)
    return DEFAULT_MIME_TYPE


def detect_mime_type(path: str) -> str:
    """Best-effort content type: extension first, then a look at the content."""
    guessed, _encoding = mimetypes.guess_type(os.path.basename(path), strict=False)
    return guessed or _sniff_mime_type(path)


def join_rel(rel_prefix: str, name: str) -> str:
    return f"{rel_prefix.strip('/')}/{name}".strip("/")


def scan_directory(abs_dir: Path, rel_prefix: str, *, hide_dotfiles: bool = True) -> list[Entry]:
    """List the immediate children of abs_dir as entries.

    Hidden names (leading '.') are skipped when hide_dotfiles is set and
    manifest files are always skipped. Output is sorted by name.

    Raises:
        ScanFailureError: the directory cannot be enumerated, or a child
            cannot be stat'ed for a reason other than having vanished
    """
    entries: list[Entry] = []

    try:
        with os.scandir(abs_dir) as it:
            children = list(it)
    except OSError as e:
        raise ScanFailureError(str(abs_dir), e.strerror or type(e).__name__) from e

    for de in children:
        if hide_dotfiles and de.name.startswith("."):
            continue

        try:
            st = de.stat(follow_symlinks=True)
        except FileNotFoundError:
            # Dangling symlink, or the child was removed mid-scan.
            try:
                st = de.stat(follow_symlinks=False)
            except FileNotFoundError:
                _logger.debug(f"Skipping vanished entry: {de.path}")
                continue
            except OSError as e:
                raise ScanFailureError(de.path, e.strerror or type(e).__name__) from e
        except OSError as e:
            raise ScanFailureError(de.path, e.strerror or type(e).__name__) from e

        is_dir = de.is_dir(follow_symlinks=True)
        if not is_dir and is_manifest_name(de.name):
            continue

        entries.append(
            Entry(
                name=de.name,
                path=join_rel(rel_prefix, de.name),
                is_dir=is_dir,
                size=int(st.st_size),
                mtime=float(st.st_mtime),
                mime_type="" if is_dir else detect_mime_type(de.path),
            )
        )

    entries.sort(key=lambda e: e.name)
    return entries
