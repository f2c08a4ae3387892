"""Path normalization and sandbox resolution.

All client paths are interpreted relative to the configured root directory.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from dirindex.core.diagnostics import observe_operation
from dirindex.core.errors import NotADirectoryError, NotFoundError, SandboxViolationError


def normalize_rel_path(rel_path: str | None) -> str:
    """Normalize a client-supplied relative path to POSIX form.

    Rules:
    - None, '' and '.' all mean the root itself ('')
    - backslashes are treated as separators
    - leading and trailing slashes are dropped (paths are always root-relative)

    '..' segments are kept; containment is checked after canonicalization.
    """
    if rel_path is None:
        return ""
    if "\x00" in rel_path:
        raise SandboxViolationError("Invalid path", "Paths must not contain NUL bytes")

    p = PurePosixPath(str(rel_path).replace("\\", "/").strip("/"))
    text = p.as_posix()
    return "" if text == "." else text


def is_within_root(root_dir: Path, candidate: Path) -> bool:
    """Segment-aware containment check on canonical paths.

    '/srv/root2' is not within '/srv/root'.
    """
    return candidate == root_dir or root_dir in candidate.parents


def resolve_listing_path(root_dir: Path, rel_path: str | None) -> Path:
    """Resolve rel_path to a canonical directory inside root_dir.

    Raises:
        SandboxViolationError: resolution escapes the root
        NotFoundError: target does not exist
        NotADirectoryError: target exists but is not a directory
    """
    with observe_operation(
        component="listing",
        operation="listing.resolve",
        base={"root": str(root_dir), "rel_path": rel_path},
    ) as summary:
        rel = normalize_rel_path(rel_path)
        root_resolved = root_dir.resolve()
        abs_path = (root_resolved / rel).resolve() if rel else root_resolved

        if not is_within_root(root_resolved, abs_path):
            raise SandboxViolationError("Invalid path", "Path escapes the configured root")
        if not abs_path.exists():
            raise NotFoundError("Invalid path", f"Not found: {rel or '.'}")
        if not abs_path.is_dir():
            raise NotADirectoryError("Invalid path", f"Not a directory: {rel}")

        summary["resolved_path"] = str(abs_path)
        return abs_path
