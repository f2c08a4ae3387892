"""Display helpers for presentation layers."""

from __future__ import annotations

from pathlib import PurePosixPath

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def human_size(num_bytes: int) -> str:
    """Format a byte count with 1024-based units, e.g. 1536 -> '1.5 KB'."""
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def parent_path(rel_path: str) -> str:
    """Navigation target one level up ('' for top-level paths)."""
    parent = PurePosixPath(rel_path.strip("/")).parent.as_posix()
    return "" if parent == "." else parent
