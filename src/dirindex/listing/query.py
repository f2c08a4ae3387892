"""Filtering and sorting of merged entry lists."""

from __future__ import annotations

from collections.abc import Iterable

from .types import Entry, SortKey


def matches_name(entry: Entry, name_filter: str) -> bool:
    return name_filter.lower() in entry.name.lower()


def matches_extension(entry: Entry, extension: str) -> bool:
    """Exact, case-insensitive extension match; directories never match."""
    return not entry.is_dir and entry.extension == extension


def apply_query(
    entries: Iterable[Entry],
    *,
    name_filter: str = "",
    extension_filter: str = "",
    sort_key: SortKey | str = SortKey.NAME,
) -> list[Entry]:
    """Filter then sort entries. Pure; the input is not modified.

    Sorting is stable, so ties keep their merged order. ``time`` sorts newest
    first; ``name`` and ``size`` sort ascending.
    """
    result = list(entries)

    if name_filter:
        result = [e for e in result if matches_name(e, name_filter)]

    ext = extension_filter.strip().lstrip(".").lower()
    if ext:
        result = [e for e in result if matches_extension(e, ext)]

    key = SortKey.parse(sort_key)
    if key is SortKey.SIZE:
        result.sort(key=lambda e: e.size)
    elif key is SortKey.TIME:
        result.sort(key=lambda e: e.mtime, reverse=True)
    else:
        result.sort(key=lambda e: e.name.lower())
    return result
