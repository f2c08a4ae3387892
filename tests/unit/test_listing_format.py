from __future__ import annotations

import pytest

from dirindex.listing.format import human_size, parent_path


@pytest.mark.parametrize(
    ("num_bytes", "expected"),
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (50000, "48.83 KB"),
        (5 * 1024**3, "5 GB"),
        (2048 * 1024**4, "2048 TB"),
    ],
)
def test_human_size(num_bytes: int, expected: str) -> None:
    assert human_size(num_bytes) == expected


@pytest.mark.parametrize(
    ("rel", "expected"),
    [("docs", ""), ("docs/sub", "docs"), ("/a/b/c/", "a/b")],
)
def test_parent_path(rel: str, expected: str) -> None:
    assert parent_path(rel) == expected
