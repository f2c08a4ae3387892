"""Unit tests for manifest parsing and discovery."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from dirindex.core.errors import ScanFailureError
from dirindex.core.events import get_event_bus
from dirindex.listing.manifest import (
    discover_manifests,
    is_manifest_name,
    mime_for_type,
    parse_manifest,
    parse_manifest_lines,
)

NOW = 1_700_000_000.0


def _parse(text: str, root: Path):
    return parse_manifest_lines(text.splitlines(), root_dir=root, now=NOW)


def test_external_pdf_record(root_dir: Path) -> None:
    result = _parse(
        "filename: Report.pdf\nurl: https://example.com/r.pdf\ntype: pdf\n",
        root_dir,
    )

    assert len(result.entries) == 1
    entry = result.entries[0]
    assert entry.name == "Report.pdf"
    assert entry.path == "https://example.com/r.pdf"
    assert entry.is_external
    assert entry.is_dir is False
    assert entry.mime_type == "application/pdf"
    assert entry.size == 0
    assert entry.mtime == NOW


def test_folder_record(root_dir: Path) -> None:
    result = _parse(
        "filename: Shared\nurl: https://drive.example.com/folders/abc/\ntype: folder\n",
        root_dir,
    )

    entry = result.entries[0]
    assert entry.is_dir is True
    assert entry.mime_type == ""
    assert entry.path == "https://drive.example.com/folders/abc"


@pytest.mark.parametrize(
    ("type_name", "mime"),
    [
        ("pdf", "application/pdf"),
        ("PNG", "image/png"),
        ("jpg", "image/jpeg"),
        ("jpeg", "image/jpeg"),
        ("txt", "text/plain"),
        ("folder", ""),
        ("zip", "application/octet-stream"),
        ("", "application/octet-stream"),
    ],
)
def test_mime_for_type(type_name: str, mime: str) -> None:
    assert mime_for_type(type_name) == mime


def test_keys_case_insensitive_and_values_trimmed(root_dir: Path) -> None:
    result = _parse(
        "  FileName :   Notes  \n URL:https://example.com/n.txt  \nTYPE: TXT\n",
        root_dir,
    )

    entry = result.entries[0]
    assert entry.name == "Notes"
    assert entry.path == "https://example.com/n.txt"
    assert entry.mime_type == "text/plain"


def test_value_split_on_first_colon_only(root_dir: Path) -> None:
    result = _parse("filename: a\nurl: https://example.com/a:b\ntype: pdf\n", root_dir)
    assert result.entries[0].path == "https://example.com/a:b"


def test_lines_without_colon_do_not_reset_record(root_dir: Path) -> None:
    result = _parse(
        "filename: a.pdf\nthis line has no separator\nurl: https://example.com/a.pdf\ntype: pdf\n",
        root_dir,
    )
    assert [e.name for e in result.entries] == ["a.pdf"]


def test_multiple_records_in_order_without_blank_lines(root_dir: Path) -> None:
    result = _parse(
        "filename: one\nurl: https://example.com/1\ntype: pdf\n"
        "filename: two\nurl: https://example.com/2\ntype: png\n"
        "\n\n"
        "filename: three\nurl: https://example.com/3\ntype: folder\n",
        root_dir,
    )
    assert [e.name for e in result.entries] == ["one", "two", "three"]
    assert result.dropped == 0


def test_incomplete_trailing_record_is_dropped(root_dir: Path) -> None:
    result = _parse(
        "filename: ok\nurl: https://example.com/ok\ntype: pdf\nfilename: partial\nurl: x\n",
        root_dir,
    )
    assert [e.name for e in result.entries] == ["ok"]
    assert result.dropped == 1


def test_empty_required_value_keeps_record_incomplete(root_dir: Path) -> None:
    result = _parse("filename:\nurl: https://example.com/x\ntype: pdf\n", root_dir)
    assert result.entries == []
    assert result.dropped == 1


def test_unrecognized_keys_are_tolerated(root_dir: Path) -> None:
    result = _parse(
        "description: quarterly numbers\nfilename: q.pdf\nowner: finance\n"
        "url: https://example.com/q.pdf\ntype: pdf\n",
        root_dir,
    )
    assert [e.name for e in result.entries] == ["q.pdf"]
    assert result.dropped == 0


def test_name_is_accepted_as_filename_alias(root_dir: Path) -> None:
    result = _parse("name: alias.pdf\nurl: https://example.com/a.pdf\ntype: pdf\n", root_dir)
    assert result.entries[0].name == "alias.pdf"


def test_local_target_reads_metadata(root_dir: Path, set_mtime) -> None:
    set_mtime(root_dir / "docs" / "c.txt", 1_600_000_000)

    result = _parse("filename: Local\nurl: /docs/c.txt/\ntype: txt\n", root_dir)

    entry = result.entries[0]
    assert entry.path == "docs/c.txt"
    assert not entry.is_external
    assert entry.size == 10
    assert entry.mtime == 1_600_000_000


def test_missing_local_target_gets_placeholder_metadata(root_dir: Path) -> None:
    result = _parse("filename: Gone\nurl: docs/missing.pdf\ntype: pdf\n", root_dir)

    entry = result.entries[0]
    assert entry.path == "docs/missing.pdf"
    assert entry.size == 0
    assert entry.mtime == NOW


def test_local_target_escaping_root_is_rejected(root_dir: Path, tmp_path: Path) -> None:
    (tmp_path / "secret.txt").write_text("nope")

    result = _parse(
        "filename: Escape\nurl: ../secret.txt\ntype: txt\n"
        "filename: Fine\nurl: https://example.com/f\ntype: pdf\n",
        root_dir,
    )

    assert [e.name for e in result.entries] == ["Fine"]
    assert result.rejected == 1


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("drive.txt", True),
        ("drive_links.txt", True),
        ("DRIVE-Shared.TXT", True),
        ("mydrive.txt", False),
        ("drive.txt.bak", False),
        ("drive.md", False),
        ("readme.txt", False),
    ],
)
def test_is_manifest_name(name: str, expected: bool) -> None:
    assert is_manifest_name(name) is expected


def test_discover_manifests_only_files_sorted(root_dir: Path) -> None:
    (root_dir / "drive_b.txt").write_text("")
    (root_dir / "Drive_a.txt").write_text("")
    (root_dir / "drive_dir.txt").mkdir()

    found = discover_manifests(root_dir)
    assert [p.name for p in found] == ["Drive_a.txt", "drive_b.txt"]


def test_discover_manifests_missing_dir_is_scan_failure(tmp_path: Path) -> None:
    with pytest.raises(ScanFailureError):
        discover_manifests(tmp_path / "missing")


def test_parse_manifest_reads_file(root_dir: Path) -> None:
    manifest = root_dir / "drive.txt"
    manifest.write_text("filename: R\nurl: https://example.com/r\ntype: pdf\n", encoding="utf-8")

    result = parse_manifest(manifest, root_dir=root_dir, now=NOW)
    assert [e.name for e in result.entries] == ["R"]


def test_parse_manifest_unreadable_is_scan_failure(root_dir: Path) -> None:
    with pytest.raises(ScanFailureError):
        parse_manifest(root_dir / "drive_missing.txt", root_dir=root_dir, now=NOW)


def test_parse_manifest_reports_dropped_records(root_dir: Path) -> None:
    manifest = root_dir / "drive.txt"
    manifest.write_text("filename: partial\n", encoding="utf-8")

    ends: list[dict[str, Any]] = []
    get_event_bus().subscribe("operation.end", ends.append)

    result = parse_manifest(manifest, root_dir=root_dir, now=NOW)

    assert result.dropped == 1
    manifest_ends = [e for e in ends if e["operation"] == "listing.manifest"]
    assert manifest_ends[0]["data"]["dropped"] == 1
    assert manifest_ends[0]["data"]["status"] == "succeeded"
