"""HTTP API tests for /api/list."""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import parse_qs

import pytest

from dirindex.core.errors import ScanFailureError
from dirindex.core.events import get_event_bus

_HAS_FASTAPI = True
try:
    import fastapi  # noqa: F401
except Exception:
    _HAS_FASTAPI = False

try:
    import httpx  # noqa: F401

    _HAS_HTTPX = True
except Exception:
    _HAS_HTTPX = False

pytestmark = pytest.mark.skipif(
    (not _HAS_FASTAPI) or (not _HAS_HTTPX), reason="fastapi+httpx required"
)

MANIFEST = "filename: Report.pdf\nurl: https://example.com/r.pdf\ntype: pdf\n"


@pytest.fixture
def client(make_service):
    from fastapi.testclient import TestClient

    from dirindex.web.app import create_app

    service = make_service()
    return TestClient(create_app(service)), service


def test_health(client) -> None:
    c, _service = client
    resp = c.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_root_listing(client) -> None:
    c, _service = client
    resp = c.get("/api/list")

    assert resp.status_code == 200
    body = resp.json()
    assert body["path"] == ""
    assert body["parent"] is None
    items = {item["name"]: item for item in body["items"]}
    assert list(items) == ["docs", "readme.txt"]

    docs = items["docs"]
    assert docs["is_dir"] is True
    assert docs["size_human"] == "-"
    assert docs["href"] == "?p=docs"

    readme = items["readme.txt"]
    assert readme["size"] == 5
    assert readme["size_human"] == "5 B"
    assert readme["href"] == "files/readme.txt"
    assert readme["mime_type"] == "text/plain"


def test_subdirectory_with_query(client) -> None:
    c, _service = client
    resp = c.get("/api/list", params={"p": "docs", "ext": "txt", "sort": "size"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["path"] == "docs"
    assert body["parent"] == ""
    assert [i["name"] for i in body["items"]] == ["c.txt", "a.TXT"]


def test_name_filter(client) -> None:
    c, _service = client
    body = c.get("/api/list", params={"p": "docs", "q": "b"}).json()
    assert [i["name"] for i in body["items"]] == ["b.md"]


def test_external_entry_links_to_url(client, root_dir: Path) -> None:
    (root_dir / "drive.txt").write_text(MANIFEST, encoding="utf-8")
    c, _service = client

    items = {i["name"]: i for i in c.get("/api/list").json()["items"]}
    report = items["Report.pdf"]
    assert report["is_external"] is True
    assert report["href"] == "https://example.com/r.pdf"
    assert report["mime_type"] == "application/pdf"


@pytest.mark.parametrize(
    ("p", "code"),
    [("../", "SANDBOX_VIOLATION"), ("nope", "NOT_FOUND"), ("readme.txt", "NOT_A_DIRECTORY")],
)
def test_invalid_path_is_404_envelope(client, p: str, code: str) -> None:
    c, _service = client
    resp = c.get("/api/list", params={"p": p})

    assert resp.status_code == 404
    assert resp.json() == {"error": {"code": code, "message": "Invalid path"}}


def test_scan_failure_is_500_envelope(client, monkeypatch) -> None:
    c, service = client

    def _boom(abs_dir, rel_path):
        raise ScanFailureError(str(abs_dir), "Permission denied")

    monkeypatch.setattr(service.aggregator, "aggregate", _boom)

    resp = c.get("/api/list")
    assert resp.status_code == 500
    err = resp.json()["error"]
    assert err["code"] == "SCAN_FAILURE"
    assert "Permission denied" in err["message"]


def test_requests_emit_boundary_envelopes(client) -> None:
    c, _service = client
    seen: list[tuple[str, dict[str, Any]]] = []
    get_event_bus().subscribe_all(lambda event, data: seen.append((event, data)))

    c.get("/api/list", params={"p": "nope"})

    boundary = [(e, d) for e, d in seen if e.startswith("boundary.")]
    assert [e for e, _ in boundary] == ["boundary.start", "boundary.end"]
    assert boundary[0][1]["operation"] == "GET /api/list"
    assert boundary[1][1]["data"]["status_code"] == 404


def test_hrefs_are_url_encoded(client, root_dir: Path) -> None:
    (root_dir / "Tom & Jerry").mkdir()
    (root_dir / "50% off #1?.txt").write_text("x")
    c, _service = client

    items = {i["name"]: i for i in c.get("/api/list").json()["items"]}

    dir_href = items["Tom & Jerry"]["href"]
    assert dir_href == "?p=Tom%20%26%20Jerry"
    assert parse_qs(dir_href[1:]) == {"p": ["Tom & Jerry"]}
    assert items["50% off #1?.txt"]["href"] == "files/50%25%20off%20%231%3F.txt"

    resp = c.get("/api/list", params=parse_qs(dir_href[1:]))
    assert resp.status_code == 200
    assert resp.json()["path"] == "Tom & Jerry"


def test_nested_href_keeps_separators(client) -> None:
    c, _service = client
    items = c.get("/api/list", params={"p": "docs"}).json()["items"]
    assert [i["href"] for i in items] == [
        "files/docs/a.TXT",
        "files/docs/b.md",
        "files/docs/c.txt",
    ]


def test_response_path_is_canonical(client) -> None:
    c, _service = client
    body = c.get("/api/list", params={"p": "/docs/../docs/"}).json()

    assert body["path"] == "docs"
    assert body["parent"] == ""
