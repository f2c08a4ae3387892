"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path (for 'dirindex.*' imports without installing).
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture(autouse=True)
def _isolate_global_buses():
    """Ensure event/log bus subscribers and verbosity do not leak between tests."""
    from dirindex.core.events import get_event_bus
    from dirindex.core.logging import VerbosityLevel, get_log_bus, set_verbosity

    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)
    yield
    get_event_bus().clear()
    get_log_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def root_dir(tmp_path):
    """Sandbox root with a small tree.

    Layout:
        files/
          docs/
            b.md        (20 bytes)
            a.TXT       (30 bytes)
            c.txt       (10 bytes)
          .hidden
          readme.txt
    """
    root = tmp_path / "files"
    docs = root / "docs"
    docs.mkdir(parents=True)
    (docs / "b.md").write_text("x" * 20)
    (docs / "a.TXT").write_text("x" * 30)
    (docs / "c.txt").write_text("x" * 10)
    (root / ".hidden").write_text("secret")
    (root / "readme.txt").write_text("hello")
    return root


@pytest.fixture
def set_mtime():
    """Set a file's modification time (POSIX timestamp)."""

    def _set(path: Path, ts: float) -> None:
        os.utime(path, (ts, ts))

    return _set


class FakeClock:
    """Manually advanced clock for cache TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_service(root_dir, tmp_path, clock):
    """Factory for ListingService over root_dir with a private cache dir."""
    from dirindex.listing.service import ListingService, ListingSettings

    def _make(**overrides):
        params = {
            "root_dir": root_dir,
            "cache_dir": tmp_path / "cache",
            "cache_enabled": True,
            "ttl_seconds": 30,
            "max_payload_bytes": 50000,
            "hide_dotfiles": True,
        }
        params.update(overrides)
        return ListingService(ListingSettings(**params), clock=clock)

    return _make
