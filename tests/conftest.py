from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def no_sleep(monkeypatch):
    from eregalerij import scrape

    delays = []
    monkeypatch.setattr(scrape.time, "sleep", delays.append)
    return delays
