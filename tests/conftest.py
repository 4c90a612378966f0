"""Pytest configuration for repository test runs."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _isolate_recordloader_env(monkeypatch) -> None:
    """Keep host RECORDLOADER_* variables out of config-driven tests."""
    for key in list(os.environ):
        if key.startswith("RECORDLOADER_"):
            monkeypatch.delenv(key, raising=False)
