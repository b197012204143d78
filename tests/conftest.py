"""
tests.conftest

Shared fixtures for storage tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def unreachable_path(tmp_path: Path) -> Path:
    # SQLite cannot open a file inside a directory that does not exist.
    return tmp_path / "no-such-dir" / "remote.db"
