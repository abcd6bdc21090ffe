# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from logam_mulia.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_price_db(tmp_path: Path) -> Generator[Path, None, None]:
    """Point the default price DB at a per-test temp file."""
    original = Settings.PRICE_DB_PATH
    Settings.PRICE_DB_PATH = tmp_path / "prices.db"
    try:
        yield Settings.PRICE_DB_PATH
    finally:
        Settings.PRICE_DB_PATH = original
