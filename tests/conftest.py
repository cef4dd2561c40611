"""Shared pytest fixtures for the console tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from oumg_console.config.settings import Settings


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch time.sleep globally so retry back-off runs instantly."""
    with patch("time.sleep"):
        yield


@pytest.fixture(autouse=True)
def isolated_paths(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Keep log files and the history DB out of the working tree."""
    monkeypatch.setattr(Settings, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(
        Settings, "PRICE_DB_PATH", tmp_path / "data" / "price_history.db",
    )
