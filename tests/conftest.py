"""Shared fixtures: every test gets its own data directory and fresh settings."""

from decimal import Decimal

import pytest

from asset_tracker.config import get_settings
from asset_tracker.models.asset import Asset


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the data directory at tmp_path and keep a stray .env out of the way."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ASSET_TRACKER_DATA_DIR", str(tmp_path / "data"))
    for name in ("ZAKAT_RATE", "ZAKAT_NISAB_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def stocks_asset():
    return Asset(
        id=1,
        type="Stocks",
        name="AAPL",
        value=Decimal("1000.0"),
        purchase_date="2024-01-01",
    )
