"""
Tests for environment-driven settings.
"""

from pathlib import Path

import pytest

from fars.config.settings import (
    DEFAULT_DOWNLOAD_BASE_URL,
    DEFAULT_STATE_BOUNDARIES,
    DataSettings,
    DownloadSettings,
    MapSettings,
    Settings,
    get_settings,
    reset_settings,
)


def test_defaults_without_environment():
    settings = Settings.from_env()

    assert settings.data.data_dir == Path(".")
    assert settings.data.csv_encoding == "latin-1"
    assert settings.download.base_url == DEFAULT_DOWNLOAD_BASE_URL
    assert settings.download.timeout_seconds == 180
    assert settings.map.state_boundaries == DEFAULT_STATE_BOUNDARIES
    assert settings.map.point_size == 1.0
    assert settings.map.dpi == 150


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("FARS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FARS_CSV_ENCODING", "utf-8")
    monkeypatch.setenv("FARS_DOWNLOAD_BASE_URL", "https://mirror.test/fars/")
    monkeypatch.setenv("FARS_DOWNLOAD_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("FARS_STATE_BOUNDARIES", "states.geojson")
    monkeypatch.setenv("FARS_MAP_POINT_SIZE", "2.5")
    monkeypatch.setenv("FARS_MAP_DPI", "300")

    settings = Settings.from_env()

    assert settings.data.data_dir == tmp_path
    assert settings.data.csv_encoding == "utf-8"
    # Trailing slash stripped so archive URLs don't get "//"
    assert settings.download.base_url == "https://mirror.test/fars"
    assert settings.download.timeout_seconds == 30
    assert settings.map.state_boundaries == "states.geojson"
    assert settings.map.point_size == 2.5
    assert settings.map.dpi == 300


@pytest.mark.parametrize(
    "name, value, message",
    [
        ("FARS_DOWNLOAD_TIMEOUT_SECONDS", "soon", "must be an integer"),
        ("FARS_DOWNLOAD_TIMEOUT_SECONDS", "0", "must be positive"),
        ("FARS_MAP_POINT_SIZE", "big", "must be a number"),
        ("FARS_MAP_DPI", "-10", "must be positive"),
        ("FARS_CSV_ENCODING", "", "must not be empty"),
    ],
)
def test_invalid_environment_values(monkeypatch, name, value, message):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=message):
        Settings.from_env()


def test_unsupported_basemap():
    with pytest.raises(ValueError, match="Unsupported basemap"):
        MapSettings(basemap="county")


def test_empty_base_url():
    with pytest.raises(ValueError, match="FARS_DOWNLOAD_BASE_URL"):
        DownloadSettings(base_url="")


def test_settings_are_frozen():
    settings = DataSettings()

    with pytest.raises(AttributeError):
        settings.csv_encoding = "utf-8"


def test_get_settings_caches_until_reset(monkeypatch, tmp_path):
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("FARS_DATA_DIR", str(tmp_path))
    assert get_settings().data.data_dir == Path(".")

    reset_settings()
    assert get_settings().data.data_dir == tmp_path
