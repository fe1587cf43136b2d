"""
Configuration settings for FARS data access and map rendering.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
when they are loaded, so a malformed value fails at startup instead of in the
middle of a summary or a map render.

**Settings groups**:
  - DataSettings: where accident_<year>.csv.bz2 files live and how they are decoded.
  - DownloadSettings: where yearly archives are fetched from (NHTSA static site).
  - MapSettings: basemap source and rendering options for state maps.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

# Load .env from the working directory (or its parents) if present
load_dotenv(find_dotenv(usecwd=True))


DEFAULT_DOWNLOAD_BASE_URL = "https://static.nhtsa.gov/nhtsa/downloads/FARS"

# Census 1:20,000,000 cartographic boundary file for US states.
# STATEFP in this file matches the FARS STATE code.
DEFAULT_STATE_BOUNDARIES = (
    "https://www2.census.gov/geo/tiger/GENZ2018/shp/cb_2018_us_state_20m.zip"
)


def _parse_number(name: str, raw: str, kind: type):
    """Parse a numeric environment value, naming the variable on failure."""
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(
            f"{name} must be {'an integer' if kind is int else 'a number'}, got: {raw}"
        )


@dataclass(frozen=True)
class DataSettings:
    """
    Location and decoding options for yearly FARS accident files.

    **Conceptual**: Accident files are looked up by name (accident_2014.csv.bz2)
    inside a single directory. By default that directory is the current working
    directory, resolved at read time, so scripts behave like the files sit
    next to wherever they are run.

    Attributes:
        data_dir: Directory holding accident_<year>.csv.bz2 files.
                 Relative paths are resolved against the working directory.
        csv_encoding: Text encoding handed to pandas when parsing the CSVs.
                     FARS files carry occasional non-UTF-8 bytes, so the
                     default is latin-1.
    """
    data_dir: Path = field(default_factory=lambda: Path("."))
    csv_encoding: str = "latin-1"

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.csv_encoding:
            raise ValueError(
                "FARS_CSV_ENCODING must not be empty. "
                "Unset it to use the default (latin-1)."
            )

    @classmethod
    def from_env(cls) -> "DataSettings":
        """
        Load data settings from environment variables.

        **Environment variables**:
          - FARS_DATA_DIR (optional): lookup directory. Defaults to ".".
          - FARS_CSV_ENCODING (optional): CSV text encoding. Defaults to "latin-1".

        Returns:
            DataSettings object with values loaded from environment.
        """
        return cls(
            data_dir=Path(os.getenv("FARS_DATA_DIR", ".")),
            csv_encoding=os.getenv("FARS_CSV_ENCODING", "latin-1"),
        )


@dataclass(frozen=True)
class DownloadSettings:
    """
    Configuration for the NHTSA FARS download site.

    **Conceptual**: NHTSA publishes one zip archive per year containing the
    national FARS tables as CSV. The client only needs the site root and a
    timeout; archive paths are derived from the year.

    Attributes:
        base_url: Root of the FARS download tree
                 (e.g., "https://static.nhtsa.gov/nhtsa/downloads/FARS").
        timeout_seconds: HTTP request timeout in seconds (default 180).
                        National archives are tens of megabytes.
    """
    base_url: str = DEFAULT_DOWNLOAD_BASE_URL
    timeout_seconds: int = 180

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.base_url:
            raise ValueError(
                "FARS_DOWNLOAD_BASE_URL is required but empty. "
                "Unset it to use the default NHTSA site."
            )
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"FARS_DOWNLOAD_TIMEOUT_SECONDS must be positive, got: {self.timeout_seconds}"
            )

    @classmethod
    def from_env(cls) -> "DownloadSettings":
        """
        Load download settings from environment variables.

        **Environment variables**:
          - FARS_DOWNLOAD_BASE_URL (optional): site root.
          - FARS_DOWNLOAD_TIMEOUT_SECONDS (optional): HTTP timeout. Defaults to 180.

        Returns:
            DownloadSettings object with values loaded from environment.

        Raises:
            ValueError: If the timeout is not an integer.
        """
        base_url = os.getenv("FARS_DOWNLOAD_BASE_URL", DEFAULT_DOWNLOAD_BASE_URL)
        timeout_str = os.getenv("FARS_DOWNLOAD_TIMEOUT_SECONDS", "180")

        return cls(
            base_url=base_url.rstrip("/"),
            timeout_seconds=_parse_number("FARS_DOWNLOAD_TIMEOUT_SECONDS", timeout_str, int),
        )


@dataclass(frozen=True)
class MapSettings:
    """
    Rendering options for per-state accident maps.

    Attributes:
        basemap: Basemap identifier. Only "state" (US state outlines) is supported.
        state_boundaries: Path or URL of a geopandas-readable state boundary
                         file (shapefile, zipped shapefile, GeoJSON).
        point_size: Marker size for accident points (matplotlib points^2).
        dpi: Resolution used when saving a map to PNG.
    """
    basemap: str = "state"
    state_boundaries: str = DEFAULT_STATE_BOUNDARIES
    point_size: float = 1.0
    dpi: int = 150

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.basemap != "state":
            raise ValueError(
                f"Unsupported basemap '{self.basemap}'. Only 'state' is available."
            )
        if self.point_size <= 0:
            raise ValueError(f"FARS_MAP_POINT_SIZE must be positive, got: {self.point_size}")
        if self.dpi <= 0:
            raise ValueError(f"FARS_MAP_DPI must be positive, got: {self.dpi}")

    @classmethod
    def from_env(cls) -> "MapSettings":
        """
        Load map settings from environment variables.

        **Environment variables**:
          - FARS_STATE_BOUNDARIES (optional): boundary file path or URL.
            Defaults to the Census 1:20m state cartographic boundary file.
          - FARS_MAP_POINT_SIZE (optional): marker size. Defaults to 1.0.
          - FARS_MAP_DPI (optional): PNG resolution. Defaults to 150.

        Returns:
            MapSettings object with values loaded from environment.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        return cls(
            state_boundaries=os.getenv("FARS_STATE_BOUNDARIES", DEFAULT_STATE_BOUNDARIES),
            point_size=_parse_number(
                "FARS_MAP_POINT_SIZE", os.getenv("FARS_MAP_POINT_SIZE", "1.0"), float
            ),
            dpi=_parse_number("FARS_MAP_DPI", os.getenv("FARS_MAP_DPI", "150"), int),
        )


@dataclass(frozen=True)
class Settings:
    """
    Global settings for the FARS toolkit.

    **Conceptual**: This is the top-level settings object that aggregates all
    subsystem settings. It provides a single entrypoint for accessing
    configuration throughout the package.

    **Usage pattern**:
      ```python
      from fars.config.settings import get_settings

      settings = get_settings()
      data_dir = settings.data.data_dir
      ```

    Attributes:
        data: Accident file location and decoding settings.
        download: NHTSA download site settings.
        map: State map rendering settings.
    """
    data: DataSettings = field(default_factory=DataSettings)
    download: DownloadSettings = field(default_factory=DownloadSettings)
    map: MapSettings = field(default_factory=MapSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load global settings from environment variables.

        Every group has usable defaults, so this only fails when a variable is
        set to an invalid value.

        Raises:
            ValueError: If any environment variable holds an invalid value.
        """
        return cls(
            data=DataSettings.from_env(),
            download=DownloadSettings.from_env(),
            map=MapSettings.from_env(),
        )


# Convenience singleton for accessing settings throughout the package.
# Tests can construct Settings(...) directly or call reset_settings().
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from environment on first call, then cached for reuse.

    Returns:
        Global Settings singleton.

    Raises:
        ValueError: If an environment variable holds an invalid value.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    **Testing pattern**:
      ```python
      def test_something(monkeypatch):
          monkeypatch.setenv("FARS_DATA_DIR", "/tmp/fars")
          reset_settings()
          assert get_settings().data.data_dir == Path("/tmp/fars")
      ```

    Returns:
        None (side effect: clears global settings cache).
    """
    global _default_settings
    _default_settings = None
