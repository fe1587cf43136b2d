"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import fars...' and
'import actions...' work, and provides helpers for writing synthetic FARS
accident files into temporary directories.
"""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from fars.config.settings import reset_settings


def make_accident_df(rows):
    """
    Build an accident table from (STATE, MONTH, LONGITUD, LATITUDE) tuples.

    Adds an ST_CASE column so files carry a passthrough column like real ones.
    """
    df = pd.DataFrame(rows, columns=["STATE", "MONTH", "LONGITUD", "LATITUDE"])
    df.insert(1, "ST_CASE", range(10001, 10001 + len(df)))
    return df


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Isolate every test from FARS_* variables and the settings cache."""
    for name in (
        "FARS_DATA_DIR",
        "FARS_CSV_ENCODING",
        "FARS_DOWNLOAD_BASE_URL",
        "FARS_DOWNLOAD_TIMEOUT_SECONDS",
        "FARS_STATE_BOUNDARIES",
        "FARS_MAP_POINT_SIZE",
        "FARS_MAP_DPI",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def write_accident_file(tmp_path):
    """
    Return a function that writes accident_<year>.csv.bz2 into tmp_path.

    Usage:
        path = write_accident_file(2014, [(1, 1, -86.5, 32.4), ...])
    """
    def _write(year, rows, name=None):
        df = rows if isinstance(rows, pd.DataFrame) else make_accident_df(rows)
        path = tmp_path / (name or f"accident_{year}.csv.bz2")
        df.to_csv(path, index=False, compression="bz2")
        return path

    return _write
