"""
Filename derivation and CSV reading for yearly FARS accident files.

**Conceptual**: This module is the I/O boundary for accident data. Every
yearly file is named accident_<year>.csv.bz2 and lives in the configured data
directory; nothing else in the package builds paths or calls pd.read_csv on
accident files directly.

**Rule**: Summaries and maps never touch the filesystem
themselves. They go through make_filename() and read_fars_csv().
"""

import math
import numbers
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from fars.config.settings import get_settings


FILENAME_TEMPLATE = "accident_{year}.csv.bz2"

# Rendered in place of the year when a value can't be coerced to an integer
MISSING_YEAR_MARKER = "NA"


class FarsFileNotFoundError(FileNotFoundError):
    """
    Raised when a requested FARS data file does not exist.

    Carries the filename as requested (not the resolved path), so callers can
    report which year's file was missing.
    """

    def __init__(self, filename: str | Path):
        super().__init__(f"file '{filename}' does not exist")
        self.filename = str(filename)

    def __str__(self) -> str:
        return f"file '{self.filename}' does not exist"


def coerce_int(value: Any) -> Optional[int]:
    """
    Coerce a value to an integer (years, state codes), or None when it can't be.

    **Coercion rules**:
      - Integers pass through; floats are truncated toward zero (2016.5 -> 2016).
      - Strings are stripped and parsed as numbers ("2016", "2016.5" -> 2016).
      - None, NaN, infinities and non-numeric strings ("DEC-2016") give None.

    Never raises.

    Example:
        >>> coerce_int("2016.5")
        2016
        >>> coerce_int("DEC-2016") is None
        True
    """
    if value is None:
        return None

    if isinstance(value, numbers.Integral):
        return int(value)

    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return int(number)


def make_filename(year: Any) -> str:
    """
    Build the canonical FARS data filename for a year.

    Purely textual: no existence check is made here. Values that can't be
    coerced produce accident_NA.csv.bz2, which then fails at load time.

    Args:
        year: An integer or a value coercible to one.

    Returns:
        Filename such as "accident_2014.csv.bz2".

    Example:
        >>> make_filename(2014)
        'accident_2014.csv.bz2'
        >>> make_filename("DEC-2016")
        'accident_NA.csv.bz2'
    """
    coerced = coerce_int(year)
    return FILENAME_TEMPLATE.format(
        year=MISSING_YEAR_MARKER if coerced is None else coerced
    )


def resolve_data_path(filename: str | Path, data_dir: Optional[str | Path] = None) -> Path:
    """
    Resolve a data filename against the lookup directory.

    Absolute filenames are returned unchanged. Relative ones are joined onto
    `data_dir`, or onto the configured FARS_DATA_DIR (default: the working
    directory) when `data_dir` is None.
    """
    path = Path(filename)
    if path.is_absolute():
        return path

    if data_dir is None:
        data_dir = get_settings().data.data_dir

    return Path(data_dir) / path


def read_fars_csv(
    filename: str | Path,
    data_dir: Optional[str | Path] = None,
    encoding: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read a FARS accident file into a DataFrame.

    **Conceptual**: Loads one yearly file (e.g., accident_2014.csv.bz2) as-is.
    Columns are typed by pandas' inference; downstream code relies only on
    STATE, MONTH, LONGITUD/LONGITUDE and LATITUDE.

    **Functionally**:
      - Resolves the filename against the data directory.
      - Fails with FarsFileNotFoundError when the file is absent.
      - Parses with pd.read_csv; compression is inferred from the suffix
        (.bz2, .gz, .zip, .xz) and low_memory=False keeps pandas from emitting
        mixed-dtype warnings on wide files.
      - Parser errors are not caught; they reach the caller as raised by pandas.

    Args:
        filename: Data filename, usually from make_filename().
        data_dir: Lookup directory. Defaults to the configured FARS_DATA_DIR.
        encoding: Text encoding. Defaults to the configured FARS_CSV_ENCODING.

    Returns:
        DataFrame with one row per accident record in the file.

    Raises:
        FarsFileNotFoundError: If the file doesn't exist.
        pd.errors.ParserError: If the CSV is malformed.

    Example:
        >>> df = read_fars_csv("accident_2014.csv.bz2")
        >>> df[["STATE", "MONTH"]].head(2)
           STATE  MONTH
        0      1      1
        1      1      1
    """
    path = resolve_data_path(filename, data_dir=data_dir)

    if not path.is_file():
        raise FarsFileNotFoundError(filename)

    if encoding is None:
        encoding = get_settings().data.csv_encoding

    return pd.read_csv(path, encoding=encoding, low_memory=False)
