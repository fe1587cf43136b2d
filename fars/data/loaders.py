"""
Multi-year loaders for FARS accident files.

**Conceptual**: Summaries span several years, and FARS coverage is often
incomplete at the edges (the newest year may not be published yet, an old
file may be missing locally). This module loads each requested year
independently and reports per-year outcomes, so one bad year yields a warning
and an empty slot rather than failing the whole request.

**Two views of the same load**:
  - load_years(): one YearLoadResult per year, keeping the error that made a
    year unusable (missing file vs. malformed data).
  - read_years(): the plain view, a DataFrame or None per year.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import pandas as pd

from fars.data.io import coerce_int, make_filename, read_fars_csv
from fars.data.schemas import MONTH_COLUMN, YEAR_COLUMN, validate_month_column


logger = logging.getLogger(__name__)


class FarsDataWarning(UserWarning):
    """Warning emitted when a requested year could not be loaded."""


@dataclass(frozen=True)
class YearLoadResult:
    """
    Outcome of loading one requested year.

    Attributes:
        year: The year as requested by the caller (before coercion).
        filename: Filename derived for that year.
        table: (MONTH, year) projection, or None if loading failed.
        error: The exception that made the year unusable, or None.
    """
    year: Any
    filename: str
    table: Optional[pd.DataFrame] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        """True when the year loaded and projected successfully."""
        return self.error is None and self.table is not None


def project_year_table(df: pd.DataFrame, year: int, context: Optional[str] = None) -> pd.DataFrame:
    """
    Project an accident table to its (MONTH, year) columns.

    The year column is filled with `year` for every row; it is not read from
    the file. MONTH values must be integers 1-12.

    Args:
        df: Accident table for one year.
        year: Integer year to tag rows with.
        context: Optional source description for error messages.

    Returns:
        New DataFrame with columns [MONTH, year], both int64.

    Raises:
        SchemaValidationError: If MONTH is missing or out of range.
    """
    validate_month_column(df, context=context)

    return pd.DataFrame({
        MONTH_COLUMN: pd.to_numeric(df[MONTH_COLUMN]).astype("int64").to_numpy(),
        YEAR_COLUMN: pd.Series(year, index=range(len(df)), dtype="int64").to_numpy(),
    })


def load_year(year: Any, data_dir=None) -> YearLoadResult:
    """
    Load and project a single year, capturing any failure in the result.

    Every exception raised while reading or projecting the file is caught
    and stored in `error`; a FarsDataWarning naming the year is emitted.
    """
    filename = make_filename(year)

    try:
        df = read_fars_csv(filename, data_dir=data_dir)
        table = project_year_table(df, coerce_int(year), context=filename)
    except Exception as e:
        logger.debug("Failed to load %s for year %r: %s", filename, year, e)
        warnings.warn(f"invalid year: {year}", FarsDataWarning, stacklevel=3)
        return YearLoadResult(year=year, filename=filename, error=e)

    return YearLoadResult(year=year, filename=filename, table=table)


def load_years(years: Iterable[Any], data_dir=None) -> list[YearLoadResult]:
    """
    Load several years, one result per requested year, in input order.

    Args:
        years: Years (or values coercible to years). A single scalar is
               treated as a one-element list.
        data_dir: Lookup directory. Defaults to the configured FARS_DATA_DIR.

    Returns:
        List of YearLoadResult, same length and order as `years`.

    Example:
        >>> results = load_years([2014, 2099])
        >>> [r.ok for r in results]
        [True, False]
        >>> type(results[1].error).__name__
        'FarsFileNotFoundError'
    """
    return [load_year(year, data_dir=data_dir) for year in _as_year_list(years)]


def read_years(years: Iterable[Any], data_dir=None) -> list[Optional[pd.DataFrame]]:
    """
    Read (MONTH, year) tables for several years, tolerating failed years.

    **Functionally**:
      - Derives each year's filename and loads it.
      - On success, projects to MONTH plus a year column equal to the
        requested year.
      - On any failure, warns "invalid year: <year>" and puts None in that
        position; remaining years are still processed.

    Args:
        years: Years (or values coercible to years).
        data_dir: Lookup directory. Defaults to the configured FARS_DATA_DIR.

    Returns:
        List with a DataFrame or None per requested year, in input order.
    """
    return [result.table for result in load_years(years, data_dir=data_dir)]


def _as_year_list(years: Any) -> list:
    if isinstance(years, (str, bytes)) or not isinstance(years, Iterable):
        return [years]
    return list(years)
