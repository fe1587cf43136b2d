"""
Monthly fatality counts across years.

**Conceptual**: The summary answers "how many fatal crashes happened in each
month of each requested year?" as a wide table: one row per MONTH, one count
column per year that could be loaded.

**Table shape**:
  - Column "MONTH" first, ascending.
  - One column per successfully loaded year, ascending, labelled by the int year.
  - Counts are nullable integers (Int64); a month with no rows in a year is
    <NA>, never 0.
  - Years that failed to load are absent entirely (no zero-filled column).
  - A year that loaded but has no rows gets an all-<NA> column.
"""

from typing import Any, Iterable, Optional

import pandas as pd

from fars.data.io import coerce_int
from fars.data.loaders import load_years
from fars.data.schemas import MONTH_COLUMN, YEAR_COLUMN


def pivot_month_counts(
    tables: list[pd.DataFrame],
    years: Optional[Iterable[int]] = None,
) -> pd.DataFrame:
    """
    Count rows per (year, MONTH) and pivot years into columns.

    **Functionally**:
      - Concatenates the (MONTH, year) tables.
      - Groups by (year, MONTH) and counts rows.
      - Pivots so MONTH is the row key and each year a column.
      - Every year in `years` gets a column, even one whose table has no
        rows (all <NA>).
      - An empty input list gives a table with only a MONTH column and no rows.

    Args:
        tables: (MONTH, year) projections, as produced by read_years().
        years: Years that loaded successfully. Defaults to the years tagged
               in `tables`, which can't see a table with zero rows.

    Returns:
        Wide count table (see module docstring).

    Example:
        >>> pivot_month_counts([t2013, t2014])
           MONTH  2013  2014
        0      1  2230  2168
        1      2  1952  1893
    """
    if years is None:
        years = {int(y) for table in tables for y in table[YEAR_COLUMN].unique()}
    columns = sorted(set(years))

    frames = [table for table in tables if not table.empty]
    if frames:
        combined = pd.concat(frames, ignore_index=True)
        counts = (
            combined.groupby([YEAR_COLUMN, MONTH_COLUMN])
            .size()
            .rename("n")
            .reset_index()
        )
        summary = counts.pivot(index=MONTH_COLUMN, columns=YEAR_COLUMN, values="n")
    else:
        summary = pd.DataFrame(index=pd.Index([], dtype="int64", name=MONTH_COLUMN))

    summary = summary.reindex(columns=columns).sort_index().astype("Int64")
    summary.columns.name = None

    return summary.reset_index()


def summarize_years(years: Iterable[Any], data_dir: Optional[Any] = None) -> pd.DataFrame:
    """
    Summarize FARS fatality counts by month for several years.

    **Functionally**:
      - Drops repeated years (compared after integer coercion) so a year is
        never counted twice.
      - Loads every remaining year with load_years(); failed years produce a
        warning and are left out.
      - Pivots the (MONTH, year) rows into a month x year count table with
        one column per loaded year. A year whose file has no rows still gets
        a column, all <NA>.

    No extra validation happens here. If no year loads, the result is an
    empty table with only a MONTH column.

    Args:
        years: Years (or values coercible to years), e.g. [2013, 2014, 2015].
        data_dir: Lookup directory. Defaults to the configured FARS_DATA_DIR.

    Returns:
        Wide count table with MONTH and one Int64 column per loaded year.

    Example:
        >>> summarize_years(range(2013, 2016)).head(2)
           MONTH  2013  2014  2015
        0      1  2230  2168  2368
        1      2  1952  1893  1968
    """
    loaded = [r for r in load_years(unique_years(years), data_dir=data_dir) if r.ok]
    return pivot_month_counts(
        [r.table for r in loaded],
        years=[coerce_int(r.year) for r in loaded],
    )


def unique_years(years: Iterable[Any]) -> list:
    """
    Drop repeats of a year, compared after integer coercion; first one wins.

    Uncoercible values are all kept, since each one fails on its own.
    A single scalar is treated as a one-element list.
    """
    if isinstance(years, (str, bytes)) or not isinstance(years, Iterable):
        years = [years]

    seen = set()
    unique = []
    for year in years:
        key = coerce_int(year)
        if key is not None:
            if key in seen:
                continue
            seen.add(key)
        unique.append(year)
    return unique
