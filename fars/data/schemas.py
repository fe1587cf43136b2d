"""
Column contracts and validation for FARS accident tables.

**Conceptual**: FARS accident files carry dozens of columns, but this package
only relies on four of them: STATE, MONTH, a longitude column and LATITUDE.
This module names those columns, the sentinel thresholds that mark unknown
coordinates, and the checks applied before a table is aggregated or mapped.

**Schema philosophy**:
  - Source rows are otherwise opaque; extra columns pass through untouched.
  - The longitude column is LONGITUD in the published files; LONGITUDE is
    accepted as well.
  - Validation raises SchemaValidationError with actionable messages.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import pandas as pd


class SchemaValidationError(Exception):
    """
    Raised when a DataFrame does not conform to the expected FARS schema.

    **Conceptual**: Signals missing columns or out-of-range values, with enough
    context (file name, column, offending values) for quick remediation.
    """
    pass


STATE_COLUMN = "STATE"
MONTH_COLUMN = "MONTH"
LATITUDE_COLUMN = "LATITUDE"

# Published FARS files truncate the name to LONGITUD; accept both spellings.
LONGITUDE_COLUMNS = ("LONGITUD", "LONGITUDE")

# Column added to yearly projections; holds the requested year, not file data
YEAR_COLUMN = "year"

# Coordinates above these values are FARS codes for "not available"/"unknown"
LONGITUDE_SENTINEL = 900.0
LATITUDE_SENTINEL = 90.0

VALID_MONTHS = range(1, 13)


def _ctx(context: Optional[str]) -> str:
    return f"{context}: " if context else ""


def require_columns(
    df: pd.DataFrame,
    columns: list[str],
    context: Optional[str] = None,
) -> None:
    """
    Check that every column in `columns` is present.

    Args:
        df: DataFrame to check.
        columns: Required column names.
        context: Optional source description (e.g., a filename) for messages.

    Raises:
        SchemaValidationError: If any column is missing.
    """
    missing_cols = [col for col in columns if col not in df.columns]
    if missing_cols:
        raise SchemaValidationError(
            f"{_ctx(context)}Missing required columns: {missing_cols}. "
            f"Found columns: {list(df.columns)}."
        )


def longitude_column(df: pd.DataFrame, context: Optional[str] = None) -> str:
    """
    Return the name of the longitude column present in `df`.

    Raises:
        SchemaValidationError: If neither LONGITUD nor LONGITUDE is present.
    """
    for col in LONGITUDE_COLUMNS:
        if col in df.columns:
            return col
    raise SchemaValidationError(
        f"{_ctx(context)}No longitude column found. "
        f"Expected one of {list(LONGITUDE_COLUMNS)}. "
        f"Found columns: {list(df.columns)}."
    )


def validate_month_column(df: pd.DataFrame, context: Optional[str] = None) -> None:
    """
    Validate that MONTH exists and every value is an integer month 1-12.

    **Functionally**:
      - Checks the column is present.
      - Checks there are no nulls and no values outside 1-12.
      - Raises SchemaValidationError listing up to five offending values.

    Args:
        df: Accident table (or a projection of one).
        context: Optional source description for error messages.

    Raises:
        SchemaValidationError: If MONTH is missing or holds invalid values.
    """
    require_columns(df, [MONTH_COLUMN], context=context)

    months = pd.to_numeric(df[MONTH_COLUMN], errors="coerce")
    bad = df.loc[months.isna() | ~months.isin(list(VALID_MONTHS)), MONTH_COLUMN]
    if len(bad) > 0:
        raise SchemaValidationError(
            f"{_ctx(context)}MONTH must be an integer in 1-12. "
            f"Found {len(bad)} invalid value(s), e.g. {bad.unique()[:5].tolist()}."
        )


def validate_state_map_schema(df: pd.DataFrame, context: Optional[str] = None) -> str:
    """
    Validate the columns needed to map one state's accidents.

    Returns:
        Name of the longitude column (LONGITUD or LONGITUDE).

    Raises:
        SchemaValidationError: If STATE, LATITUDE or a longitude column is missing.
    """
    require_columns(df, [STATE_COLUMN, LATITUDE_COLUMN], context=context)
    return longitude_column(df, context=context)


def _clean_coordinate(value: Any, sentinel: float) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or number > sentinel:
        return None
    return number


@dataclass(frozen=True)
class FatalityRecord:
    """
    One fatal crash from a FARS accident file, with typed core fields.

    **Conceptual**: The pipeline works on DataFrames, but callers that iterate
    rows can convert them into records with named, typed fields. Sentinel
    coordinates are already mapped to None; every other source column is kept
    in `extra`.

    Attributes:
        state: FARS state code.
        month: Month of the crash, 1-12.
        longitude: Decimal degrees, or None when unknown.
        latitude: Decimal degrees, or None when unknown.
        extra: Remaining source columns, unvalidated.
    """
    state: int
    month: int
    longitude: Optional[float]
    latitude: Optional[float]
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.month not in VALID_MONTHS:
            raise SchemaValidationError(
                f"MONTH must be an integer in 1-12, got: {self.month}"
            )

    @property
    def has_location(self) -> bool:
        """True when both coordinates are known."""
        return self.longitude is not None and self.latitude is not None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "FatalityRecord":
        """
        Build a record from a mapping of column name to value (e.g., a row dict).

        Raises:
            SchemaValidationError: If STATE or MONTH is missing or invalid.
        """
        lon_key = next((key for key in LONGITUDE_COLUMNS if key in row), None)
        core = {STATE_COLUMN, MONTH_COLUMN, LATITUDE_COLUMN, *LONGITUDE_COLUMNS}

        try:
            state = int(row[STATE_COLUMN])
            month = int(row[MONTH_COLUMN])
        except KeyError as e:
            raise SchemaValidationError(f"Missing required field: {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise SchemaValidationError(f"STATE and MONTH must be integers: {e}") from e

        return cls(
            state=state,
            month=month,
            longitude=_clean_coordinate(row.get(lon_key), LONGITUDE_SENTINEL) if lon_key else None,
            latitude=_clean_coordinate(row.get(LATITUDE_COLUMN), LATITUDE_SENTINEL),
            extra={key: value for key, value in row.items() if key not in core},
        )


def iter_records(df: pd.DataFrame):
    """Yield a FatalityRecord for every row of an accident table."""
    for row in df.to_dict(orient="records"):
        yield FatalityRecord.from_row(row)
