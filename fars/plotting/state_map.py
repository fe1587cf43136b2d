"""
Per-state maps of fatal crash locations.

**Conceptual**: For one state and one year, every fatal crash with a known
location becomes a point on a map of US state outlines, zoomed to the
state's crashes. Loading and cleaning happen here; drawing is delegated to a
renderer so the data path can be exercised without a display.

**Pipeline**:
  1. Load accident_<year>.csv.bz2 (load failures propagate).
  2. Reject state codes that don't occur in that year's STATE column.
  3. Keep the state's rows; if there are none, log "no accidents to plot".
  4. Set sentinel coordinates (longitude > 900, latitude > 90) to NaN and
     drop rows missing either coordinate.
  5. Hand the points and their bounding box to the renderer.
"""

import logging
from typing import Any, Optional, Protocol

import pandas as pd

from fars.config.settings import MapSettings, get_settings
from fars.data.io import coerce_int, make_filename, read_fars_csv
from fars.data.schemas import (
    LATITUDE_COLUMN,
    LATITUDE_SENTINEL,
    LONGITUDE_SENTINEL,
    STATE_COLUMN,
    validate_state_map_schema,
)


logger = logging.getLogger(__name__)

# Canonical column names of the points handed to renderers
POINT_LONGITUDE = "LONGITUDE"
POINT_LATITUDE = "LATITUDE"

NO_ACCIDENTS_MESSAGE = "no accidents to plot"

# Half-width (degrees) of the view around a single point
_MIN_HALF_SPAN = 0.5


class InvalidStateError(ValueError):
    """Raised when a state code does not occur in a year's STATE values."""

    def __init__(self, state_code: Any):
        self.state_code = state_code
        super().__init__(
            f"invalid STATE number: {'NA' if state_code is None else state_code}"
        )


class StateMapRenderer(Protocol):
    """Draws accident points over a state basemap."""

    def render(
        self,
        points: pd.DataFrame,
        xlim: tuple[float, float],
        ylim: tuple[float, float],
        title: Optional[str] = None,
    ) -> Any:
        ...


def sanitize_coordinates(df: pd.DataFrame, longitude_col: str = "LONGITUD") -> pd.DataFrame:
    """
    Replace sentinel coordinates with NaN.

    Longitudes above 900 and latitudes above 90 are FARS codes for "unknown".
    Values exactly at the thresholds are kept.

    Args:
        df: Accident rows with a longitude column and LATITUDE.
        longitude_col: Name of the longitude column (LONGITUD in FARS files).

    Returns:
        Copy of `df` with sentinel values set to NaN.
    """
    cleaned = df.copy()

    longitude = pd.to_numeric(cleaned[longitude_col], errors="coerce")
    latitude = pd.to_numeric(cleaned[LATITUDE_COLUMN], errors="coerce")

    cleaned[longitude_col] = longitude.mask(longitude > LONGITUDE_SENTINEL)
    cleaned[LATITUDE_COLUMN] = latitude.mask(latitude > LATITUDE_SENTINEL)

    return cleaned


def _check_state(states: pd.Series, state_code: Optional[int]) -> None:
    if state_code is None or not (states == state_code).any():
        raise InvalidStateError(state_code)


def state_points(
    data: pd.DataFrame,
    state_code: Any,
    context: Optional[str] = None,
) -> Optional[pd.DataFrame]:
    """
    Select one state's plottable crash locations from an accident table.

    **Functionally**:
      - Coerces `state_code` to an integer.
      - Raises InvalidStateError if it is not among the table's STATE values.
      - Filters to that state; zero rows logs the "no accidents to plot"
        notice and returns None.
      - Sanitizes sentinel coordinates and drops rows where either
        coordinate is missing.

    Args:
        data: One year's accident table.
        state_code: FARS state code (int or value coercible to int).
        context: Optional source description for schema errors.

    Returns:
        DataFrame with LONGITUDE and LATITUDE columns (possibly empty if every
        location was unknown), or None when the state has no rows.

    Raises:
        InvalidStateError: If the state code is not in the data.
        SchemaValidationError: If STATE, LATITUDE or a longitude column is missing.
    """
    longitude_col = validate_state_map_schema(data, context=context)

    code = coerce_int(state_code)
    states = pd.to_numeric(data[STATE_COLUMN], errors="coerce")
    _check_state(states, code)

    subset = data.loc[states == code]
    if subset.empty:
        logger.info(NO_ACCIDENTS_MESSAGE)
        return None

    cleaned = sanitize_coordinates(subset, longitude_col=longitude_col)

    points = pd.DataFrame({
        POINT_LONGITUDE: cleaned[longitude_col].to_numpy(dtype="float64"),
        POINT_LATITUDE: cleaned[LATITUDE_COLUMN].to_numpy(dtype="float64"),
    })
    return points.dropna().reset_index(drop=True)


def map_bounds(points: pd.DataFrame) -> tuple[tuple[float, float], tuple[float, float]]:
    """
    Bounding box of the points as ((lon_min, lon_max), (lat_min, lat_max)).

    NaN values are ignored.
    """
    xlim = (float(points[POINT_LONGITUDE].min()), float(points[POINT_LONGITUDE].max()))
    ylim = (float(points[POINT_LATITUDE].min()), float(points[POINT_LATITUDE].max()))
    return xlim, ylim


def map_state(
    state_code: Any,
    year: Any,
    renderer: Optional[StateMapRenderer] = None,
    data_dir: Optional[Any] = None,
) -> Any:
    """
    Plot a map of fatal crash locations in one state for one year.

    **Functionally**:
      - Loads the year's accident file; any load error propagates.
      - Validates the state code against the year's STATE values.
      - Returns None (after logging "no accidents to plot") when the state
        has no rows or none with a known location.
      - Otherwise renders the points on the state basemap, zoomed to their
        bounding box, and returns the renderer's result.

    Args:
        state_code: FARS state code (e.g., 1 for Alabama).
        year: Year of the data file (int or value coercible to int).
        renderer: Object with a render(points, xlim, ylim, title) method.
                 Defaults to MatplotlibStateMapRenderer().
        data_dir: Lookup directory. Defaults to the configured FARS_DATA_DIR.

    Returns:
        Whatever the renderer returns (matplotlib Axes for the default
        renderer), or None when there is nothing to plot.

    Raises:
        FarsFileNotFoundError: If the year's file doesn't exist.
        InvalidStateError: If the state code doesn't occur in the data.

    Example:
        >>> ax = map_state(1, 2014)
        >>> ax.figure.savefig("alabama_2014.png")
    """
    filename = make_filename(year)
    data = read_fars_csv(filename, data_dir=data_dir)

    points = state_points(data, state_code, context=filename)
    if points is None:
        return None

    if points.empty:
        logger.info(NO_ACCIDENTS_MESSAGE)
        return None

    xlim, ylim = map_bounds(points)
    logger.debug(
        "Plotting %d accidents for state %s in %s",
        len(points), state_code, year,
        extra={"state": coerce_int(state_code), "year": coerce_int(year)},
    )

    if renderer is None:
        renderer = MatplotlibStateMapRenderer()

    return renderer.render(
        points,
        xlim=xlim,
        ylim=ylim,
        title=f"FARS fatalities: state {coerce_int(state_code)}, {coerce_int(year)}",
    )


class MatplotlibStateMapRenderer:
    """
    Draws accident points over US state outlines with matplotlib.

    **Conceptual**: The basemap is a state boundary layer read with geopandas
    (Census cartographic boundaries by default). All outlines are drawn and
    the axes are clipped to the accident bounding box, so neighbouring states
    show at the edges. Each crash is a single-pixel marker.

    Attributes:
        settings: MapSettings (boundary source, marker size, dpi).
        output_path: If set, each render is saved there as PNG and the
                    figure is closed.

    Example:
        >>> renderer = MatplotlibStateMapRenderer(output_path="map.png")
        >>> map_state(6, 2015, renderer=renderer)
    """

    def __init__(
        self,
        settings: Optional[MapSettings] = None,
        boundaries=None,
        output_path=None,
        figsize: tuple[float, float] = (8.0, 6.0),
    ):
        """
        Args:
            settings: Map settings. Defaults to get_settings().map.
            boundaries: Preloaded GeoDataFrame of state outlines. When None,
                       it is read from settings.state_boundaries on first use.
            output_path: Optional PNG path to save renders to.
            figsize: Figure size in inches.
        """
        self.settings = settings or get_settings().map
        self._boundaries = boundaries
        self.output_path = output_path
        self.figsize = figsize

    @property
    def boundaries(self):
        """State outline GeoDataFrame, loaded lazily."""
        if self._boundaries is None:
            import geopandas as gpd

            logger.info("Loading state boundaries from %s", self.settings.state_boundaries)
            self._boundaries = gpd.read_file(self.settings.state_boundaries)
        return self._boundaries

    def render(
        self,
        points: pd.DataFrame,
        xlim: tuple[float, float],
        ylim: tuple[float, float],
        title: Optional[str] = None,
    ):
        """
        Draw the basemap clipped to (xlim, ylim) and overlay the points.

        Returns:
            The matplotlib Axes holding the map.
        """
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=self.figsize)

        self.boundaries.boundary.plot(ax=ax, color="black", linewidth=0.5)
        ax.scatter(
            points[POINT_LONGITUDE],
            points[POINT_LATITUDE],
            s=self.settings.point_size,
            marker=".",
            color="black",
            linewidths=0,
        )

        ax.set_xlim(*_widen(xlim))
        ax.set_ylim(*_widen(ylim))
        ax.set_aspect("equal")
        ax.set_axis_off()
        if title:
            ax.set_title(title)

        if self.output_path is not None:
            fig.savefig(self.output_path, dpi=self.settings.dpi, bbox_inches="tight")
            plt.close(fig)

        return ax


def _widen(limits: tuple[float, float]) -> tuple[float, float]:
    low, high = limits
    if high - low < 2 * _MIN_HALF_SPAN:
        center = (low + high) / 2
        return center - _MIN_HALF_SPAN, center + _MIN_HALF_SPAN
    return low, high
