"""
Tests for per-state accident maps.

**Testing philosophy**: The data path (load, validate state, filter,
sanitize, bound) is tested with a recording renderer, so no figure is drawn.
The matplotlib renderer gets its own tests with an in-memory boundary layer
and the Agg backend (no network, no display).
"""

import logging

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd
import pytest
from shapely.geometry import box

from conftest import make_accident_df
from fars.config.settings import MapSettings
from fars.data.io import FarsFileNotFoundError
from fars.plotting import state_map
from fars.plotting.state_map import (
    NO_ACCIDENTS_MESSAGE,
    InvalidStateError,
    MatplotlibStateMapRenderer,
    map_bounds,
    map_state,
    sanitize_coordinates,
    state_points,
)


class RecordingRenderer:
    """Captures render() calls instead of drawing."""

    def __init__(self):
        self.calls = []

    def render(self, points, xlim, ylim, title=None):
        self.calls.append({"points": points, "xlim": xlim, "ylim": ylim, "title": title})
        return "rendered"


# Rows at and just beyond the sentinel thresholds
BOUNDARY_ROWS = [
    (1, 1, -87.0, 31.0),    # ordinary location
    (1, 2, 900.0, 32.0),    # longitude exactly at threshold: kept
    (1, 3, 900.1, 33.0),    # longitude sentinel: dropped
    (1, 4, -86.0, 90.0),    # latitude exactly at threshold: kept
    (1, 5, -85.0, 90.1),    # latitude sentinel: dropped
    (1, 6, 999.9999, 99.9999),  # FARS "unknown" codes: dropped
    (2, 1, -150.0, 61.0),   # another state
]


@pytest.fixture
def renderer():
    return RecordingRenderer()


# ============================================================================
# sanitize_coordinates / state_points
# ============================================================================

def test_sanitize_coordinates_masks_values_above_thresholds():
    df = make_accident_df([(1, 1, 900.0, 90.0), (1, 1, 900.1, 90.1)])

    cleaned = sanitize_coordinates(df)

    assert cleaned.loc[0, "LONGITUD"] == 900.0
    assert cleaned.loc[0, "LATITUDE"] == 90.0
    assert pd.isna(cleaned.loc[1, "LONGITUD"])
    assert pd.isna(cleaned.loc[1, "LATITUDE"])
    # Input untouched
    assert df.loc[1, "LONGITUD"] == 900.1


def test_state_points_excludes_sentinel_rows():
    points = state_points(make_accident_df(BOUNDARY_ROWS), 1)

    assert list(points.columns) == ["LONGITUDE", "LATITUDE"]
    assert list(points.itertuples(index=False, name=None)) == [
        (-87.0, 31.0),
        (900.0, 32.0),
        (-86.0, 90.0),
    ]


def test_state_points_invalid_state():
    with pytest.raises(InvalidStateError) as exc_info:
        state_points(make_accident_df(BOUNDARY_ROWS), 99)

    assert exc_info.value.state_code == 99
    assert str(exc_info.value) == "invalid STATE number: 99"


def test_state_points_uncoercible_state_is_invalid():
    with pytest.raises(InvalidStateError, match="invalid STATE number: NA"):
        state_points(make_accident_df(BOUNDARY_ROWS), "Alabama")


def test_state_points_fractional_state_does_not_match_integer_code():
    df = make_accident_df([(1.5, 1, -87.0, 31.0), (2, 1, -150.0, 61.0)])

    with pytest.raises(InvalidStateError, match="invalid STATE number: 1"):
        state_points(df, 1)


def test_state_points_accepts_longitude_spelling():
    df = make_accident_df(BOUNDARY_ROWS).rename(columns={"LONGITUD": "LONGITUDE"})

    points = state_points(df, "1")

    assert len(points) == 3


def test_map_bounds():
    points = pd.DataFrame({"LONGITUDE": [-87.0, -85.5], "LATITUDE": [31.0, 34.5]})

    assert map_bounds(points) == ((-87.0, -85.5), (31.0, 34.5))


# ============================================================================
# map_state
# ============================================================================

def test_map_state_renders_cleaned_points(tmp_path, write_accident_file, renderer):
    write_accident_file(2014, BOUNDARY_ROWS)

    result = map_state(1, 2014, renderer=renderer, data_dir=tmp_path)

    assert result == "rendered"
    assert len(renderer.calls) == 1
    call = renderer.calls[0]
    assert len(call["points"]) == 3
    assert call["xlim"] == (-87.0, 900.0)
    assert call["ylim"] == (31.0, 90.0)
    assert "2014" in call["title"]


def test_map_state_invalid_state_raises(tmp_path, write_accident_file, renderer):
    write_accident_file(2014, BOUNDARY_ROWS)

    with pytest.raises(InvalidStateError, match="invalid STATE number: 56"):
        map_state(56, 2014, renderer=renderer, data_dir=tmp_path)

    assert renderer.calls == []


def test_map_state_missing_file_propagates(tmp_path, renderer):
    with pytest.raises(FarsFileNotFoundError, match="accident_2014.csv.bz2"):
        map_state(1, 2014, renderer=renderer, data_dir=tmp_path)


def test_map_state_zero_rows_returns_none(tmp_path, write_accident_file, renderer, monkeypatch, caplog):
    """
    A state with no rows logs the notice and returns None.

    The state check and the row filter use the same comparison, so a state
    that passes validation always has rows; this branch can only be reached
    with the check disabled.
    """
    write_accident_file(2014, BOUNDARY_ROWS)
    monkeypatch.setattr(state_map, "_check_state", lambda states, code: None)

    with caplog.at_level(logging.INFO, logger="fars.plotting.state_map"):
        result = map_state(56, 2014, renderer=renderer, data_dir=tmp_path)

    assert result is None
    assert renderer.calls == []
    assert NO_ACCIDENTS_MESSAGE in caplog.text


def test_map_state_all_locations_unknown_returns_none(tmp_path, write_accident_file, renderer, caplog):
    write_accident_file(2015, [(4, 1, 999.9999, 99.9999), (4, 2, 999.9999, 88.8888)])

    with caplog.at_level(logging.INFO, logger="fars.plotting.state_map"):
        result = map_state(4, 2015, renderer=renderer, data_dir=tmp_path)

    assert result is None
    assert renderer.calls == []
    assert NO_ACCIDENTS_MESSAGE in caplog.text


# ============================================================================
# MatplotlibStateMapRenderer
# ============================================================================

@pytest.fixture
def boundaries():
    return gpd.GeoDataFrame(
        {"STATEFP": ["01", "13"]},
        geometry=[box(-88.5, 30.2, -84.9, 35.0), box(-85.6, 30.4, -80.8, 35.0)],
        crs="EPSG:4269",
    )


def test_matplotlib_renderer_draws_points_within_bounds(boundaries):
    renderer = MatplotlibStateMapRenderer(settings=MapSettings(), boundaries=boundaries)
    points = pd.DataFrame({"LONGITUDE": [-87.0, -86.0, -85.5], "LATITUDE": [31.0, 32.0, 34.0]})

    ax = renderer.render(points, xlim=(-87.0, -85.5), ylim=(31.0, 34.0), title="test map")

    assert ax.get_xlim() == pytest.approx((-87.0, -85.5))
    assert ax.get_ylim() == pytest.approx((31.0, 34.0))
    assert ax.get_title() == "test map"
    offsets = ax.collections[-1].get_offsets()
    assert len(offsets) == 3
    plt.close(ax.figure)


def test_matplotlib_renderer_single_point_gets_nonzero_extent(boundaries):
    renderer = MatplotlibStateMapRenderer(settings=MapSettings(), boundaries=boundaries)
    points = pd.DataFrame({"LONGITUDE": [-86.0], "LATITUDE": [32.0]})

    ax = renderer.render(points, xlim=(-86.0, -86.0), ylim=(32.0, 32.0))

    low, high = ax.get_xlim()
    assert low < -86.0 < high
    plt.close(ax.figure)


def test_matplotlib_renderer_saves_png(tmp_path, boundaries, write_accident_file):
    write_accident_file(2014, [(1, 1, -87.0, 31.0), (1, 3, -86.0, 33.0)])
    output_path = tmp_path / "alabama.png"
    renderer = MatplotlibStateMapRenderer(
        settings=MapSettings(dpi=50),
        boundaries=boundaries,
        output_path=output_path,
    )

    map_state(1, 2014, renderer=renderer, data_dir=tmp_path)

    assert output_path.exists()
    assert output_path.stat().st_size > 0


def test_matplotlib_renderer_loads_boundaries_lazily(monkeypatch, boundaries):
    calls = []

    def fake_read_file(source):
        calls.append(source)
        return boundaries

    monkeypatch.setattr(gpd, "read_file", fake_read_file)
    renderer = MatplotlibStateMapRenderer(settings=MapSettings(state_boundaries="states.geojson"))

    assert calls == []
    assert renderer.boundaries is boundaries
    assert renderer.boundaries is boundaries
    assert calls == ["states.geojson"]
