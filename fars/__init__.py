"""
fars - FARS (Fatality Analysis Reporting System) accident data toolkit.

Loads yearly accident files, summarizes monthly fatality counts across years,
and maps crash locations for a single state.
"""

from fars.analytics.summary import summarize_years
from fars.data.io import make_filename, read_fars_csv
from fars.data.loaders import load_years, read_years
from fars.plotting.state_map import map_state

__all__ = [
    "load_years",
    "make_filename",
    "map_state",
    "read_fars_csv",
    "read_years",
    "summarize_years",
]

__version__ = "0.1.0"
