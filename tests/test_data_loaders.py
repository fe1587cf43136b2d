"""
Tests for multi-year loading (read_years, load_years).

Covers:
  - (MONTH, year) projection with the requested year as tag.
  - Partial failure: missing/malformed years warn and yield None.
  - Result ordering and the detailed YearLoadResult view.
"""

import pandas as pd
import pytest

from conftest import make_accident_df
from fars.data.io import FarsFileNotFoundError
from fars.data.loaders import (
    FarsDataWarning,
    load_years,
    project_year_table,
    read_years,
)
from fars.data.schemas import SchemaValidationError


def test_project_year_table_tags_rows_with_requested_year():
    df = make_accident_df([(1, 3, -86.5, 32.4), (2, 4, -150.0, 61.2)])

    table = project_year_table(df, 2014)

    assert list(table.columns) == ["MONTH", "year"]
    assert table["MONTH"].tolist() == [3, 4]
    assert table["year"].tolist() == [2014, 2014]


def test_project_year_table_rejects_out_of_range_month():
    df = make_accident_df([(1, 13, -86.5, 32.4)])

    with pytest.raises(SchemaValidationError, match="MONTH"):
        project_year_table(df, 2014)


def test_project_year_table_empty_file():
    df = make_accident_df([])

    table = project_year_table(df, 2014)

    assert table.empty
    assert list(table.columns) == ["MONTH", "year"]


def test_read_years_all_present(tmp_path, write_accident_file):
    write_accident_file(2013, [(1, 1, -86.5, 32.4)] * 3)
    write_accident_file(2014, [(1, 2, -86.5, 32.4)] * 2)

    tables = read_years([2013, 2014], data_dir=tmp_path)

    assert len(tables) == 2
    assert len(tables[0]) == 3 and set(tables[0]["year"]) == {2013}
    assert len(tables[1]) == 2 and set(tables[1]["year"]) == {2014}


def test_read_years_missing_year_warns_and_yields_none(tmp_path, write_accident_file):
    write_accident_file(2014, [(1, 1, -86.5, 32.4)])

    with pytest.warns(FarsDataWarning, match="invalid year: 2016"):
        tables = read_years([2014, 2016], data_dir=tmp_path)

    assert len(tables) == 2
    assert isinstance(tables[0], pd.DataFrame)
    assert tables[1] is None


def test_read_years_keeps_input_order(tmp_path, write_accident_file):
    write_accident_file(2013, [(1, 1, -86.5, 32.4)])
    write_accident_file(2015, [(1, 1, -86.5, 32.4)])

    with pytest.warns(FarsDataWarning):
        tables = read_years([2015, 2099, 2013], data_dir=tmp_path)

    assert tables[0]["year"].iloc[0] == 2015
    assert tables[1] is None
    assert tables[2]["year"].iloc[0] == 2013


def test_read_years_string_year_is_tagged_as_integer(tmp_path, write_accident_file):
    write_accident_file(2014, [(1, 5, -86.5, 32.4)])

    tables = read_years(["2014"], data_dir=tmp_path)

    assert tables[0]["year"].tolist() == [2014]


def test_read_years_uncoercible_year_warns(tmp_path):
    with pytest.warns(FarsDataWarning, match="invalid year: DEC-2016"):
        tables = read_years(["DEC-2016"], data_dir=tmp_path)

    assert tables == [None]


def test_read_years_accepts_scalar(tmp_path, write_accident_file):
    write_accident_file(2014, [(1, 5, -86.5, 32.4)])

    tables = read_years(2014, data_dir=tmp_path)

    assert len(tables) == 1
    assert tables[0]["MONTH"].tolist() == [5]


def test_read_years_malformed_file_is_skipped(tmp_path, write_accident_file):
    write_accident_file(2014, pd.DataFrame({"STATE": [1], "DAY": [3]}))

    with pytest.warns(FarsDataWarning, match="invalid year: 2014"):
        tables = read_years([2014], data_dir=tmp_path)

    assert tables == [None]


def test_load_years_distinguishes_missing_from_malformed(tmp_path, write_accident_file):
    write_accident_file(2013, [(1, 1, -86.5, 32.4)])
    write_accident_file(2014, pd.DataFrame({"STATE": [1], "MONTH": [0]}))

    with pytest.warns(FarsDataWarning):
        results = load_years([2013, 2014, 2015], data_dir=tmp_path)

    assert [r.ok for r in results] == [True, False, False]
    assert results[0].filename == "accident_2013.csv.bz2"
    assert isinstance(results[1].error, SchemaValidationError)
    assert isinstance(results[2].error, FarsFileNotFoundError)
    assert results[2].table is None


def test_load_years_empty_input():
    assert load_years([]) == []
