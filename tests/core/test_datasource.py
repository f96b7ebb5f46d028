"""
Tests for DataSource.
"""

import numpy as np
import pandas as pd
import pytest

from pypolyfit.core.datasource import DataSource
from pypolyfit.core.exceptions import ValidationError


class TestFromArrays:

    def test_named_arrays(self):
        ds = DataSource.from_arrays(x=[1, 2, 3], y=[2, 4, 6], errors=[0.1, 0.1, 0.2])
        assert ds.keys() == frozenset({'x', 'y', 'errors'})
        assert ds.n_observations == 3
        assert ds['x'].dtype == np.float64

    def test_extra_arrays(self):
        ds = DataSource.from_arrays(time=[0.0, 1.0])
        assert 'time' in ds
        assert 'x' not in ds

    def test_missing_key(self):
        ds = DataSource.from_arrays(x=[1.0])
        with pytest.raises(KeyError, match="Available"):
            ds['y']

    def test_metadata_is_a_copy(self):
        ds = DataSource.from_arrays(x=[1.0])
        ds.metadata['source'] = 'changed'
        assert ds.metadata['source'] == 'arrays'


class TestFromDataFrame:

    def test_first_two_columns_become_x_and_y(self):
        df = pd.DataFrame({'time': [0.0, 1.0], 'signal': [5.0, 6.0]})
        ds = DataSource.from_dataframe(df)
        np.testing.assert_array_equal(ds['x'], [0.0, 1.0])
        np.testing.assert_array_equal(ds['y'], [5.0, 6.0])
        np.testing.assert_array_equal(ds['signal'], [5.0, 6.0])

    def test_named_x_and_y_preferred(self):
        df = pd.DataFrame({'id': [7.0, 8.0], 'y': [5.0, 6.0], 'x': [0.0, 1.0]})
        ds = DataSource.from_dataframe(df)
        np.testing.assert_array_equal(ds['x'], [0.0, 1.0])

    def test_error_column_by_position(self):
        df = pd.DataFrame({'a': [0.0, 1.0], 'b': [5.0, 6.0], 'c': [0.5, 0.25]})
        ds = DataSource.from_dataframe(df, error_column=2)
        np.testing.assert_array_equal(ds['errors'], [0.5, 0.25])

    def test_error_column_out_of_range(self):
        df = pd.DataFrame({'a': [0.0], 'b': [5.0]})
        with pytest.raises(ValidationError, match="out of range"):
            DataSource.from_dataframe(df, error_column=2)

    def test_unknown_error_column(self):
        df = pd.DataFrame({'a': [0.0], 'b': [5.0]})
        with pytest.raises(ValidationError, match="not in columns"):
            DataSource.from_dataframe(df, error_column='sigma')


class TestFromFile:

    def test_reads_csv(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("X, Y, dY, flag\n0, 1.5, 0.1, 1\n1, 2.5, 0.2, 1\n2, 3.5, 0.3, 1\n")
        ds = DataSource.from_file(path, error_column=2)
        np.testing.assert_allclose(ds['x'], [0.0, 1.0, 2.0])
        np.testing.assert_allclose(ds['y'], [1.5, 2.5, 3.5])
        np.testing.assert_allclose(ds['errors'], [0.1, 0.2, 0.3])
        assert ds.n_observations == 3
        assert ds.metadata['source_path'] == str(path)

    def test_short_rows_skipped(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("x,y,e,f\n0,1,0.1,1\n1,2,,\n2,3,0.1,1\n")
        ds = DataSource.from_file(path)
        np.testing.assert_allclose(ds['x'], [0.0, 2.0])

    def test_min_fields(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("x,y,e,f\n0,1,0.1,1\n1,2,,\n2,3,0.1,1\n")
        ds = DataSource.from_file(path, min_fields=2)
        assert ds.n_observations == 3

    def test_unknown_suffix(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{}")
        with pytest.raises(ValidationError, match="Unknown file format"):
            DataSource.from_file(path)

    def test_single_column(self, tmp_path):
        path = tmp_path / "data.csv"
        path.write_text("x\n1\n2\n")
        with pytest.raises(ValidationError, match="at least 2 columns"):
            DataSource.from_file(path)

    def test_first_two_columns_are_x_and_y(self, tmp_path):
        """A later column headed 'x' does not replace the first column."""
        path = tmp_path / "data.csv"
        path.write_text("t,signal,x,y\n0,10,7,8\n1,11,7,8\n2,12,7,8\n")
        ds = DataSource.from_file(path)
        np.testing.assert_array_equal(ds['x'], [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(ds['y'], [10.0, 11.0, 12.0])
        np.testing.assert_array_equal(ds['t'], [0.0, 1.0, 2.0])

    def test_positional_dataframe(self):
        df = pd.DataFrame({'a': [0.0, 1.0], 'b': [5.0, 6.0], 'x': [9.0, 9.0], 'y': [3.0, 3.0]})
        ds = DataSource.from_dataframe(df, positional=True)
        np.testing.assert_array_equal(ds['x'], [0.0, 1.0])
        np.testing.assert_array_equal(ds['y'], [5.0, 6.0])
