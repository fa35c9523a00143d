"""
Tests for loading decoded rows into lists and DataFrames.
"""
import datetime

import pandas as pd
import pyarrow as pa
import pytest
from resultset import CursorOptions, RowCursor, load_data
from resultset.loaders import iterdict_data_loader, pandas_numpy_data_loader
from resultset.loaders import pandas_pyarrow_data_loader
from resultset.types import columns_from_schema

SCHEMA = [('id', 'Int64'), ('name', 'String')]
ROWS = [(1, 'alpha'), ('2', 'beta'), (3, None)]


@pytest.fixture
def columns():
    return columns_from_schema(SCHEMA)


def test_iterdict_loader(columns):
    data = [{'id': 1, 'name': 'alpha'}]
    assert iterdict_data_loader(data, columns) == data
    assert iterdict_data_loader([], columns) == []


def test_pandas_numpy_loader(columns):
    data = [{'id': 1, 'name': 'alpha'}, {'id': 2, 'name': None}]
    df = pandas_numpy_data_loader(data, columns)

    assert list(df.columns) == ['id', 'name']
    assert df['id'].tolist() == [1, 2]
    assert df.attrs['column_types']['id']['python_type'] == 'int'


def test_pandas_numpy_loader_empty(columns):
    """Empty results keep the column layout"""
    df = pandas_numpy_data_loader([], columns)

    assert isinstance(df, pd.DataFrame)
    assert df.empty
    assert list(df.columns) == ['id', 'name']
    assert df.attrs['column_types']['name']['type_name'] == 'String'


def test_pandas_pyarrow_loader(columns):
    data = [{'id': 1, 'name': 'alpha'}, {'id': 2, 'name': None}]
    df = pandas_pyarrow_data_loader(data, columns)

    assert isinstance(df['id'].dtype, pd.ArrowDtype)
    assert df['id'].tolist() == [1, 2]
    assert df['name'].isna().tolist() == [False, True]
    assert 'column_types' in df.attrs


def test_pandas_pyarrow_loader_empty(columns):
    df = pandas_pyarrow_data_loader([], columns)
    assert list(df.columns) == ['id', 'name']


def test_load_data_uses_configured_loader():
    """load_data drains the cursor through the options' data loader"""
    options = CursorOptions(data_loader=pandas_numpy_data_loader)
    cursor = RowCursor(SCHEMA, ROWS, options=options)
    df = load_data(cursor)

    assert df['id'].tolist() == [1, 2, 3]
    assert df['name'].tolist()[:2] == ['alpha', 'beta']
    assert not cursor.advance()


def test_load_data_explicit_loader():
    cursor = RowCursor(SCHEMA, ROWS)
    cursor.advance()
    data = load_data(cursor, iterdict_data_loader)

    assert [row['id'] for row in data] == [2, 3]


TEMPORAL_SCHEMA = [('ts', 'Timestamp'), ('t', 'Time'), ('TS', 'String')]
TEMPORAL_ROWS = [
    ('2024-03-05 10:00:00.123456789', '01:02:03.000000004', 'shadowed'),
    (None, None, None),
    ]


class TestTemporalColumns:
    """Timestamp and time columns keep nanoseconds through the loaders"""

    def _load(self, data_loader, time_zone='UTC'):
        options = CursorOptions(time_zone=time_zone, data_loader=data_loader)
        return load_data(RowCursor(TEMPORAL_SCHEMA, TEMPORAL_ROWS, options=options))

    def test_iterdict_gives_python_values(self):
        rows = self._load(iterdict_data_loader)

        assert rows[0].ts == datetime.datetime(2024, 3, 5, 10, 0, 0, 123456, tzinfo=datetime.UTC)
        assert rows[0].t == datetime.time(1, 2, 3)
        assert rows[1] == {'ts': None, 't': None}

    def test_pandas_numpy_keeps_nanoseconds(self, utc_epoch):
        df = self._load(pandas_numpy_data_loader)

        assert list(df.columns) == ['ts', 't']
        assert df['ts'].iloc[0].value == utc_epoch(2024, 3, 5, 10) * 10 ** 9 + 123_456_789
        assert df['ts'].iloc[0].nanosecond == 789
        assert df['t'].dtype == 'timedelta64[ns]'
        assert df['t'].iloc[0] == pd.Timedelta(3723 * 10 ** 9 + 4, unit='ns')
        assert df['ts'].isna().tolist() == [False, True]
        assert df['t'].isna().tolist() == [False, True]

    def test_pandas_numpy_converts_zone(self):
        df = self._load(pandas_numpy_data_loader, time_zone='America/New_York')

        assert df['ts'].iloc[0].hour == 5
        assert df['ts'].iloc[0].nanosecond == 789

    def test_pandas_pyarrow_arrow_types(self):
        df = self._load(pandas_pyarrow_data_loader)

        assert df['ts'].dtype == pd.ArrowDtype(pa.timestamp('ns', tz='UTC'))
        assert df['t'].dtype == pd.ArrowDtype(pa.time64('ns'))
        assert df['ts'].dt.nanosecond.iloc[0] == 789
        assert df['ts'].isna().tolist() == [False, True]

    def test_empty_keeps_temporal_dtypes(self):
        df = pandas_numpy_data_loader([], columns_from_schema(TEMPORAL_SCHEMA), time_zone='UTC')

        assert df.empty
        assert list(df.columns) == ['ts', 't']
        assert df['t'].dtype == 'timedelta64[ns]'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
