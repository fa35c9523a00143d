import datetime

import pytest
from resultset import open_cursor
from resultset.loaders import iterdict_data_loader, pandas_numpy_data_loader
from resultset.options import CursorOptions

SCHEMA = [('id', 'Int64')]


def test_init_defaults():
    """Test default initialization"""
    options = CursorOptions()

    assert options.time_zone == 'UTC'
    assert options.fetch_size == 0
    assert options.data_loader == iterdict_data_loader


def test_custom_options():
    """Test overriding every option"""
    zone = datetime.timezone(datetime.timedelta(hours=-3))
    options = CursorOptions(time_zone=zone, fetch_size=100,
                            data_loader=pandas_numpy_data_loader)

    assert options.time_zone is zone
    assert options.fetch_size == 100
    assert options.data_loader == pandas_numpy_data_loader


def test_validation():
    """Test validation rules"""
    with pytest.raises(ValueError):
        CursorOptions(time_zone='Mars/Olympus')

    with pytest.raises(ValueError):
        CursorOptions(fetch_size=-1)


def test_open_cursor_with_options():
    """Options object wins over keyword overrides"""
    options = CursorOptions(fetch_size=10)
    cursor = open_cursor(options, SCHEMA, [(1,)], query_id='q-open', fetch_size=99)

    assert cursor.options is options
    assert cursor.fetch_size == 10
    assert cursor.query_id == 'q-open'
    assert [row.get_long('id') for row in cursor] == [1]


def test_open_cursor_with_keywords():
    """Keyword arguments build the options when none are given"""
    statement = object()
    cursor = open_cursor(None, SCHEMA, [], time_zone='America/New_York',
                         statement=statement)

    assert cursor.options.time_zone == 'America/New_York'
    assert cursor.statement is statement
    assert not cursor.advance()


def test_open_cursor_rejects_bad_keywords():
    with pytest.raises(ValueError):
        open_cursor(None, SCHEMA, [], fetch_size=-5)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
