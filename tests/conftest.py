import datetime
from decimal import Decimal

import pytest
from resultset import RowCursor

SCHEMA = [
    ('id', 'Int64'),
    ('Name', 'String'),
    ('price', 'Nullable(Decimal(10, 2))'),
    ('created', 'Date'),
    ('updated_at', 'Timestamp'),
    ('payload', 'Binary'),
    ('active', 'Boolean'),
    ]

ROWS = [
    (1, 'alpha', '12.50', '2024-03-05', '2024-03-05 10:00:00.5', b'\x00\x01', True),
    (2, None, None, '1899-12-31', '1850-06-01 12:00:00', None, 'false'),
    ('3', 'gamma', Decimal('7.125'), None, None, b'gamma', 0),
    ]


@pytest.fixture
def schema():
    """Schema covering every decoder family."""
    return list(SCHEMA)


@pytest.fixture
def rows():
    """Rows mixing native and text-encoded cells."""
    return list(ROWS)


@pytest.fixture
def make_cursor(schema, rows):
    """Factory building a cursor over the sample rows.

    Example usage:
        def test_something(make_cursor):
            cursor = make_cursor(query_id='q-1')
    """
    def factory(**kwargs):
        kwargs.setdefault('query_id', 'q-test')
        return RowCursor(kwargs.pop('schema', schema), kwargs.pop('rows', rows), **kwargs)

    return factory


@pytest.fixture
def utc_epoch():
    """Epoch seconds of a naive UTC date-time."""
    def factory(*args):
        return int(datetime.datetime(*args, tzinfo=datetime.UTC).timestamp())

    return factory
