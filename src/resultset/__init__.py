"""
Typed-value decoding for forward-only query result cursors.

Rows arrive from an upstream sequence as loosely typed cells; RowCursor
exposes them through typed accessors by 1-based ordinal or column name:

    cursor = open_cursor(None, [('id', 'Int64'), ('ts', 'Timestamp')], rows)
    while cursor.advance():
        cursor.get_long('id'), cursor.get_timestamp(2)
"""
__version__ = '0.1.0'

from resultset.catalog import ColumnCatalog
from resultset.cursor import FETCH_FORWARD, RowCursor, open_cursor
from resultset.exceptions import CursorStateError, DecodeError
from resultset.exceptions import IndexOutOfRange, InvalidCursorState
from resultset.exceptions import MalformedTemporalLiteral, ResultSetError
from resultset.exceptions import SchemaError, TypeMismatch, UnknownColumn
from resultset.exceptions import UpstreamFailure
from resultset.loaders import iterdict_data_loader, load_data
from resultset.loaders import pandas_numpy_data_loader
from resultset.loaders import pandas_pyarrow_data_loader
from resultset.options import CursorOptions
from resultset.temporal import ParsedTimestamp, TimeOfDay, Timestamp
from resultset.types import Column, RawKind, RawValue

__all__ = [
    'open_cursor',
    'RowCursor',
    'ColumnCatalog',
    'CursorOptions',
    'FETCH_FORWARD',
    'Column',
    'RawKind',
    'RawValue',
    'ParsedTimestamp',
    'TimeOfDay',
    'Timestamp',
    'load_data',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'ResultSetError',
    'InvalidCursorState',
    'IndexOutOfRange',
    'UnknownColumn',
    'TypeMismatch',
    'MalformedTemporalLiteral',
    'UpstreamFailure',
    'SchemaError',
    'DecodeError',
    'CursorStateError',
]
