"""
Tests for cell classification and column metadata.
"""
import datetime
from decimal import Decimal

import numpy as np
import pytest
from resultset.exceptions import SchemaError
from resultset.types import Column, RawKind, RawValue, base_type_name
from resultset.types import columns_from_schema, resolve_type


class TestRawValue:
    """Classification of upstream cells"""

    @pytest.mark.parametrize(('obj', 'kind'), [
        (None, RawKind.NULL),
        (True, RawKind.BOOL),
        (np.bool_(False), RawKind.BOOL),
        (7, RawKind.INT),
        (np.int32(7), RawKind.INT),
        (1.5, RawKind.FLOAT),
        (np.float32(1.5), RawKind.FLOAT),
        ('x', RawKind.TEXT),
        (b'x', RawKind.BYTES),
        (bytearray(b'x'), RawKind.BYTES),
        (Decimal('1.5'), RawKind.TEXT),
        (datetime.date(2024, 3, 5), RawKind.TEXT),
    ])
    def test_kind(self, obj, kind):
        assert RawValue.of(obj).kind is kind

    def test_numpy_scalars_unwrapped(self):
        value = RawValue.of(np.int64(5)).value
        assert value == 5
        assert type(value) is int

    def test_datetime64_is_text(self):
        raw = RawValue.of(np.datetime64('2024-03-05'))
        assert raw == RawValue(RawKind.TEXT, '2024-03-05')

    def test_text_form(self):
        assert RawValue.of(True).text == 'true'
        assert RawValue.of(False).text == 'false'
        assert RawValue.of(12).text == '12'
        assert RawValue.of(b'abc').text == 'abc'
        assert RawValue.of(None).text is None
        with pytest.raises(UnicodeDecodeError):
            RawValue.of(b'\xff').text

    def test_display_never_raises(self):
        assert RawValue.of(b'\xff\x00').display == '0xff00'
        assert RawValue.of(None).display == 'NULL'
        assert RawValue.of('abc').display == 'abc'


class TestResolveType:
    """Declared wire type names to Python types"""

    @pytest.mark.parametrize(('type_name', 'expected'), [
        ('Int64', int),
        ('UInt8', int),
        ('Nullable(Int32)', int),
        ('Float64', float),
        ('Decimal(10, 2)', Decimal),
        ('Nullable(Decimal(10, 2))', Decimal),
        ('Date', datetime.date),
        ('Timestamp', datetime.datetime),
        ('Boolean', bool),
        ('Binary', bytes),
        ('String', str),
        ('Variant', str),
        (None, str),
    ])
    def test_resolve(self, type_name, expected):
        assert resolve_type(type_name) is expected

    def test_base_type_name(self):
        assert base_type_name('Nullable(Decimal(10, 2))') == 'decimal'
        assert base_type_name(' nullable(String) ') == 'string'


class TestColumn:
    """Column construction from schema entries"""

    def test_from_pair_and_mapping(self):
        pair = Column.from_schema_item(('id', 'Int64'))
        mapping = Column.from_schema_item({'name': 'id', 'type': 'Int64'})
        assert pair.to_dict() == mapping.to_dict() == {
            'name': 'id', 'type_name': 'Int64', 'python_type': 'int'}

    def test_column_passthrough(self):
        column = Column('x', python_type=float)
        assert Column.from_schema_item(column) is column
        assert column.python_type is float

    def test_helpers(self):
        columns = columns_from_schema([('a', 'Int64'), ('b', None)])
        assert Column.get_names(columns) == ['a', 'b']
        assert Column.get_column_types_dict(columns)['b']['python_type'] == 'str'

    def test_unique_skips_case_duplicates(self):
        columns = columns_from_schema([('Id', 'Int64'), ('name', 'String'), ('ID', 'String')])
        assert [(ordinal, col.name) for ordinal, col in Column.unique(columns)] \
            == [(1, 'Id'), (2, 'name')]

    @pytest.mark.parametrize('item', [
        ('only-name',),
        ('a', 'b', 'c'),
        {'type': 'Int64'},
        ('', 'Int64'),
        (1, 'Int64'),
        ('a', 5),
        'a',
    ])
    def test_malformed_entry(self, item):
        with pytest.raises(SchemaError):
            Column.from_schema_item(item)

    @pytest.mark.parametrize('schema', [None, 'id Int64', b'id', {'id': 'Int64'}, 42])
    def test_malformed_schema(self, schema):
        with pytest.raises(SchemaError):
            columns_from_schema(schema)

    def test_empty_schema(self):
        assert columns_from_schema([]) == []


if __name__ == '__main__':
    __import__('pytest').main([__file__])
