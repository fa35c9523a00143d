"""
Type handling for result set cells and column metadata.

This module provides:
- RawKind / RawValue: tagged representation of one cell as received
- Column: column metadata built from the result schema
- resolve_type: resolve a declared wire type name to a Python type
"""
import datetime
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple, Self

import numpy as np

from resultset.exceptions import SchemaError

logger = logging.getLogger(__name__)


class RawKind(Enum):
    """Wire representation tags for a single cell.
    """
    NULL = 'null'
    BOOL = 'bool'
    INT = 'int'
    FLOAT = 'float'
    TEXT = 'text'
    BYTES = 'bytes'


def _unwrap_numpy(value: Any) -> Any:
    """Convert a NumPy scalar to the matching Python scalar."""
    if isinstance(value, np.datetime64):
        return str(value)
    if isinstance(value, np.generic):
        return value.item()
    return value


class RawValue(NamedTuple):
    """One cell as received, tagged by its wire kind.
    """
    kind: RawKind
    value: Any

    @classmethod
    def of(cls, obj: Any) -> Self:
        """Classify an upstream cell.

        Decimals, dates and any other object without a dedicated tag are
        carried as their text form.
        """
        obj = _unwrap_numpy(obj)
        if obj is None:
            return cls(RawKind.NULL, None)
        if isinstance(obj, bool):
            return cls(RawKind.BOOL, obj)
        if isinstance(obj, int):
            return cls(RawKind.INT, obj)
        if isinstance(obj, float):
            return cls(RawKind.FLOAT, obj)
        if isinstance(obj, str):
            return cls(RawKind.TEXT, obj)
        if isinstance(obj, bytes | bytearray | memoryview):
            return cls(RawKind.BYTES, bytes(obj))
        return cls(RawKind.TEXT, str(obj))

    @property
    def is_null(self) -> bool:
        return self.kind is RawKind.NULL

    @property
    def text(self) -> str | None:
        """Text form used for fallback parsing.

        Raises UnicodeDecodeError for binary values that are not UTF-8.
        """
        if self.kind is RawKind.NULL:
            return None
        if self.kind is RawKind.BOOL:
            return 'true' if self.value else 'false'
        if self.kind is RawKind.BYTES:
            return self.value.decode('utf-8')
        if self.kind is RawKind.TEXT:
            return self.value
        return str(self.value)

    @property
    def display(self) -> str:
        """Printable form for error messages; never raises."""
        if self.kind is RawKind.BYTES:
            return f'0x{self.value.hex()}'
        if self.kind is RawKind.NULL:
            return 'NULL'
        return self.text


# Type Resolution - Declared wire type names -> Python types

wire_types: dict[str, type] = {}

for v in ['boolean', 'bool']:
    wire_types[v] = bool

for v in ['int8', 'int16', 'int32', 'int64', 'uint8', 'uint16', 'uint32', 'uint64',
          'tinyint', 'smallint', 'int', 'integer', 'bigint']:
    wire_types[v] = int

for v in ['float32', 'float64', 'float', 'double', 'real']:
    wire_types[v] = float

for v in ['decimal', 'numeric']:
    wire_types[v] = Decimal

wire_types['date'] = datetime.date
wire_types['time'] = datetime.time

for v in ['timestamp', 'datetime']:
    wire_types[v] = datetime.datetime

for v in ['binary', 'blob', 'varbinary', 'bitmap']:
    wire_types[v] = bytes

for v in ['string', 'varchar', 'char', 'text']:
    wire_types[v] = str


def base_type_name(type_name: str) -> str:
    """Strip Nullable(...) wrappers and type parameters from a wire type name.

    >>> base_type_name('Nullable(Decimal(10, 2))')
    'decimal'
    """
    name = type_name.strip()
    while name.lower().startswith('nullable(') and name.endswith(')'):
        name = name[len('nullable('):-1].strip()
    return name.split('(')[0].strip().lower()


def resolve_type(type_name: str | None) -> type:
    """Resolve a declared wire type name to a Python type.

    Unknown and missing type names resolve to str.
    """
    if type_name is None:
        return str
    return wire_types.get(base_type_name(type_name), str)


class Column:
    """Representation of a result column: its name and declared wire type.
    """

    def __init__(self, name: str, type_name: str | None = None,
                 python_type: type | None = None) -> None:
        self.name = name
        self.type_name = type_name
        self.python_type = python_type or resolve_type(type_name)

    @classmethod
    def from_schema_item(cls, item: Any) -> Self:
        """Create a Column from one schema entry.

        Accepts a Column, a ``(name, type_name)`` pair or a mapping with
        ``name`` and ``type`` keys as sent by the query service.
        """
        if isinstance(item, Column):
            return item
        if isinstance(item, dict):
            name, type_name = item.get('name'), item.get('type')
        elif isinstance(item, list | tuple) and len(item) == 2:
            name, type_name = item
        else:
            raise SchemaError(f'Malformed schema entry: {item!r}')
        if not isinstance(name, str) or not name:
            raise SchemaError(f'Column name must be a non-empty string: {item!r}')
        if type_name is not None and not isinstance(type_name, str):
            raise SchemaError(f'Column type must be a string: {item!r}')
        return cls(name, type_name)

    def __repr__(self) -> str:
        return (f'Column(name={self.name!r}, type_name={self.type_name!r}, '
                f'python_type={self.python_type.__name__})')

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.
        """
        return {
            'name': self.name,
            'type_name': self.type_name,
            'python_type': self.python_type.__name__,
            }

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        """Get column names from a list of Column objects.
        """
        return [col.name for col in columns]

    @staticmethod
    def unique(columns: list[Self]) -> list[tuple[int, Self]]:
        """1-based ordinals and columns, skipping later case-insensitive duplicates.
        """
        seen = set()
        unique = []
        for ordinal, col in enumerate(columns, start=1):
            key = col.name.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append((ordinal, col))
        return unique

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict[str, Any]]:
        """Get a dictionary of column types indexed by name.
        """
        return {col.name: col.to_dict() for col in columns}


def columns_from_schema(schema: Any) -> list[Column]:
    """Create Column objects from a schema description.

    Raises SchemaError when the schema is not a sequence of column entries.
    """
    if schema is None or isinstance(schema, str | bytes | dict):
        raise SchemaError(f'Schema must be a sequence of columns, got {type(schema).__name__}')
    try:
        items = list(schema)
    except TypeError as e:
        raise SchemaError(f'Schema is not iterable: {schema!r}') from e
    return [Column.from_schema_item(item) for item in items]
