"""
Forward-only result cursor over a stream of raw rows.

The cursor owns the current row and the sticky was-null flag; it is not
safe to share between threads without external locking.
"""
import io
import logging
import warnings
from collections.abc import Iterable, Iterator
from dataclasses import fields
import datetime
from decimal import Decimal
from functools import wraps
from typing import Any

from resultset import decoder, numeric, temporal
from resultset.catalog import ColumnCatalog
from resultset.exceptions import InvalidCursorState, ResultSetError
from resultset.exceptions import TypeMismatch, UpstreamFailure
from resultset.options import CursorOptions
from resultset.types import Column, RawKind, RawValue

from libb import attrdict, load_options

logger = logging.getLogger(__name__)

__all__ = [
    'RowCursor',
    'open_cursor',
    'FETCH_FORWARD',
]

FETCH_FORWARD = 'forward'

ColumnRef = int | str


def attribute_errors(func):
    """Decorator tagging result set errors with the cursor's query id."""
    @wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        try:
            return func(self, *args, **kwargs)
        except ResultSetError as e:
            if e.query_id is None:
                e.query_id = self.query_id or None
            raise
    return wrapper


class RowCursor:
    """Forward-only cursor with typed accessors.

    Columns are addressed by 1-based ordinal or by case-insensitive name.
    Every accessor returns None for a NULL cell and records it in the
    sticky flag read by was_null().
    """

    def __init__(self, schema: Any, rows: Iterable[Any], query_id: str = '',
                 options: CursorOptions | None = None, statement: Any = None) -> None:
        """Initialize cursor.

        Args:
            schema: Sequence of ``(name, type_name)`` pairs, ``{'name', 'type'}``
                mappings or Column objects
            rows: Iterable producing one sequence of cells per row
            query_id: Server query id, used for error attribution only
            options: Cursor options (defaults apply when omitted)
            statement: The statement that created this cursor, if any
        """
        self.query_id = query_id
        self.catalog = ColumnCatalog(schema, query_id or None)
        self.options = options or CursorOptions()
        self._zone = temporal.resolve_zone(self.options.time_zone)
        self._rows: Iterator[Any] = iter(rows)
        self._statement = statement
        self._row: tuple | None = None
        self._row_number = 0
        self._was_null = False
        self._closed = False
        logger.debug(f'Opened cursor for query {query_id!r} with {len(self.catalog)} columns')

    def __enter__(self) -> 'RowCursor':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator['RowCursor']:
        """Advance through the remaining rows, yielding the cursor itself."""
        while self.advance():
            yield self

    def _zone_or_default(self, zone: temporal.ZoneLike) -> temporal.ZoneLike:
        return self._zone if zone is None else zone

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidCursorState('ResultSet is closed', self.query_id or None)

    def close(self) -> None:
        """Close cursor."""
        if self._closed:
            return
        self._closed = True
        self._row = None
        logger.debug(f'Closed cursor for query {self.query_id!r} at row {self._row_number}')

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def time_zone(self) -> datetime.tzinfo:
        """Zone used when an accessor is not given one."""
        self._check_open()
        return self._zone

    @property
    def statement(self) -> Any:
        """The statement that created this cursor."""
        self._check_open()
        if self._statement is None:
            raise InvalidCursorState('Statement not available', self.query_id or None)
        return self._statement

    # Navigation

    def advance(self) -> bool:
        """Move to the next row. Returns False once the rows are exhausted."""
        self._check_open()
        try:
            row = next(self._rows)
        except StopIteration:
            if self._row is not None or self._row_number:
                logger.debug(f'Query {self.query_id!r} exhausted after {self._row_number} rows')
            self._row = None
            self._row_number = 0
            return False
        except ResultSetError:
            raise
        except Exception as e:
            logger.error(f'Error fetching results for query {self.query_id!r}: {e}')
            raise UpstreamFailure('Error fetching results', self.query_id or None) from e

        row = tuple(row)
        if len(row) != len(self.catalog):
            raise UpstreamFailure(f'Row has {len(row)} values, expected {len(self.catalog)}',
                                  self.query_id or None)
        self._row = row
        self._row_number += 1
        return True

    @property
    def row_number(self) -> int:
        """1-based number of the current row; 0 when not on a row."""
        self._check_open()
        return self._row_number

    def current_row_number(self) -> int:
        return self.row_number

    @property
    def fetch_direction(self) -> str:
        self._check_open()
        return FETCH_FORWARD

    def set_fetch_direction(self, direction: str) -> None:
        self._check_open()
        if direction != FETCH_FORWARD:
            raise ValueError('Fetch direction must be forward')

    @property
    def fetch_size(self) -> int:
        """Advisory only; rows are pulled one at a time."""
        self._check_open()
        return self.options.fetch_size

    @fetch_size.setter
    def fetch_size(self, rows: int) -> None:
        self._check_open()
        if rows < 0:
            raise ValueError('Rows is negative')
        self.options.fetch_size = rows

    # Metadata

    @property
    def columns(self) -> list[Column]:
        self._check_open()
        return self.catalog.columns

    @property
    def column_count(self) -> int:
        self._check_open()
        return self.catalog.ordinal_count()

    @property
    def column_names(self) -> list[str]:
        self._check_open()
        return Column.get_names(self.catalog.columns)

    @attribute_errors
    def column_type_name(self, ordinal: int) -> str | None:
        """Declared wire type of a column."""
        self._check_open()
        return self.catalog.declared_type(ordinal)

    @attribute_errors
    def find_column(self, name: str) -> int:
        self._check_open()
        return self.catalog.resolve(name)

    # Raw access

    def _ordinal(self, column: ColumnRef) -> int:
        if isinstance(column, str) or column is None:
            return self.catalog.resolve(column)
        return column

    def _cell(self, column: ColumnRef) -> tuple[int, Any]:
        self._check_open()
        if self._row is None:
            raise InvalidCursorState('Not on a valid row', self.query_id or None)
        ordinal = self.catalog.check_ordinal(self._ordinal(column))
        value = self._row[ordinal - 1]
        self._was_null = value is None
        return ordinal, value

    def _raw(self, column: ColumnRef) -> tuple[int, RawValue]:
        ordinal, value = self._cell(column)
        return ordinal, RawValue.of(value)

    @attribute_errors
    def get_raw(self, column: ColumnRef) -> RawValue:
        return self._raw(column)[1]

    def was_null(self) -> bool:
        """Whether the most recently accessed column was NULL."""
        self._check_open()
        return self._was_null

    @attribute_errors
    def get_object(self, column: ColumnRef) -> Any:
        """The cell exactly as received."""
        return self._cell(column)[1]

    # Typed accessors

    @attribute_errors
    def get_string(self, column: ColumnRef) -> str | None:
        ordinal, raw = self._raw(column)
        return decoder.to_text(raw, ordinal)

    @attribute_errors
    def get_boolean(self, column: ColumnRef) -> bool | None:
        ordinal, raw = self._raw(column)
        return decoder.to_bool(raw, ordinal)

    def _get_integer(self, column: ColumnRef, bits: int) -> int | None:
        ordinal, raw = self._raw(column)
        return numeric.to_integer(raw, bits, ordinal)

    @attribute_errors
    def get_byte(self, column: ColumnRef) -> int | None:
        return self._get_integer(column, 8)

    @attribute_errors
    def get_short(self, column: ColumnRef) -> int | None:
        return self._get_integer(column, 16)

    @attribute_errors
    def get_int(self, column: ColumnRef) -> int | None:
        return self._get_integer(column, 32)

    @attribute_errors
    def get_long(self, column: ColumnRef) -> int | None:
        return self._get_integer(column, 64)

    @attribute_errors
    def get_float(self, column: ColumnRef) -> float | None:
        ordinal, raw = self._raw(column)
        return numeric.to_float(raw, 32, ordinal)

    @attribute_errors
    def get_double(self, column: ColumnRef) -> float | None:
        ordinal, raw = self._raw(column)
        return numeric.to_float(raw, 64, ordinal)

    @attribute_errors
    def get_decimal(self, column: ColumnRef) -> Decimal | None:
        ordinal, raw = self._raw(column)
        return numeric.to_decimal(raw, ordinal)

    @attribute_errors
    def get_scaled_decimal(self, column: ColumnRef, scale: int) -> Decimal | None:
        """Decimal re-scaled to ``scale`` fractional digits, rounding half up.

        Deprecated: use get_decimal and round at the call site.
        """
        warnings.warn('get_scaled_decimal is deprecated; use get_decimal and '
                      'quantize the result instead', DeprecationWarning, stacklevel=3)
        ordinal, raw = self._raw(column)
        return numeric.to_scaled_decimal(raw, scale, ordinal)

    @attribute_errors
    def get_bytes(self, column: ColumnRef) -> bytes | None:
        ordinal, raw = self._raw(column)
        return decoder.to_bytes(raw, ordinal)

    @attribute_errors
    def get_date(self, column: ColumnRef, zone: temporal.ZoneLike = None) -> datetime.date | None:
        ordinal, raw = self._raw(column)
        return decoder.to_date(raw, ordinal, self._zone_or_default(zone))

    @attribute_errors
    def get_time(self, column: ColumnRef,
                 zone: temporal.ZoneLike = None) -> temporal.TimeOfDay | None:
        ordinal, raw = self._raw(column)
        return decoder.to_time(raw, ordinal, self._zone_or_default(zone))

    @attribute_errors
    def get_timestamp(self, column: ColumnRef,
                      zone: temporal.ZoneLike = None) -> temporal.Timestamp | None:
        """Timestamp interpreted in ``zone``; an embedded time zone is an error."""
        ordinal, raw = self._raw(column)
        return decoder.to_timestamp(raw, ordinal, temporal.fixed_zone(self._zone_or_default(zone)))

    @attribute_errors
    def get_zoned_timestamp(self, column: ColumnRef,
                            default_zone: temporal.ZoneLike = None) -> temporal.Timestamp | None:
        """Timestamp honoring an embedded time zone, else ``default_zone``."""
        ordinal, raw = self._raw(column)
        return decoder.to_timestamp(raw, ordinal,
                                    temporal.embedded_zone(self._zone_or_default(default_zone)))

    @attribute_errors
    def get_ascii_stream(self, column: ColumnRef) -> io.BytesIO | None:
        ordinal, raw = self._raw(column)
        if raw.is_null:
            return None
        if raw.kind is not RawKind.TEXT:
            raise TypeMismatch(ordinal, raw.display, 'string')
        return io.BytesIO(raw.value.encode('ascii', errors='replace'))

    @attribute_errors
    def get_binary_stream(self, column: ColumnRef) -> io.BytesIO | None:
        value = self.get_bytes(column)
        if value is None:
            return None
        return io.BytesIO(value)

    # Materialization

    @attribute_errors
    def current_row_dict(self, precise: bool = False) -> attrdict:
        """Decode every column of the current row by its declared type.

        Duplicate column names (ignoring case) keep the first column's value.
        With ``precise``, timestamp and time columns stay as Timestamp and
        TimeOfDay values with nanosecond precision.
        """
        row = attrdict()
        for ordinal, column in Column.unique(self.catalog.columns):
            _, raw = self._raw(ordinal)
            row[column.name] = decoder.decode(raw, ordinal, column.python_type, self._zone,
                                              precise=precise)
        return row

    def fetch_remaining(self, precise: bool = False) -> list[attrdict]:
        """Advance through the remaining rows, decoding each one."""
        return [cursor.current_row_dict(precise) for cursor in self]


def open_cursor(options: CursorOptions | dict[str, Any] | str | None, schema: Any,
                rows: Iterable[Any], config: Any | None = None, query_id: str = '',
                statement: Any = None, **kw: Any) -> RowCursor:
    """Open a cursor over a row stream

    Args:
        options: Can be:
                - CursorOptions object
                - String path to configuration
                - Dictionary of options
                - None for defaults overridden by keyword arguments
        schema: Result schema, see RowCursor
        rows: Iterable of raw rows
        config: Configuration object (for loading from config files)
        query_id: Server query id for error attribution
        statement: Creating statement, kept as a back-reference
        **kw: Additional keyword arguments to override options

    Returns
        RowCursor positioned before the first row
    """
    if isinstance(options, CursorOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    elif options is None:
        options = CursorOptions(**kw)
    else:
        options_func = load_options(cls=CursorOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    return RowCursor(schema, rows, query_id=query_id, options=options, statement=statement)
