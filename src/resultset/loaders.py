"""
Data loaders turning decoded rows into the caller's preferred container.

Rows reach a loader decoded with nanosecond precision: timestamp columns
hold Timestamp values and time columns hold TimeOfDay values. Each loader
takes ``(data, columns, time_zone=None, **kwargs)`` where ``data`` is a
list of row dictionaries and ``columns`` the cursor's Column list; later
case-insensitive duplicate columns are dropped, as in the rows themselves.
"""
import datetime
import logging
from collections.abc import Callable
from typing import Any

import numpy as np
import pandas as pd
import pyarrow as pa

from resultset.temporal import TimeOfDay, Timestamp, ZoneLike, resolve_zone
from resultset.types import Column

from libb import attrdict

logger = logging.getLogger(__name__)

__all__ = [
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'load_data',
]

NAT = np.iinfo(np.int64).min


def _native(value: Any, zone: ZoneLike) -> Any:
    if isinstance(value, Timestamp):
        return value.to_datetime(zone)
    if isinstance(value, TimeOfDay):
        return value.to_time()
    return value


def _nanos(values: list, kind: type, field: str) -> np.ndarray | None:
    """int64 nanoseconds with NaT for missing values.

    None when a value is not of ``kind`` or does not fit in datetime64[ns].
    """
    nanos = []
    for value in values:
        if value is None:
            nanos.append(NAT)
        elif not isinstance(value, kind):
            return None
        else:
            nanos.append(getattr(value, field))
    if any(n != NAT and not NAT < n <= np.iinfo(np.int64).max for n in nanos):
        return None
    return np.array(nanos, dtype=np.int64)


def _column_values(data: list, column: Column) -> list:
    return [row[column.name] for row in data]


def _column_types(columns: list[Column]) -> dict[str, dict[str, Any]]:
    return Column.get_column_types_dict([col for _, col in Column.unique(columns)])


def iterdict_data_loader(data, columns, time_zone: ZoneLike = None, **kwargs) -> list[attrdict]:
    """Rows as attrdicts of plain Python values.

    Timestamps become aware datetimes in ``time_zone`` and times become
    ``datetime.time``, both truncated to microseconds.
    """
    if not data:
        return []
    return [attrdict({name: _native(value, time_zone) for name, value in row.items()})
            for row in data]


def _numpy_series(values: list, column: Column, zone: ZoneLike) -> pd.Series:
    if column.python_type is datetime.datetime:
        nanos = _nanos(values, Timestamp, 'epoch_nanos')
        if nanos is not None:
            index = pd.DatetimeIndex(nanos.view('datetime64[ns]')).tz_localize('UTC')
            return pd.Series(index.tz_convert(resolve_zone(zone)), name=column.name)
        logger.debug(f'Column {column.name!r} outside the datetime64[ns] range, '
                     f'keeping Python datetimes')
    elif column.python_type is datetime.time:
        nanos = _nanos(values, TimeOfDay, 'nanos_of_day')
        if nanos is not None:
            return pd.Series(nanos.view('timedelta64[ns]'), name=column.name)
    return pd.Series([_native(value, zone) for value in values], name=column.name)


def pandas_numpy_data_loader(data, columns, time_zone: ZoneLike = None, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Timestamp columns become datetime64[ns] in ``time_zone`` and time
    columns timedelta64[ns] since midnight, so nanoseconds survive. Always
    returns a DataFrame, with columns preserved for empty results and type
    information in DataFrame.attrs.
    """
    data = data or []
    df = pd.DataFrame({col.name: _numpy_series(_column_values(data, col), col, time_zone)
                       for _, col in Column.unique(columns)})
    df.attrs['column_types'] = _column_types(columns)
    return df


def _arrow_array(values: list, column: Column, zone: ZoneLike) -> pa.Array:
    if column.python_type is datetime.datetime:
        nanos = _nanos(values, Timestamp, 'epoch_nanos')
        if nanos is not None:
            arrow_zone = zone if isinstance(zone, str) else 'UTC'
            return pa.array(nanos, mask=nanos == NAT).cast(pa.timestamp('ns', tz=arrow_zone))
    elif column.python_type is datetime.time:
        nanos = _nanos(values, TimeOfDay, 'nanos_of_day')
        if nanos is not None:
            return pa.array(nanos, mask=nanos == NAT).cast(pa.time64('ns'))
    return pa.array([_native(value, zone) for value in values])


def pandas_pyarrow_data_loader(data, columns, time_zone: ZoneLike = None, **kwargs) -> pd.DataFrame:
    """PyArrow-backed pandas DataFrame loader.

    Timestamp columns become ``timestamp[ns]`` tagged with ``time_zone``
    when it is a zone name (else UTC) and time columns ``time64[ns]``.
    Always returns a DataFrame, with columns preserved for empty results.
    """
    data = data or []
    unique = [col for _, col in Column.unique(columns)]
    arrays = [_arrow_array(_column_values(data, col), col, time_zone) for col in unique]
    table = pa.table(arrays, names=Column.get_names(unique))
    df = table.to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = _column_types(columns)
    return df


def load_data(cursor: Any, data_loader: Callable[..., Any] | None = None,
              **kwargs: Any) -> Any:
    """Drain the remaining rows of a cursor into the configured container.

    Rows are decoded with nanosecond precision and the cursor's configured
    time zone is passed to the loader unless one is given.
    """
    if data_loader is None:
        data_loader = cursor.options.data_loader
    kwargs.setdefault('time_zone', cursor.options.time_zone)
    data = cursor.fetch_remaining(precise=True)
    logger.debug(f'Loading {len(data)} rows with {getattr(data_loader, "__name__", data_loader)}')
    return data_loader(data, cursor.columns, **kwargs)
