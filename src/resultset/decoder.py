"""
Per-type conversion of result set cells.

Every converter takes a RawValue and the column ordinal (for error
messages) and returns None for NULL cells. A cell whose tag matches the
target is converted directly; otherwise its text form is parsed with the
matching numeric or temporal parser.
"""
import datetime
import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from resultset import numeric, temporal
from resultset.exceptions import MalformedTemporalLiteral, TypeMismatch
from resultset.types import RawKind, RawValue

logger = logging.getLogger(__name__)

TRUE_LITERALS = {'true', '1'}
FALSE_LITERALS = {'false', '0'}
NULL_LITERAL = 'null'


def to_text(raw: RawValue, ordinal: int = 0) -> str | None:
    if raw.is_null:
        return None
    try:
        return raw.text
    except UnicodeDecodeError as e:
        raise TypeMismatch(ordinal, raw.display, 'string') from e


def to_bool(raw: RawValue, ordinal: int = 0) -> bool | None:
    if raw.is_null:
        return None
    if raw.kind is RawKind.BOOL:
        return raw.value
    if raw.kind in {RawKind.INT, RawKind.FLOAT}:
        return raw.value != 0
    if raw.kind is RawKind.TEXT:
        literal = raw.value.strip().lower()
        if literal in TRUE_LITERALS:
            return True
        if literal in FALSE_LITERALS:
            return False
    raise TypeMismatch(ordinal, raw.display, 'boolean')


def to_bytes(raw: RawValue, ordinal: int = 0) -> bytes | None:
    """Binary cells only; text is never implicitly encoded."""
    if raw.is_null:
        return None
    if raw.kind is RawKind.BYTES:
        return raw.value
    raise TypeMismatch(ordinal, raw.display, 'byte array')


def _temporal_text(raw: RawValue, ordinal: int, target: str) -> str:
    if raw.kind is RawKind.TEXT:
        return raw.value
    raise TypeMismatch(ordinal, raw.display, target)


def is_null_literal(raw: RawValue) -> bool:
    """Whether a text cell spells SQL NULL, as some servers send timestamps."""
    return raw.kind is RawKind.TEXT and raw.value.strip().lower() == NULL_LITERAL


def to_date(raw: RawValue, ordinal: int = 0,
            zone: temporal.ZoneLike = None) -> datetime.date | None:
    if raw.is_null:
        return None
    text = _temporal_text(raw, ordinal, 'date')
    try:
        millis = temporal.parse_date(text, zone)
        try:
            return temporal.date_from_millis(millis, zone)
        except (ValueError, OverflowError) as e:
            raise MalformedTemporalLiteral('date', text,
                                           'outside the supported date range') from e
    except MalformedTemporalLiteral as e:
        raise e.at_column(ordinal)


def to_time(raw: RawValue, ordinal: int = 0,
            zone: temporal.ZoneLike = None) -> temporal.TimeOfDay | None:
    if raw.is_null:
        return None
    text = _temporal_text(raw, ordinal, 'time')
    try:
        return temporal.parse_time(text, zone)
    except MalformedTemporalLiteral as e:
        raise e.at_column(ordinal)


def to_timestamp(raw: RawValue, ordinal: int = 0,
                 zone_resolver: temporal.ZoneResolver | None = None) -> temporal.Timestamp | None:
    """Timestamp cell as an instant; the text ``null`` in any case reads as NULL."""
    if raw.is_null or is_null_literal(raw):
        return None
    text = _temporal_text(raw, ordinal, 'timestamp')
    try:
        parsed = temporal.parse_timestamp(text)
        return temporal.to_timestamp(parsed, zone_resolver or temporal.fixed_zone(None))
    except MalformedTemporalLiteral as e:
        raise e.at_column(ordinal)


def to_object(raw: RawValue, ordinal: int = 0) -> Any:
    return raw.value


def _timestamp_native(raw: RawValue, ordinal: int, zone: temporal.ZoneLike) -> datetime.datetime | None:
    value = to_timestamp(raw, ordinal, temporal.embedded_zone(zone))
    return value.to_datetime(zone) if value is not None else None


def _time_native(raw: RawValue, ordinal: int, zone: temporal.ZoneLike) -> datetime.time | None:
    value = to_time(raw, ordinal, zone)
    return value.to_time() if value is not None else None


_NATIVE_DECODERS: dict[type, Callable[[RawValue, int, temporal.ZoneLike], Any]] = {
    str: lambda raw, ordinal, zone: to_text(raw, ordinal),
    bool: lambda raw, ordinal, zone: to_bool(raw, ordinal),
    int: lambda raw, ordinal, zone: numeric.to_integer(raw, 64, ordinal),
    float: lambda raw, ordinal, zone: numeric.to_float(raw, 64, ordinal),
    Decimal: lambda raw, ordinal, zone: numeric.to_decimal(raw, ordinal),
    bytes: lambda raw, ordinal, zone: to_bytes(raw, ordinal),
    datetime.date: lambda raw, ordinal, zone: to_date(raw, ordinal, zone),
    datetime.time: _time_native,
    datetime.datetime: _timestamp_native,
    }

_PRECISE_DECODERS: dict[type, Callable[[RawValue, int, temporal.ZoneLike], Any]] = {
    datetime.time: lambda raw, ordinal, zone: to_time(raw, ordinal, zone),
    datetime.datetime: lambda raw, ordinal, zone: to_timestamp(raw, ordinal,
                                                               temporal.embedded_zone(zone)),
    }


def decode(raw: RawValue, ordinal: int, python_type: type,
           zone: temporal.ZoneLike = None, precise: bool = False) -> Any:
    """Decode a cell to the Python type declared for its column.

    Timestamps become aware datetimes in ``zone`` and honor an embedded time
    zone; times become naive ``datetime.time``. With ``precise`` they are
    returned as Timestamp and TimeOfDay instead, keeping nanoseconds. Types
    without a decoder are returned as received.
    """
    decoder = _PRECISE_DECODERS.get(python_type) if precise else None
    decoder = decoder or _NATIVE_DECODERS.get(python_type)
    if decoder is None:
        return to_object(raw, ordinal)
    return decoder(raw, ordinal, zone)
