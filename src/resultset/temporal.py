"""
Date, time and timestamp literal parsing.

Server values arrive as text in the forms::

    date       := year "-" month "-" day
    time       := hour ":" minute ":" second ["." fraction]
    timestamp  := date [" " hour ":" minute [":" second ["." fraction]]] [ws timezone]

Sub-second fractions are first normalized to picoseconds (12 digits) and
then rescaled to nanoseconds with round-half-up. Both time-of-day and
timestamp values use the same rounding; a fraction that rounds up to a
full second carries into the seconds field.

Epoch values are computed in a caller-supplied zone. Values that fall
before 1901-01-01 in that zone are recomputed on the proleptic Gregorian
calendar using the zone's offset at 1901-01-01, so that pre-modern dates
get a stable day numbering instead of the local mean time offsets that
zone databases carry for the nineteenth century.
"""
import datetime
import logging
from collections.abc import Callable
from typing import NamedTuple

import pandas as pd
from dateutil import tz
from dateutil.parser import isoparser

from resultset.exceptions import MalformedTemporalLiteral

logger = logging.getLogger(__name__)

MAX_DATETIME_PRECISION = 12
NANOSECOND_PRECISION = 9
POWERS_OF_TEN = tuple(10 ** i for i in range(MAX_DATETIME_PRECISION + 1))

MILLISECONDS_PER_SECOND = 1000
SECONDS_PER_DAY = 86400
NANOSECONDS_PER_SECOND = 1_000_000_000
PICOSECONDS_PER_NANOSECOND = 1000

MIN_FAST_PATH_YEAR = 1
MAX_YEAR = 9999
MODERN_ERA = (1901, 1, 1)

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.UTC)
ONE_SECOND = datetime.timedelta(seconds=1)

ZoneLike = datetime.tzinfo | str | None
ZoneResolver = Callable[[str | None], datetime.tzinfo]


class ParsedTimestamp(NamedTuple):
    """Fields of a timestamp literal before zone resolution."""
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    picos_of_second: int
    timezone: str | None


class TimeOfDay(NamedTuple):
    """Parsed time-of-day.

    ``epoch_millis`` is the instant of that wall time on 1970-01-01 in the
    zone the time was parsed in.
    """
    hour: int
    minute: int
    second: int
    nanosecond: int
    epoch_millis: int

    def to_time(self) -> datetime.time:
        """Python time, truncated to microseconds."""
        return datetime.time(self.hour, self.minute, self.second,
                             self.nanosecond // 1000)

    @property
    def nanos_of_day(self) -> int:
        return ((self.hour * 60 + self.minute) * 60 + self.second) * NANOSECONDS_PER_SECOND \
            + self.nanosecond

    def to_pandas(self) -> pd.Timedelta:
        """Time since midnight as a pandas Timedelta, keeping nanoseconds."""
        return pd.Timedelta(self.nanos_of_day, unit='ns')


class Timestamp(NamedTuple):
    """Instant with nanosecond precision."""
    epoch_second: int
    nanosecond: int

    @property
    def epoch_millis(self) -> int:
        return self.epoch_second * MILLISECONDS_PER_SECOND + self.nanosecond // 1_000_000

    @property
    def epoch_nanos(self) -> int:
        return self.epoch_second * NANOSECONDS_PER_SECOND + self.nanosecond

    def to_datetime(self, zone: ZoneLike = None) -> datetime.datetime:
        """Aware datetime in ``zone``, truncated to microseconds."""
        value = EPOCH + datetime.timedelta(seconds=self.epoch_second,
                                           microseconds=self.nanosecond // 1000)
        return value.astimezone(resolve_zone(zone))

    def to_pandas(self, zone: ZoneLike = None) -> pd.Timestamp:
        """pandas Timestamp keeping full nanosecond precision."""
        value = pd.Timestamp(self.epoch_nanos, unit='ns', tz='UTC')
        return value.tz_convert(resolve_zone(zone))


# Zones

def resolve_zone(zone: ZoneLike) -> datetime.tzinfo:
    """Return a tzinfo for a zone name, tzinfo or None (UTC)."""
    if zone is None:
        return tz.UTC
    if isinstance(zone, datetime.tzinfo):
        return zone
    resolved = tz.gettz(zone)
    if resolved is None:
        raise ValueError(f'Unknown time zone: {zone}')
    return resolved


def fixed_zone(zone: ZoneLike) -> ZoneResolver:
    """Resolver that always uses ``zone`` and rejects embedded time zones."""
    resolved = resolve_zone(zone)

    def resolver(timezone: str | None) -> datetime.tzinfo:
        if timezone is not None:
            raise MalformedTemporalLiteral('timestamp', timezone,
                                           'time zone not allowed here')
        return resolved

    return resolver


def embedded_zone(default: ZoneLike) -> ZoneResolver:
    """Resolver that honors a time zone embedded in the literal.

    Accepts ISO offsets (``Z``, ``+08``, ``+0800``, ``+08:00``) and zone
    names; falls back to ``default`` when the literal carries none.
    """
    fallback = resolve_zone(default)
    parser = isoparser()

    def resolver(timezone: str | None) -> datetime.tzinfo:
        if timezone is None:
            return fallback
        try:
            return parser.parse_tzstr(timezone)
        except ValueError:
            pass
        resolved = tz.gettz(timezone)
        if resolved is None:
            raise MalformedTemporalLiteral('timestamp', timezone, 'unknown time zone')
        return resolved

    return resolver


# Precision

def rescale(value: int, from_precision: int, to_precision: int) -> int:
    """Rescale a fraction between decimal precisions.

    Upscaling is exact; downscaling rounds half up.

    >>> rescale(5, 1, 3)
    500
    >>> rescale(650, 3, 1)
    7
    """
    if value < 0:
        raise ValueError('value must be >= 0')
    for precision in (from_precision, to_precision):
        if not 0 <= precision <= MAX_DATETIME_PRECISION:
            raise ValueError(f'precision must be between 0 and {MAX_DATETIME_PRECISION}')
    if from_precision <= to_precision:
        return value * POWERS_OF_TEN[to_precision - from_precision]
    divisor = POWERS_OF_TEN[from_precision - to_precision]
    return (value + divisor // 2) // divisor


# Calendar

def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if is_leap_year(year) else 28
    return 30 if month in {4, 6, 9, 11} else 31


def days_from_civil(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 on the proleptic Gregorian calendar."""
    year -= month <= 2
    era = year // 400
    yoe = year - era * 400
    doy = (153 * (month - 3 if month > 2 else month + 9) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146097 + doe - 719468


def civil_from_days(days: int) -> tuple[int, int, int]:
    """Inverse of days_from_civil."""
    days += 719468
    era = days // 146097
    doe = days - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    return yoe + era * 400 + (month <= 2), month, day


def _epoch_seconds(value: datetime.datetime) -> int:
    return (value - EPOCH) // ONE_SECOND


def modern_era_threshold(zone: datetime.tzinfo) -> int:
    """Epoch seconds of 1901-01-01T00:00 local time in ``zone``."""
    return _epoch_seconds(datetime.datetime(*MODERN_ERA, tzinfo=zone))


def _threshold_offset(zone: datetime.tzinfo) -> int:
    offset = datetime.datetime(*MODERN_ERA, tzinfo=zone).utcoffset()
    return offset // ONE_SECOND if offset is not None else 0


def _proleptic_epoch_seconds(year: int, month: int, day: int, hour: int,
                             minute: int, second: int, zone: datetime.tzinfo) -> int:
    local = days_from_civil(year, month, day) * SECONDS_PER_DAY + hour * 3600 + minute * 60 + second
    return local - _threshold_offset(zone)


def _local_epoch_seconds(year: int, month: int, day: int, hour: int,
                         minute: int, second: int, zone: datetime.tzinfo) -> int:
    """Epoch seconds of a local date-time, falling back to the proleptic
    calendar before the modern era.
    """
    if year >= MIN_FAST_PATH_YEAR:
        epoch_second = _epoch_seconds(
            datetime.datetime(year, month, day, hour, minute, second, tzinfo=zone))
        if epoch_second >= modern_era_threshold(zone):
            return epoch_second
    return _proleptic_epoch_seconds(year, month, day, hour, minute, second, zone)


# Scanner

class _Scanner:
    """Character scanner over a literal; positions can be saved and restored."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def accept(self, char: str) -> bool:
        if self.text.startswith(char, self.pos):
            self.pos += len(char)
            return True
        return False

    def digits(self, minimum: int, maximum: int | None = None) -> str | None:
        """Consume a run of ASCII digits, at most ``maximum`` long."""
        end = self.pos
        while end < len(self.text) and self.text[end] in '0123456789':
            if maximum is not None and end - self.pos == maximum:
                break
            end += 1
        if end - self.pos < minimum:
            return None
        run, self.pos = self.text[self.pos:end], end
        return run

    def skip_whitespace(self) -> None:
        while not self.at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def rest(self) -> str:
        run, self.pos = self.text[self.pos:], len(self.text)
        return run


def _fraction_picos(fraction: str | None, kind: str, text: str) -> int:
    if fraction is None:
        return 0
    if len(fraction) > MAX_DATETIME_PRECISION:
        raise MalformedTemporalLiteral(kind, text, 'fraction exceeds picosecond precision')
    return rescale(int(fraction), len(fraction), MAX_DATETIME_PRECISION)


def _check_time_fields(hour: int, minute: int, second: int, kind: str, text: str) -> None:
    if hour > 23 or minute > 59 or second > 59:
        raise MalformedTemporalLiteral(kind, text, 'field out of range')


def _check_date_fields(year: int, month: int, day: int, kind: str, text: str) -> None:
    if year > MAX_YEAR:
        raise MalformedTemporalLiteral(kind, text, f'year after {MAX_YEAR}')
    if not 1 <= month <= 12 or not 1 <= day <= days_in_month(year, month):
        raise MalformedTemporalLiteral(kind, text, 'field out of range')


def _scan_date(scanner: _Scanner, kind: str, text: str) -> tuple[int, int, int]:
    sign = '-' if scanner.accept('-') else ''
    if not sign:
        scanner.accept('+')
    year = scanner.digits(4)
    if year is None or not scanner.accept('-'):
        raise MalformedTemporalLiteral(kind, text)
    month = scanner.digits(1, 2)
    if month is None or not scanner.accept('-'):
        raise MalformedTemporalLiteral(kind, text)
    day = scanner.digits(1, 2)
    if day is None:
        raise MalformedTemporalLiteral(kind, text)
    fields = int(sign + year), int(month), int(day)
    _check_date_fields(*fields, kind, text)
    return fields


def parse_date(text: str, zone: ZoneLike = None) -> int:
    """Parse a date literal to the epoch milliseconds of its local midnight.
    """
    scanner = _Scanner(text)
    year, month, day = _scan_date(scanner, 'date', text)
    if not scanner.at_end():
        raise MalformedTemporalLiteral('date', text)
    zone = resolve_zone(zone)
    return _local_epoch_seconds(year, month, day, 0, 0, 0, zone) * MILLISECONDS_PER_SECOND


def date_from_millis(millis: int, zone: ZoneLike = None) -> datetime.date:
    """Local calendar date of an epoch-millisecond value produced by parse_date.

    Raises ValueError when the date is outside the range of datetime.date.
    """
    zone = resolve_zone(zone)
    seconds = millis // MILLISECONDS_PER_SECOND
    if seconds >= modern_era_threshold(zone):
        return (EPOCH + datetime.timedelta(seconds=seconds)).astimezone(zone).date()
    days = (seconds + _threshold_offset(zone)) // SECONDS_PER_DAY
    return datetime.date(*civil_from_days(days))


def parse_time(text: str, zone: ZoneLike = None) -> TimeOfDay:
    """Parse a time-of-day literal.

    >>> parse_time('13:05:07.123')[:4]
    (13, 5, 7, 123000000)
    """
    scanner = _Scanner(text)
    hour = scanner.digits(1, 2)
    if hour is None or not scanner.accept(':'):
        raise MalformedTemporalLiteral('time', text)
    minute = scanner.digits(1, 2)
    if minute is None or not scanner.accept(':'):
        raise MalformedTemporalLiteral('time', text)
    second = scanner.digits(1, 2)
    if second is None:
        raise MalformedTemporalLiteral('time', text)
    fraction = None
    if scanner.accept('.'):
        fraction = scanner.digits(1)
        if fraction is None:
            raise MalformedTemporalLiteral('time', text)
    if not scanner.at_end():
        raise MalformedTemporalLiteral('time', text)

    hour, minute, second = int(hour), int(minute), int(second)
    _check_time_fields(hour, minute, second, 'time', text)

    nanos = rescale(_fraction_picos(fraction, 'time', text), MAX_DATETIME_PRECISION,
                    NANOSECOND_PRECISION)
    if nanos == NANOSECONDS_PER_SECOND:
        seconds_of_day = (hour * 3600 + minute * 60 + second + 1) % SECONDS_PER_DAY
        hour, rem = divmod(seconds_of_day, 3600)
        minute, second = divmod(rem, 60)
        nanos = 0

    zone = resolve_zone(zone)
    epoch_second = _epoch_seconds(datetime.datetime(1970, 1, 1, hour, minute, second, tzinfo=zone))
    epoch_millis = epoch_second * MILLISECONDS_PER_SECOND + nanos // 1_000_000
    return TimeOfDay(hour, minute, second, nanos, epoch_millis)


def parse_timestamp(text: str) -> ParsedTimestamp:
    """Parse a timestamp literal into its fields without resolving a zone.

    Missing time fields are zero. Anything after the date-time, with or
    without leading whitespace, is returned as the time zone text.
    """
    scanner = _Scanner(text)
    year, month, day = _scan_date(scanner, 'timestamp', text)

    hour = minute = second = 0
    fraction = None
    mark = scanner.pos
    hh = mm = None
    if scanner.accept(' '):
        hh = scanner.digits(1, 2)
        if hh is not None and scanner.accept(':'):
            mm = scanner.digits(1, 2)
    if mm is None:
        scanner.pos = mark
    else:
        hour, minute = int(hh), int(mm)
        mark = scanner.pos
        ss = scanner.digits(1, 2) if scanner.accept(':') else None
        if ss is None:
            scanner.pos = mark
        else:
            second = int(ss)
            mark = scanner.pos
            if scanner.accept('.'):
                fraction = scanner.digits(1)
                if fraction is None:
                    scanner.pos = mark
    _check_time_fields(hour, minute, second, 'timestamp', text)

    scanner.skip_whitespace()
    timezone = scanner.rest() or None
    picos = _fraction_picos(fraction, 'timestamp', text)
    return ParsedTimestamp(year, month, day, hour, minute, second, picos, timezone)


def to_timestamp(parsed: ParsedTimestamp, zone_resolver: ZoneResolver) -> Timestamp:
    """Convert parsed fields to an instant.

    ``zone_resolver`` receives the embedded time zone text (or None) and
    returns the zone the local date-time is interpreted in.
    """
    zone = zone_resolver(parsed.timezone)
    epoch_second = _local_epoch_seconds(parsed.year, parsed.month, parsed.day, parsed.hour,
                                        parsed.minute, parsed.second, zone)
    nanos = rescale(parsed.picos_of_second, MAX_DATETIME_PRECISION, NANOSECOND_PRECISION)
    if nanos == NANOSECONDS_PER_SECOND:
        epoch_second += 1
        nanos = 0
    return Timestamp(epoch_second, nanos)


def parse_timestamp_in_zone(text: str, zone: ZoneLike = None) -> Timestamp:
    """Parse a timestamp literal interpreted in ``zone``; embedded zones are rejected."""
    return to_timestamp(parse_timestamp(text), fixed_zone(zone))
