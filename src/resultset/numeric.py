"""
Numeric coercion for result set cells.

Numeric cells are narrowed to the requested width the way a native cast
would (two's-complement wrap for integers, IEEE narrowing for 32-bit
floats). Text cells are parsed with the target's literal grammar and,
for integers, must fit the requested width.
"""
import logging
import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext

import numpy as np

from resultset.exceptions import TypeMismatch
from resultset.types import RawKind, RawValue

logger = logging.getLogger(__name__)

INTEGER_WIDTHS: dict[int, type] = {
    8: np.int8,
    16: np.int16,
    32: np.int32,
    64: np.int64,
    }

FLOAT_WIDTHS: dict[int, type] = {
    32: np.float32,
    64: np.float64,
    }

INTEGER_NAMES = {8: 'byte', 16: 'short', 32: 'int', 64: 'long'}
FLOAT_NAMES = {32: 'float', 64: 'double'}

_INTEGER_LITERAL = re.compile(r'[+-]?\d+')
_FLOAT_LITERAL = re.compile(r'[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|nan|inf|infinity)',
                            re.IGNORECASE)
_DECIMAL_LITERAL = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')

_UINT64_MASK = (1 << 64) - 1


def integer_bounds(bits: int) -> tuple[int, int]:
    return -(1 << (bits - 1)), (1 << (bits - 1)) - 1


def narrow_integer(value: int, bits: int) -> int:
    """Wrap an integer to a signed ``bits``-wide two's-complement value.

    >>> narrow_integer(300, 8)
    44
    """
    wide = np.array(value & _UINT64_MASK, dtype=np.uint64)
    return int(wide.astype(INTEGER_WIDTHS[bits]))


def parse_integer(text: str, bits: int = 64) -> int:
    """Parse a decimal integer literal that must fit in ``bits``."""
    if not _INTEGER_LITERAL.fullmatch(text):
        raise ValueError(f'Not an integer literal: {text!r}')
    value = int(text)
    low, high = integer_bounds(bits)
    if not low <= value <= high:
        raise ValueError(f'Integer literal out of range for {bits} bits: {text!r}')
    return value


def parse_float(text: str) -> float:
    text = text.strip()
    if not _FLOAT_LITERAL.fullmatch(text):
        raise ValueError(f'Not a floating point literal: {text!r}')
    return float(text)


def parse_decimal(text: str) -> Decimal:
    """Parse a decimal literal: sign, digits, optional fraction and exponent."""
    if not _DECIMAL_LITERAL.fullmatch(text):
        raise ValueError(f'Not a decimal literal: {text!r}')
    return Decimal(text)


def _check_width(bits: int, widths: dict) -> None:
    if bits not in widths:
        raise ValueError(f'Unsupported width: {bits} (expected one of {sorted(widths)})')


def to_integer(raw: RawValue, bits: int = 32, ordinal: int = 0) -> int | None:
    """Convert a cell to a signed integer of the given width."""
    _check_width(bits, INTEGER_WIDTHS)
    target = INTEGER_NAMES[bits]
    if raw.kind is RawKind.NULL:
        return None
    if raw.kind is RawKind.INT:
        return narrow_integer(raw.value, bits)
    if raw.kind is RawKind.FLOAT:
        if math.isnan(raw.value) or math.isinf(raw.value):
            raise TypeMismatch(ordinal, raw.display, target)
        return narrow_integer(math.trunc(raw.value), bits)
    logger.debug(f'Parsing {raw.kind.value} value at column {ordinal} as {target}')
    try:
        return parse_integer(raw.text, bits)
    except (ValueError, UnicodeDecodeError) as e:
        raise TypeMismatch(ordinal, raw.display, target) from e


def to_float(raw: RawValue, bits: int = 64, ordinal: int = 0) -> float | None:
    """Convert a cell to a float, narrowed through float32 when ``bits`` is 32."""
    _check_width(bits, FLOAT_WIDTHS)
    target = FLOAT_NAMES[bits]
    if raw.kind is RawKind.NULL:
        return None
    if raw.kind in {RawKind.INT, RawKind.FLOAT}:
        value = raw.value
    else:
        logger.debug(f'Parsing {raw.kind.value} value at column {ordinal} as {target}')
        try:
            value = parse_float(raw.text)
        except (ValueError, UnicodeDecodeError) as e:
            raise TypeMismatch(ordinal, raw.display, target) from e
    if bits == 32:
        return float(np.float32(value))
    return float(value)


def to_decimal(raw: RawValue, ordinal: int = 0) -> Decimal | None:
    """Convert a cell to an arbitrary-precision decimal via its text form."""
    if raw.kind is RawKind.NULL:
        return None
    if raw.kind is RawKind.INT:
        return Decimal(raw.value)
    try:
        return parse_decimal(raw.text)
    except (ValueError, UnicodeDecodeError) as e:
        raise TypeMismatch(ordinal, raw.display, 'decimal') from e


def rescale_decimal(value: Decimal, scale: int) -> Decimal:
    """Quantize to ``scale`` fractional digits, rounding half up."""
    if scale < 0:
        raise ValueError('scale must be >= 0')
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + scale + 2)
        return value.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)


def to_scaled_decimal(raw: RawValue, scale: int, ordinal: int = 0) -> Decimal | None:
    """Legacy accessor: decimal re-scaled to ``scale`` fractional digits.

    New code should call to_decimal and round at the call site.
    """
    value = to_decimal(raw, ordinal)
    if value is None:
        return None
    return rescale_decimal(value, scale)
