"""
Type conversion from raw cursor values to destination field types.

This module handles the Database → Python direction only: one raw value
returned by a cursor is coerced into the static type of one record field.

Rules are tried narrowest first:
1. Null values (None, NaT, NA) are a no-op: the field keeps its value
2. Direct assignment when the value already is an instance of the field type
3. Timestamps format to text using the configured layout (and nothing else)
4. Integers and floats widen or narrow within their own family
5. Bytes are decoded as UTF-8; bytes and text then parse into str, int
   and float fields
Any other combination raises a conversion error.

Usage:
    value = TypeConverter.convert_value(b'42', numpy.int16)
    if value is not SKIP:
        setattr(record, 'count', value)
"""
import math
import re
from typing import Any, get_args

import numpy as np
import pandas as pd
from dbscan.exceptions import ConversionFailed, TextDecodeFailed
from dbscan.exceptions import UnsupportedConversion
from dbscan.options import DEFAULT_TIME_FORMAT
from dbscan.types import BYTES_TYPES, INT64_MIN, UINT64_MAX, FieldKind
from dbscan.types import RawKind
from dbscan.types import classify_raw, field_kind, is_instance_of, type_name
from dbscan.types import is_union, unwrap_optional

INT64_MAX = (1 << 63) - 1

_SIGNED_PATTERN = re.compile(r'[+-]?[0-9]+')
_UNSIGNED_PATTERN = re.compile(r'[0-9]+')


class _Skip:
    """Marker returned for null values: leave the field untouched."""

    def __repr__(self) -> str:
        return 'SKIP'

    def __bool__(self) -> bool:
        return False


SKIP = _Skip()


def _fail(value: Any, target: Any, label: str | None, reason: str = '') -> ConversionFailed:
    where = f' for {label}' if label else ''
    why = f': {reason}' if reason else ''
    return ConversionFailed(
        f'Cannot convert {type(value).__name__} to {type_name(target)}{where}{why}')


def _directly_assignable(value: Any, target: Any) -> bool:
    """Check whether `value` can be stored in a `target` field as is.

    bool is an int subclass in Python but never stands in for an integer,
    including as one member of a union.
    """
    if is_union(target):
        return any(_directly_assignable(value, arg) for arg in get_args(target))
    if isinstance(value, bool) and target is int:
        return False
    return is_instance_of(value, target)


def _copy_compatible(value: Any, target: Any) -> Any:
    """Store values whose representation matches the field after a plain copy.

    Drivers hand out binary columns as memoryview or bytearray (psycopg,
    sqlite3) and pandas yields NumPy bools.
    """
    if isinstance(value, BYTES_TYPES) and target is bytes:
        return bytes(value)
    if isinstance(value, np.bool_) and target is bool:
        return bool(value)
    return SKIP


def _wrap_integer(value: int, target: type) -> Any:
    """Narrow a 64-bit integer into a NumPy integer type with wraparound.

    >>> int(_wrap_integer(300, np.uint8))
    44
    >>> int(_wrap_integer(-1, np.uint16))
    65535
    """
    info = np.iinfo(target)
    value &= (1 << info.bits) - 1
    if info.min < 0 and value > info.max:
        value -= 1 << info.bits
    return target(value)


def _convert_integer(value: int, target: Any, label: str | None) -> Any:
    if not INT64_MIN <= value <= UINT64_MAX:
        raise _fail(value, target, label, 'outside the 64-bit range')
    if issubclass(target, np.integer):
        return _wrap_integer(value, target)
    if target is int:
        return value
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise _fail(value, target, label, str(e)) from e


def _convert_float(value: float, target: Any, label: str | None) -> Any:
    if issubclass(target, np.floating):
        with np.errstate(over='ignore'):
            return target(value)
    if target is float:
        return value
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise _fail(value, target, label, str(e)) from e


def _convert_number(value: Any, raw_kind: RawKind, target: Any, label: str | None) -> Any:
    """Widen or narrow a numeric value within its family."""
    kind = field_kind(target)
    if raw_kind is RawKind.INT64 and kind in {FieldKind.SIGNED, FieldKind.UNSIGNED}:
        return _convert_integer(int(value), target, label)
    if raw_kind in {RawKind.FLOAT32, RawKind.FLOAT64} and kind is FieldKind.FLOAT:
        return _convert_float(float(value), target, label)
    raise _fail(value, target, label, f'{raw_kind.value} does not fit a {kind.value} field')


def _format_timestamp(value: Any, target: Any, time_format: str, label: str | None) -> str:
    """Format a timestamp for a text field."""
    if field_kind(target) is not FieldKind.TEXT:
        raise _fail(value, target, label, 'timestamps only convert to text')
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
    text = value.strftime(time_format)
    return text if target is str else target(text)


def _decode_text(value: Any, label: str | None) -> str:
    """Decode a byte sequence as UTF-8."""
    try:
        return bytes(value).decode('utf-8')
    except UnicodeDecodeError as e:
        where = f' for {label}' if label else ''
        raise TextDecodeFailed(f'Invalid UTF-8 in {type(value).__name__} value{where}: {e}') from e


def parse_integer(text: str, signed: bool = True) -> int:
    """Parse a base-10 integer within the 64-bit range.

    Unlike `int()`, surrounding whitespace, underscores and non-ASCII digits
    are rejected, and unsigned values take no sign.

    >>> parse_integer('-42')
    -42
    >>> parse_integer('+7', signed=False)
    Traceback (most recent call last):
      ...
    ValueError: invalid unsigned integer: '+7'
    """
    pattern = _SIGNED_PATTERN if signed else _UNSIGNED_PATTERN
    if not pattern.fullmatch(text):
        raise ValueError(f"invalid {'signed' if signed else 'unsigned'} integer: {text!r}")
    value = int(text)
    low, high = (INT64_MIN, INT64_MAX) if signed else (0, UINT64_MAX)
    if not low <= value <= high:
        raise ValueError(f'integer out of range: {text!r}')
    return value


def parse_float(text: str) -> float:
    """Parse a floating point literal.

    >>> parse_float('2.5e3')
    2500.0
    >>> parse_float('1e400')
    Traceback (most recent call last):
      ...
    ValueError: float out of range: '1e400'
    """
    if not text or text != text.strip() or '_' in text:
        raise ValueError(f'invalid float: {text!r}')
    value = float(text)
    if math.isinf(value) and 'inf' not in text.lower():
        raise ValueError(f'float out of range: {text!r}')
    return value


def _convert_text(value: Any, raw_kind: RawKind, target: Any, label: str | None) -> Any:
    """Parse bytes or text into a text, integer or float field."""
    text = _decode_text(value, label) if raw_kind is RawKind.BYTES else value
    kind = field_kind(target)
    try:
        if kind is FieldKind.TEXT:
            return text if target is str else target(text)
        if kind is FieldKind.SIGNED:
            return _convert_integer(parse_integer(text), target, label)
        if kind is FieldKind.UNSIGNED:
            return _convert_integer(parse_integer(text, signed=False), target, label)
        if kind is FieldKind.FLOAT:
            return _convert_float(parse_float(text), target, label)
    except ValueError as e:
        raise _fail(value, target, label, str(e)) from e
    where = f' for {label}' if label else ''
    raise UnsupportedConversion(
        f'No conversion from {type(value).__name__} to {type_name(target)}{where}')


class TypeConverter:
    """Coerce raw cursor values into destination field types"""

    @staticmethod
    def convert_value(value: Any, target_type: Any,
                      time_format: str = DEFAULT_TIME_FORMAT,
                      name: str | None = None) -> Any:
        """Convert one raw value for a field of static type `target_type`

        Args:
            value: Raw value as returned by the cursor
            target_type: Static type of the destination field
            time_format: strftime layout for timestamps bound to text fields
            name: Field description used in error messages

        Returns
            Value to store in the field, or SKIP when the field must be left alone
        """
        raw_kind = classify_raw(value)
        if raw_kind is RawKind.NULL:
            return SKIP

        target = unwrap_optional(target_type)
        if raw_kind is RawKind.INT64 and not INT64_MIN <= int(value) <= UINT64_MAX:
            raise _fail(value, target, name, 'outside the 64-bit range')
        if _directly_assignable(value, target):
            return value
        copied = _copy_compatible(value, target)
        if copied is not SKIP:
            return copied

        if raw_kind is RawKind.TIMESTAMP:
            return _format_timestamp(value, target, time_format, name)
        if raw_kind in {RawKind.INT64, RawKind.FLOAT32, RawKind.FLOAT64}:
            return _convert_number(value, raw_kind, target, name)
        if raw_kind in {RawKind.BYTES, RawKind.TEXT}:
            return _convert_text(value, raw_kind, target, name)

        raise _fail(value, target, name, 'unsupported raw value')
