"""
Consolidated type handling for scan operations.

This module provides:
- Ref: mutable cell standing for one level of destination indirection
- RawKind / classify_raw: the closed set of raw value kinds a cursor yields
- FieldKind / field_kind: kind families of destination field types
- zero_value / new_instance: zero-valued allocation of destination types
"""
import dataclasses
import datetime
import enum
import types
import typing
from typing import Any, Generic, TypeVar, get_args, get_origin

import numpy as np
import pandas as pd
from dbscan.exceptions import DestinationNotWritable

T = TypeVar('T')

NUMPY_SIGNED_TYPES = (np.signedinteger,)
NUMPY_UNSIGNED_TYPES = (np.unsignedinteger,)
NUMPY_FLOAT_TYPES = (np.floating,)
BYTES_TYPES = (bytes, bytearray, memoryview)
NULL_VALUES = (pd.NaT, pd.NA)

INT64_MIN = -(1 << 63)
UINT64_MAX = (1 << 64) - 1


class Ref(Generic[T]):
    """Mutable cell holding one level of indirection around a destination.

    `type` is what the cell points to: a record class, another `Ref[...]`
    alias, or `list[...]` for a collection. An empty cell (`value is None`)
    is filled with a zero-valued instance of `type` when bound.

        user = Ref(User)
        nested = Ref(Ref[User])
        users = Ref(list[User])
    """
    __slots__ = ('type', 'value')

    def __init__(self, type_: Any, value: T | None = None) -> None:
        self.type = type_
        self.value = value

    def __repr__(self) -> str:
        return f'Ref({type_name(self.type)}, {self.value!r})'


class RawKind(enum.Enum):
    """Kinds of raw values produced by a cursor."""
    NULL = 'null'
    INT64 = 'int64'
    FLOAT32 = 'float32'
    FLOAT64 = 'float64'
    BYTES = 'bytes'
    TEXT = 'text'
    TIMESTAMP = 'timestamp'
    OTHER = 'other'


class FieldKind(enum.Enum):
    """Kind families of destination field types."""
    TEXT = 'text'
    SIGNED = 'signed'
    UNSIGNED = 'unsigned'
    FLOAT = 'float'
    OTHER = 'other'


def is_null(value: Any) -> bool:
    """Check for the null markers drivers and pandas use."""
    if value is None:
        return True
    if any(value is marker for marker in NULL_VALUES):
        return True
    return isinstance(value, np.datetime64) and np.isnat(value)


def classify_raw(value: Any) -> RawKind:
    """Map a raw cursor value onto its `RawKind`.

    `bool` (and NumPy bool) is deliberately not an integer here.
    """
    if is_null(value):
        return RawKind.NULL
    if isinstance(value, bool | np.bool_):
        return RawKind.OTHER
    if isinstance(value, int | np.integer):
        return RawKind.INT64
    if isinstance(value, np.float32):
        return RawKind.FLOAT32
    if isinstance(value, float | np.floating):
        return RawKind.FLOAT64
    if isinstance(value, BYTES_TYPES):
        return RawKind.BYTES
    if isinstance(value, str):
        return RawKind.TEXT
    if isinstance(value, datetime.datetime | np.datetime64):
        return RawKind.TIMESTAMP
    return RawKind.OTHER


def is_union(tp: Any) -> bool:
    return get_origin(tp) in {typing.Union, types.UnionType}


def unwrap_optional(tp: Any) -> Any:
    """Strip `None` from `X | None` / `Optional[X]`, leaving other unions alone."""
    if is_union(tp):
        args = [a for a in get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def field_kind(tp: Any) -> FieldKind:
    """Kind family of a destination field type."""
    tp = unwrap_optional(tp)
    if get_origin(tp) is not None or not isinstance(tp, type):
        return FieldKind.OTHER
    if issubclass(tp, bool | np.bool_):
        return FieldKind.OTHER
    if issubclass(tp, str):
        return FieldKind.TEXT
    if issubclass(tp, NUMPY_UNSIGNED_TYPES):
        return FieldKind.UNSIGNED
    if issubclass(tp, (int, *NUMPY_SIGNED_TYPES)):
        return FieldKind.SIGNED
    if issubclass(tp, (float, *NUMPY_FLOAT_TYPES)):
        return FieldKind.FLOAT
    return FieldKind.OTHER


def is_instance_of(value: Any, tp: Any) -> bool:
    """`isinstance` that tolerates typing constructs used as annotations."""
    if tp is Any or tp is object:
        return True
    if is_union(tp):
        return any(is_instance_of(value, arg) for arg in get_args(tp))
    origin = get_origin(tp)
    if origin is not None:
        return isinstance(origin, type) and isinstance(value, origin)
    return isinstance(tp, type) and isinstance(value, tp)


def is_ref_type(tp: Any) -> bool:
    """Check whether `tp` is a `Ref[...]` alias (or bare `Ref`)."""
    return tp is Ref or get_origin(tp) is Ref


def is_record_type(tp: Any) -> bool:
    """Check whether `tp` is a dataclass that can be written to."""
    return (isinstance(tp, type)
            and dataclasses.is_dataclass(tp)
            and not tp.__dataclass_params__.frozen)


def is_writable_record(obj: Any) -> bool:
    """Check whether `obj` is a mutable dataclass instance."""
    return not isinstance(obj, type) and is_record_type(type(obj))


def holds_declared_type(ref: Ref) -> bool:
    """Check that a filled cell holds what its `type` declares.

    Only record classes and `Ref[...]` targets are checked; a value of any
    other kind is rejected later as unwritable.
    """
    if is_ref_type(ref.type):
        return isinstance(ref.value, Ref)
    if is_record_type(ref.type):
        return isinstance(ref.value, ref.type)
    return True


def zero_value(tp: Any) -> Any:
    """Zero value of a field type, used for required fields of new records.
    """
    if unwrap_optional(tp) is not tp:
        return None
    origin = get_origin(tp)
    if origin is list:
        return []
    if origin is dict:
        return {}
    if not isinstance(tp, type):
        return None
    if issubclass(tp, bool):
        return False
    if issubclass(tp, np.number | np.bool_):
        return tp(0)
    if tp in {int, float, str, bytes}:
        return tp()
    if dataclasses.is_dataclass(tp):
        return zero_record(tp)
    return None


def zero_record(cls: type) -> Any:
    """Build an instance of `cls` with defaults or zero values for every field.
    """
    hints = typing.get_type_hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        if f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        kwargs[f.name] = zero_value(hints.get(f.name, Any))
    return cls(**kwargs)


def new_instance(tp: Any) -> Any:
    """Allocate a fresh zero-valued destination of type `tp`.

    A `Ref[X]` alias yields an empty `Ref(X)`; a record class yields a
    zero-valued record. Anything else cannot be bound into.
    """
    if is_ref_type(tp):
        args = get_args(tp)
        if not args:
            raise DestinationNotWritable('Ref without a target type cannot be allocated')
        return Ref(args[0])
    if is_record_type(tp):
        return zero_record(tp)
    raise DestinationNotWritable(f'Cannot allocate a destination of type {type_name(tp)}')


def type_name(tp: Any) -> str:
    if isinstance(tp, type) and get_origin(tp) is None:
        return tp.__name__
    return repr(tp)
