"""Binding of one raw row into one destination record."""
import logging
from typing import Any

from dbscan.adapters.type_conversion import SKIP, TypeConverter
from dbscan.exceptions import DestinationNotWritable
from dbscan.options import ScanOptions
from dbscan.schema import RecordSchema
from dbscan.types import Ref, holds_declared_type, is_writable_record
from dbscan.types import new_instance, type_name

logger = logging.getLogger(__name__)

__all__ = [
    'resolve_destination',
    'bind_row',
]


def resolve_destination(dest: Any) -> Any:
    """Follow `Ref` cells down to the record they finally point to.

    Empty cells are filled with a zero-valued instance of their target type
    before descending, so the caller sees the allocated chain even if
    binding fails afterwards.

    Raises DestinationNotWritable if the chain does not end in a mutable
    dataclass instance.
    """
    level = 0
    while isinstance(dest, Ref):
        if dest.value is None:
            dest.value = new_instance(dest.type)
            logger.debug(f'Allocated {type_name(dest.type)} at indirection level {level}')
        elif not holds_declared_type(dest):
            raise DestinationNotWritable(
                f'{type(dest.value).__name__} stored in a Ref to {type_name(dest.type)}')
        dest = dest.value
        level += 1
    if not is_writable_record(dest):
        raise DestinationNotWritable(
            f'Destination {type(dest).__name__} is not a mutable dataclass instance')
    return dest


def bind_row(row: dict[str, Any], dest: Any, options: ScanOptions | None = None) -> Any:
    """Bind one raw row into `dest` and return the bound record.

    Only fields with a binding for `options.tag_name` are touched, and only
    when the row has their column. The first conversion error aborts the
    bind; fields written before it keep their new values.
    """
    options = options or ScanOptions()
    record = resolve_destination(dest)
    schema = RecordSchema.of(type(record), options.tag_name)
    for binding in schema.bindings:
        if binding.column not in row:
            continue
        value = TypeConverter.convert_value(
            row[binding.column],
            binding.type,
            time_format=options.time_format,
            name=f'{type(record).__name__}.{binding.name} (column {binding.column!r})')
        if value is SKIP:
            continue
        setattr(record, binding.name, value)
    return record
