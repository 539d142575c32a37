"""
Scan operations: read every row from a cursor and bind it into a destination.

Functions in this module handle:
- Validating the destination before the cursor is touched
- Dispatching to single-record or collection binding by destination shape
- Convenience readers returning new records
"""
import logging
from typing import Any, get_args

from dbscan.adapters.cursors import as_cursor
from dbscan.collection import bind_rows, is_collection
from dbscan.cursor import extract_rows
from dbscan.exceptions import DestinationNotWritable, EmptyResult
from dbscan.options import ScanOptions, resolve_options
from dbscan.row import bind_row
from dbscan.types import Ref, is_record_type, is_ref_type, is_writable_record
from dbscan.types import holds_declared_type, type_name

logger = logging.getLogger(__name__)

__all__ = [
    'scan',
    'scan_one',
    'scan_all',
]


def _check_target_type(tp: Any) -> None:
    """Check that an empty cell of type `tp` can be allocated down to a record."""
    while is_ref_type(tp):
        args = get_args(tp)
        if not args:
            raise DestinationNotWritable('Ref without a target type cannot be allocated')
        tp = args[0]
    if not is_record_type(tp):
        raise DestinationNotWritable(f'Cannot bind a row into {type_name(tp)}')


def _check_destination(dest: Any) -> None:
    """Reject destinations that can never be written, before reading any rows."""
    if dest is None:
        raise DestinationNotWritable('Destination is None')
    while isinstance(dest, Ref):
        if is_collection(dest):
            args = get_args(dest.type)
            if not args:
                raise DestinationNotWritable('Collection Ref without an element type')
            _check_target_type(args[0])
            return
        if dest.value is None:
            _check_target_type(dest.type)
            return
        if not holds_declared_type(dest):
            raise DestinationNotWritable(
                f'{type(dest.value).__name__} stored in a Ref to {type_name(dest.type)}')
        dest = dest.value
    if not is_writable_record(dest):
        raise DestinationNotWritable(
            f'Destination {type(dest).__name__} is neither a Ref nor a mutable dataclass instance')


def scan(source: Any, dest: Any, *, tag_name: str | None = None,
         time_format: str | None = None, options: ScanOptions | None = None) -> Any:
    """Read all rows from `source` and bind them into `dest`.

    `dest` is either a single record (a mutable dataclass instance, or a
    chain of `Ref` cells ending in one) or a collection (`Ref(list[T])`).

    - Collection: one new element per row replaces `dest.value`; with no
      rows `dest` is left untouched.
    - Single record: the first row is bound; with no rows EmptyResult is raised.

    The cursor is not closed. Returns the bound record or list.
    """
    options = resolve_options(options, tag_name=tag_name, time_format=time_format)
    _check_destination(dest)
    cursor = as_cursor(source)
    rows = extract_rows(cursor)

    if is_collection(dest):
        return bind_rows(rows, dest, options)

    if not rows:
        raise EmptyResult('Query returned no rows for a single-record destination')
    if len(rows) > 1:
        logger.debug(f'Binding first of {len(rows)} rows into a single record')
    return bind_row(rows[0], dest, options)


def scan_one(source: Any, record_type: Any, **kwargs: Any) -> Any:
    """Read the first row from `source` into a new `record_type` instance.

    Raises EmptyResult if there are no rows.
    """
    dest = Ref(record_type)
    scan(source, dest, **kwargs)
    return dest.value


def scan_all(source: Any, record_type: Any, **kwargs: Any) -> list[Any]:
    """Read all rows from `source` into a list of new `record_type` instances.
    """
    dest = Ref(list[record_type], [])
    scan(source, dest, **kwargs)
    return dest.value
