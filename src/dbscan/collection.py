"""Binding of a sequence of raw rows into a list destination."""
import logging
from typing import Any, get_args, get_origin

from dbscan.exceptions import DestinationNotWritable
from dbscan.options import ScanOptions
from dbscan.row import bind_row
from dbscan.types import Ref, new_instance, type_name

logger = logging.getLogger(__name__)

__all__ = [
    'is_collection',
    'element_type',
    'bind_rows',
]


def is_collection(dest: Any) -> bool:
    """Check whether `dest` is a `Ref` to a `list[...]`."""
    return isinstance(dest, Ref) and (dest.type is list or get_origin(dest.type) is list)


def element_type(dest: Ref) -> Any:
    """Element type of a collection destination."""
    args = get_args(dest.type)
    if len(args) != 1:
        raise DestinationNotWritable(
            f'Collection destination {type_name(dest.type)} needs an element type, e.g. list[User]')
    return args[0]


def bind_rows(rows: list[dict[str, Any]], dest: Ref,
              options: ScanOptions | None = None) -> list[Any]:
    """Bind every row into a fresh element and store the new list in `dest`.

    An empty `rows` leaves `dest` exactly as it was. If any row fails, the
    error propagates and `dest` is not modified.
    """
    if not is_collection(dest):
        raise DestinationNotWritable(f'{dest!r} is not a Ref to a list')
    if not rows:
        logger.debug('No rows to bind, leaving collection destination unchanged')
        return dest.value
    elem_type = element_type(dest)

    options = options or ScanOptions()
    items = []
    for row in rows:
        item = new_instance(elem_type)
        bind_row(row, item, options)
        items.append(item)
    dest.value = items
    logger.debug(f'Bound {len(items)} rows into list[{type_name(elem_type)}]')
    return items
