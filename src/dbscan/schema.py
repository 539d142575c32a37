"""
Binding tables mapping result columns onto dataclass fields.

A record type declares its bindings through dataclass field metadata keyed
by a tag name (``pg`` unless configured otherwise):

    @dataclass
    class User:
        id: int = column('id')
        name: str = field(default='', metadata={'pg': 'name'})
        note: str = ''          # no binding, never touched

The table for a (record class, tag name) pair is built once and cached.
Fields without the tag, or with an empty column name, are left out.
"""
import dataclasses
import logging
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from dbscan.exceptions import DestinationNotWritable
from dbscan.options import DEFAULT_TAG_NAME
from dbscan.types import FieldKind, field_kind, is_record_type, type_name
from dbscan.types import unwrap_optional

logger = logging.getLogger(__name__)

__all__ = [
    'FieldBinding',
    'RecordSchema',
    'column',
]


def column(name: str, *, tag: str = DEFAULT_TAG_NAME, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to the result column `name`.

    Remaining keyword arguments go to `dataclasses.field`. Fields declared
    without a default get the zero value of their type when a new record
    is allocated.
    """
    metadata = {**kwargs.pop('metadata', {}), tag: name}
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class FieldBinding:
    """One record field and the result column it reads from."""
    name: str
    column: str
    type: Any
    kind: FieldKind


@dataclass(frozen=True)
class RecordSchema:
    """Binding table for one record class under one tag name."""
    record_type: type
    tag_name: str
    bindings: tuple[FieldBinding, ...]

    @property
    def columns(self) -> list[str]:
        return [b.column for b in self.bindings]

    @staticmethod
    def of(record_type: type, tag_name: str = DEFAULT_TAG_NAME) -> 'RecordSchema':
        """Get the (cached) binding table for `record_type`.

        Raises DestinationNotWritable for anything but a mutable dataclass.
        """
        if not is_record_type(record_type):
            raise DestinationNotWritable(
                f'{type_name(record_type)} is not a mutable dataclass')
        return _build_schema(record_type, tag_name)


@lru_cache(maxsize=256)
def _build_schema(record_type: type, tag_name: str) -> RecordSchema:
    hints = typing.get_type_hints(record_type)
    bindings = []
    for f in dataclasses.fields(record_type):
        name = f.metadata.get(tag_name)
        if not name:
            continue
        tp = unwrap_optional(hints.get(f.name, Any))
        bindings.append(FieldBinding(f.name, name, tp, field_kind(tp)))
    logger.debug(f'Built binding table for {record_type.__name__} ({tag_name}): '
                 f'{[(b.name, b.column) for b in bindings]}')
    return RecordSchema(record_type, tag_name, tuple(bindings))
