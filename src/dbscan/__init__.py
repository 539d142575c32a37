"""
Bind cursor result rows into typed dataclass records.

Rows are read from any cursor (DB-API, SQLAlchemy result, pandas DataFrame
or a custom `RowCursor`) and bound into dataclass fields tagged with a
column name:

    @dataclass
    class User:
        id: int = column('id')
        name: str = column('name')

    user = dbscan.scan_one(cursor, User)
    users = dbscan.scan_all(cursor, User)

    dest = dbscan.Ref(list[User])
    dbscan.scan(cursor, dest)
"""
__version__ = '0.1.0'

from typing import Any

from dbscan.adapters.cursors import DBAPICursor, FrameCursor, ResultCursor
from dbscan.adapters.cursors import as_cursor
from dbscan.adapters.type_conversion import SKIP, TypeConverter
from dbscan.collection import bind_rows
from dbscan.cursor import RowCursor, extract_rows
from dbscan.exceptions import ConversionError, ConversionFailed, CursorError
from dbscan.exceptions import DestinationNotWritable, EmptyResult, ScanError
from dbscan.exceptions import TextDecodeFailed, UnsupportedConversion
from dbscan.options import DEFAULT_TAG_NAME, DEFAULT_TIME_FORMAT, ScanOptions
from dbscan.query import scan, scan_all, scan_one
from dbscan.row import bind_row
from dbscan.schema import RecordSchema, column
from dbscan.types import Ref


def convert_value(value: Any, target_type: Any,
                  time_format: str = DEFAULT_TIME_FORMAT) -> Any:
    """Convert one raw value for a field of type `target_type`.

    Returns SKIP for null values.
    """
    return TypeConverter.convert_value(value, target_type, time_format)


__all__ = [
    'scan',
    'scan_one',
    'scan_all',
    'extract_rows',
    'bind_row',
    'bind_rows',
    'convert_value',
    'column',
    'Ref',
    'RecordSchema',
    'ScanOptions',
    'DEFAULT_TAG_NAME',
    'DEFAULT_TIME_FORMAT',
    'RowCursor',
    'DBAPICursor',
    'ResultCursor',
    'FrameCursor',
    'as_cursor',
    'TypeConverter',
    'SKIP',
    'ScanError',
    'DestinationNotWritable',
    'ConversionFailed',
    'UnsupportedConversion',
    'TextDecodeFailed',
    'EmptyResult',
    'CursorError',
    'ConversionError',
]
