"""
Cursor adapters providing the `RowCursor` interface over common result sources.

These adapters handle ONLY the structure of results (column names, row
iteration, value order). They do NOT convert values; raw values are passed
through as the driver returned them, except that missing values in a pandas
DataFrame (NaN, NaT, NA) are reported as None.
"""
from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd
from dbscan.cursor import RowCursor
from dbscan.exceptions import CursorError
from sqlalchemy.engine import Result

__all__ = [
    'DBAPICursor',
    'ResultCursor',
    'FrameCursor',
    'as_cursor',
]


class _RowAdapterBase:
    """Shared current-row bookkeeping for fetchone-style sources."""

    def __init__(self) -> None:
        self._row = None

    def scan(self) -> Sequence[Any]:
        if self._row is None:
            raise CursorError('scan() called without a current row')
        return self._values(self._row)

    def _values(self, row: Any) -> Sequence[Any]:
        return tuple(row)


class DBAPICursor(_RowAdapterBase):
    """Adapter for DB-API 2.0 (PEP-249) cursors: sqlite3, psycopg, pyodbc.

    Tuple rows, `sqlite3.Row` objects and dict rows (e.g. psycopg's
    `dict_row` factory) are all accepted.
    """

    def __init__(self, cursor: Any) -> None:
        super().__init__()
        self.dbapi_cursor = cursor

    def close(self) -> None:
        """Close cursor."""
        self.dbapi_cursor.close()

    def columns(self) -> list[str]:
        description = self.dbapi_cursor.description
        if description is None:
            raise CursorError('Cursor has no result set (was a query executed?)')
        return [d[0] for d in description]

    def advance(self) -> bool:
        self._row = self.dbapi_cursor.fetchone()
        return self._row is not None

    def _values(self, row: Any) -> Sequence[Any]:
        if isinstance(row, Mapping):
            return tuple(row.values())
        return tuple(row)


class ResultCursor(_RowAdapterBase):
    """Adapter for SQLAlchemy `Result` objects."""

    def __init__(self, result: Result) -> None:
        super().__init__()
        self.result = result

    def close(self) -> None:
        self.result.close()

    def columns(self) -> list[str]:
        return list(self.result.keys())

    def advance(self) -> bool:
        self._row = self.result.fetchone()
        return self._row is not None


class FrameCursor:
    """Adapter presenting a pandas DataFrame as a cursor.

    Values come out as NumPy scalars (``numpy.int64``, ``numpy.float64``,
    ``numpy.datetime64``) or the objects stored in object columns.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        self.frame = frame
        self._arrays = [frame.iloc[:, i].to_numpy() for i in range(frame.shape[1])]
        self._position = -1

    def close(self) -> None:
        """Nothing to release."""

    def columns(self) -> list[str]:
        return [str(c) for c in self.frame.columns]

    def advance(self) -> bool:
        if self._position + 1 >= len(self.frame):
            self._position = len(self.frame)
            return False
        self._position += 1
        return True

    def scan(self) -> Sequence[Any]:
        if not 0 <= self._position < len(self.frame):
            raise CursorError('scan() called without a current row')
        return tuple(_missing_to_none(arr[self._position]) for arr in self._arrays)


def _missing_to_none(value: Any) -> Any:
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    return value


def as_cursor(source: Any) -> RowCursor:
    """Wrap `source` in the matching adapter.

    Accepts `RowCursor` implementations as is, pandas DataFrames, SQLAlchemy
    results and DB-API cursors.
    """
    if isinstance(source, RowCursor):
        return source
    if isinstance(source, pd.DataFrame):
        return FrameCursor(source)
    if isinstance(source, Result):
        return ResultCursor(source)
    if hasattr(source, 'description') and hasattr(source, 'fetchone'):
        return DBAPICursor(source)
    raise TypeError(f'Unsupported cursor type: {type(source).__name__}')
