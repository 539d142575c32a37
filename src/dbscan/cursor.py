"""
Row extraction from cursors.

The engine only talks to cursors through the narrow `RowCursor` protocol;
`dbscan.adapters.cursors` wraps DB-API cursors, SQLAlchemy results and
pandas DataFrames into it. Cursors are never closed here.
"""
import logging
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from dbscan.exceptions import CursorError

logger = logging.getLogger(__name__)

__all__ = [
    'RowCursor',
    'extract_rows',
]


@runtime_checkable
class RowCursor(Protocol):
    """Forward-only, single-pass source of result rows."""

    def close(self) -> None:
        """Release cursor resources."""
        ...

    def columns(self) -> list[str]:
        """Ordered column names of the current result set."""
        ...

    def advance(self) -> bool:
        """Move to the next row, returning False when exhausted."""
        ...

    def scan(self) -> Sequence[Any]:
        """Values of the current row, one per column."""
        ...


def extract_rows(cursor: RowCursor) -> list[dict[str, Any]]:
    """Drain `cursor` into a list of column-name to value mappings.

    Column names are read once. When a name repeats, the later column wins.
    Errors raised by the cursor propagate unchanged.
    """
    columns = list(cursor.columns())
    rows = []
    while cursor.advance():
        values = cursor.scan()
        if len(values) != len(columns):
            raise CursorError(
                f'Row has {len(values)} values but the cursor reports '
                f'{len(columns)} columns')
        rows.append(dict(zip(columns, values)))
    logger.debug(f'Extracted {len(rows)} rows with columns {columns}')
    return rows
