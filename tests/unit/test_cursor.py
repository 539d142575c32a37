"""
Tests for row extraction and the cursor adapters.
"""
import datetime
import sqlite3

import numpy as np
import pandas as pd
import pytest
from dbscan.adapters.cursors import DBAPICursor, FrameCursor, ResultCursor
from dbscan.adapters.cursors import as_cursor
from dbscan.cursor import RowCursor, extract_rows
from dbscan.exceptions import CursorError


class TestExtractRows:

    def test_rows_in_order(self, user_cursor):
        rows = extract_rows(user_cursor)
        assert rows == [{'id': 1, 'name': b'Alice'}, {'id': 2, 'name': b'Bob'}]

    def test_columns_read_once(self, user_cursor):
        extract_rows(user_cursor)
        assert user_cursor.columns_calls == 1
        assert user_cursor.advance_calls == 3

    def test_no_rows(self, make_cursor):
        assert extract_rows(make_cursor(['id'], [])) == []

    def test_duplicate_columns_last_wins(self, make_cursor):
        cursor = make_cursor(['id', 'name', 'id'], [(1, b'Alice', 2)])
        assert extract_rows(cursor) == [{'id': 2, 'name': b'Alice'}]

    def test_each_row_gets_its_own_mapping(self, user_cursor):
        first, second = extract_rows(user_cursor)
        assert first is not second

    def test_arity_mismatch(self, make_cursor):
        cursor = make_cursor(['id', 'name'], [(1,)])
        with pytest.raises(CursorError):
            extract_rows(cursor)

    def test_columns_error_propagates(self, make_cursor):
        error = RuntimeError('metadata unavailable')
        cursor = make_cursor(['id'], [(1,)], columns_error=error)
        with pytest.raises(RuntimeError) as exc_info:
            extract_rows(cursor)
        assert exc_info.value is error
        assert cursor.advance_calls == 0

    def test_scan_error_propagates(self, make_cursor):
        cursor = make_cursor(['id'], [(1,)], scan_error=ValueError('bad row'))
        with pytest.raises(ValueError, match='bad row'):
            extract_rows(cursor)

    def test_cursor_not_closed(self, user_cursor):
        extract_rows(user_cursor)
        assert not user_cursor.closed

    def test_with_mock_cursor(self, mocker):
        cursor = mocker.Mock(spec=['close', 'columns', 'advance', 'scan'])
        cursor.columns.return_value = ['a', 'b']
        cursor.advance.side_effect = [True, True, False]
        cursor.scan.side_effect = [(1, 2), (3, 4)]

        assert extract_rows(cursor) == [{'a': 1, 'b': 2}, {'a': 3, 'b': 4}]
        cursor.columns.assert_called_once_with()
        cursor.close.assert_not_called()


class TestDBAPICursor:

    def test_sqlite_cursor(self, sqlite_conn):
        cursor = DBAPICursor(sqlite_conn.execute('SELECT id, name FROM test_users ORDER BY id'))
        assert cursor.columns() == ['id', 'name']
        assert cursor.advance()
        assert cursor.scan() == (1, 'Alice')

    def test_sqlite_row_factory(self, sqlite_conn):
        sqlite_conn.row_factory = sqlite3.Row
        cursor = DBAPICursor(sqlite_conn.execute('SELECT id, name FROM test_users WHERE id = 2'))
        assert extract_rows(cursor) == [{'id': 2, 'name': 'Bob'}]

    def test_dict_rows(self, mocker):
        dbapi_cursor = mocker.Mock()
        dbapi_cursor.description = [('id', None), ('name', None)]
        dbapi_cursor.fetchone.side_effect = [{'id': 1, 'name': 'Alice'}, None]
        assert extract_rows(DBAPICursor(dbapi_cursor)) == [{'id': 1, 'name': 'Alice'}]

    def test_no_result_set(self, mocker):
        dbapi_cursor = mocker.Mock()
        dbapi_cursor.description = None
        with pytest.raises(CursorError):
            DBAPICursor(dbapi_cursor).columns()

    def test_scan_without_row(self, mocker):
        with pytest.raises(CursorError):
            DBAPICursor(mocker.Mock()).scan()

    def test_close_delegates(self, mocker):
        dbapi_cursor = mocker.Mock()
        DBAPICursor(dbapi_cursor).close()
        dbapi_cursor.close.assert_called_once_with()


class TestFrameCursor:

    @pytest.fixture
    def frame(self):
        return pd.DataFrame({
            'id': [1, 2],
            'name': ['Alice', 'Bob'],
            'ratio': [0.5, np.nan],
            'taken': pd.to_datetime(['2023-05-15 14:30:45', None]),
        })

    def test_values_are_numpy_scalars(self, frame):
        rows = extract_rows(FrameCursor(frame))
        first = rows[0]
        assert isinstance(first['id'], np.int64)
        assert first['name'] == 'Alice'
        assert isinstance(first['ratio'], np.float64)
        assert isinstance(first['taken'], np.datetime64)

    def test_missing_values_become_none(self, frame):
        second = extract_rows(FrameCursor(frame))[1]
        assert second['ratio'] is None
        assert second['taken'] is None

    def test_exhausted(self, frame):
        cursor = FrameCursor(frame)
        assert cursor.columns() == ['id', 'name', 'ratio', 'taken']
        assert cursor.advance()
        assert cursor.advance()
        assert not cursor.advance()
        assert not cursor.advance()
        with pytest.raises(CursorError):
            cursor.scan()

    def test_empty_frame(self):
        assert extract_rows(FrameCursor(pd.DataFrame({'id': []}))) == []


def test_result_cursor(sqlalchemy_conn):
    import sqlalchemy as sa

    result = sqlalchemy_conn.execute(sa.text('SELECT id, created FROM test_users ORDER BY id'))
    cursor = ResultCursor(result)
    assert cursor.columns() == ['id', 'created']
    assert extract_rows(cursor)[0] == {'id': 1, 'created': '2023-05-15 14:30:45'}


def test_as_cursor(sqlite_conn, sqlalchemy_conn, make_cursor):
    import sqlalchemy as sa

    custom = make_cursor(['id'], [])
    assert as_cursor(custom) is custom
    assert isinstance(custom, RowCursor)
    assert isinstance(as_cursor(pd.DataFrame({'id': [1]})), FrameCursor)
    assert isinstance(as_cursor(sqlite_conn.execute('SELECT 1')), DBAPICursor)
    assert isinstance(as_cursor(sqlalchemy_conn.execute(sa.text('SELECT 1'))), ResultCursor)
    with pytest.raises(TypeError):
        as_cursor([(1, 2)])
    with pytest.raises(TypeError):
        as_cursor(datetime.date.today())


if __name__ == '__main__':
    __import__('pytest').main([__file__])
