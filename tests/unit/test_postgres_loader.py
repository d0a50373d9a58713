# Copyright 2025 Gowtham Rao <rao@ohdsi.org>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from datetime import datetime
from unittest.mock import MagicMock, call, patch

import pytest
from pydantic import BaseModel

from py_load_bulkcopy.loader.postgres import PostgresLoader
from py_load_bulkcopy.reader import RecordCursor

pytestmark = pytest.mark.unit

NOW = datetime(2024, 5, 17, 12, 0)


class BulkCopyTable(BaseModel):
    id: int = 0
    name: str
    counter: int
    date_created: datetime


@pytest.fixture
def mock_psycopg():
    """Mocks the entire psycopg library via a patch, isolating loader from the DB."""
    with patch("py_load_bulkcopy.loader.postgres.psycopg") as mock_psycopg_lib:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_copy = MagicMock()
        mock_psycopg_lib.connect.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor
        mock_cursor.copy.return_value.__enter__.return_value = mock_copy
        yield mock_psycopg_lib, mock_conn, mock_cursor, mock_copy


def test_loader_enter_opens_transaction(mock_psycopg):
    mock_lib, mock_conn, _, _ = mock_psycopg
    with PostgresLoader("dbname=test") as loader:
        assert loader.connection is mock_conn
    mock_lib.connect.assert_called_once_with("dbname=test", autocommit=False)
    mock_conn.commit.assert_called_once()
    mock_conn.close.assert_called_once()


def test_loader_rolls_back_on_exception(mock_psycopg):
    _, mock_conn, mock_cursor, _ = mock_psycopg
    with pytest.raises(ValueError):
        with PostgresLoader("dbname=test"):
            raise ValueError("boom")
    mock_conn.rollback.assert_called_once()
    mock_conn.commit.assert_not_called()
    mock_cursor.close.assert_called_once()


def test_loader_exit_without_enter():
    """Tests that calling __exit__ without __enter__ does nothing."""
    PostgresLoader("dbname=test").__exit__(None, None, None)


def test_loader_requires_context_manager():
    loader = PostgresLoader("dbname=test")
    with pytest.raises(RuntimeError, match="Cursor is not available"):
        loader.execute_sql("SELECT 1;")
    with pytest.raises(RuntimeError, match="Cursor is not available"):
        loader.bulk_copy(MagicMock())
    with pytest.raises(RuntimeError, match="Cursor is not available"):
        loader.connection


def test_bulk_copy_streams_mapped_columns(mock_psycopg, binder):
    """Tests that bulk_copy issues COPY with mapped columns and writes each row."""
    _, _, mock_cursor, mock_copy = mock_psycopg
    records = [
        BulkCopyTable(name=f"row-{i}", counter=i, date_created=NOW) for i in range(3)
    ]
    reader = RecordCursor(records, "conn", "staging.bulk_copy", binder=binder)

    with PostgresLoader("dbname=test") as loader:
        rows = loader.bulk_copy(reader)

    assert rows == 3
    copy_sql = mock_cursor.copy.call_args[0][0]
    rendered = repr(copy_sql)
    assert "COPY" in rendered
    assert "staging" in rendered
    assert "bulk_copy" in rendered
    assert "date_created" in rendered
    assert "counter" not in rendered
    assert mock_copy.write_row.call_args_list == [
        call(["row-0", NOW]),
        call(["row-1", NOW]),
        call(["row-2", NOW]),
    ]
    # The reader was drained and reset.
    assert reader.is_closed
    assert reader.rows_read == 0


def test_bulk_copy_empty_reader(mock_psycopg, binder):
    _, _, _, mock_copy = mock_psycopg
    reader = RecordCursor([], "conn", record_type=BulkCopyTable, binder=binder)
    with PostgresLoader("dbname=test") as loader:
        assert loader.bulk_copy(reader) == 0
    mock_copy.write_row.assert_not_called()


def test_execute_sql_fetch_modes(mock_psycopg):
    _, _, mock_cursor, _ = mock_psycopg
    mock_cursor.fetchone.return_value = (1,)
    mock_cursor.fetchall.return_value = [(1,), (2,)]

    with PostgresLoader("dbname=test") as loader:
        assert loader.execute_sql("SELECT 1;") is None
        assert loader.execute_sql("SELECT %s;", (1,), fetch="one") == (1,)
        assert loader.execute_sql("SELECT 1;", fetch="all") == [(1,), (2,)]

    mock_cursor.execute.assert_any_call("SELECT %s;", (1,))
