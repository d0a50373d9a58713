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
"""Provides a PostgreSQL loader using the native COPY command."""

import logging
import types
from collections.abc import Iterable
from typing import Any

import psycopg
from psycopg import sql

from ..reader import BulkCopyReader
from ..schema.postgres import split_table_name
from .base import BaseLoader

logger = logging.getLogger(__name__)


def table_identifier(target_table: str) -> sql.Composable:
    """Quote an optionally schema-qualified table name."""
    schema, table = split_table_name(target_table)
    if schema is not None:
        return sql.SQL(".").join([sql.Identifier(schema), sql.Identifier(table)])
    return sql.Identifier(table)


class PostgresLoader(BaseLoader):
    """A database loader for PostgreSQL that uses the native COPY command."""

    def __init__(self, conn_string: str) -> None:
        """Initialize the loader with the database connection string.

        Args:
            conn_string: A libpq connection string (e.g., "dbname=test user=postgres").

        """
        self.conn_string = conn_string
        self.conn: psycopg.Connection | None = None
        self.cursor: psycopg.Cursor | None = None

    @property
    def connection(self) -> psycopg.Connection:
        """The open connection, for introspecting within the load transaction."""
        self._require_cursor()
        return self.conn

    def __enter__(self) -> "PostgresLoader":
        """Establish the database connection and begin a transaction."""
        self.conn = psycopg.connect(self.conn_string, autocommit=False)
        self.cursor = self.conn.cursor()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Commit the transaction on success or roll back on error.

        Closes the database connection.
        """
        if not self.conn:
            return

        try:
            if exc_type:
                self.conn.rollback()
            else:
                self.conn.commit()
        finally:
            if self.cursor:
                self.cursor.close()
            self.conn.close()
            self.conn = None
            self.cursor = None

    def _require_cursor(self) -> None:
        if not self.cursor:
            msg = (
                "Cursor is not available. "
                "The loader must be used as a context manager."
            )
            raise RuntimeError(msg)

    def bulk_copy(self, reader: BulkCopyReader) -> int:
        """Stream ``reader`` into its destination table using COPY FROM STDIN."""
        self._require_cursor()

        mapping = reader.column_mapping()
        source_ordinals = [source for source, _ in mapping]
        columns = [reader.get_name(destination) for _, destination in mapping]

        # sql.Identifier quotes table and column names to prevent SQL injection.
        copy_sql = sql.SQL("COPY {table} ({columns}) FROM STDIN").format(
            table=table_identifier(reader.destination_table_name),
            columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
        )

        rows = 0
        with self.cursor.copy(copy_sql) as copy:
            while reader.advance():
                copy.write_row([reader.get_value(ordinal) for ordinal in source_ordinals])
                rows += 1

        logger.info("Copied %d rows into %s", rows, reader.destination_table_name)
        return rows

    def execute_sql(
        self,
        sql_query: str | sql.Composable,
        params: Iterable[Any] | None = None,
        fetch: str | None = None,
    ) -> Any:
        """Execute an arbitrary SQL command."""
        self._require_cursor()

        self.cursor.execute(sql_query, params)

        if fetch == "one":
            return self.cursor.fetchone()
        if fetch == "all":
            return self.cursor.fetchall()
        return None
