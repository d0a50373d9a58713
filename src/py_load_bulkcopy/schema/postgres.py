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
"""Provides a PostgreSQL schema source backed by information_schema."""

import logging

import psycopg
from psycopg.rows import tuple_row

from ..errors import SchemaResolutionError
from ..models import ColumnDescriptor
from .base import BaseSchemaSource

logger = logging.getLogger(__name__)

COLUMNS_QUERY = """
    SELECT column_name, is_nullable, data_type, is_generated, identity_generation
    FROM information_schema.columns
    WHERE table_schema = COALESCE(%(schema)s, current_schema())
      AND table_name = %(table)s
    ORDER BY ordinal_position
"""


def split_table_name(table_name: str) -> tuple[str | None, str]:
    """Split an optionally schema-qualified name into (schema, table)."""
    table_parts = table_name.split(".")
    if len(table_parts) == 2:
        return table_parts[0], table_parts[1]
    return None, table_name


class PostgresSchemaSource(BaseSchemaSource):
    """Reads column metadata for a PostgreSQL table in a single round trip."""

    @staticmethod
    def _query_columns(conn: psycopg.Connection, params: dict) -> list[tuple]:
        # tuple_row so connections opened with dict_row unpack the same way.
        with conn.cursor(row_factory=tuple_row) as cur:
            cur.execute(COLUMNS_QUERY, params)
            return cur.fetchall()

    def fetch_columns(
        self, connection: psycopg.Connection | str, table_name: str
    ) -> list[ColumnDescriptor]:
        """Introspect ``table_name`` through ``information_schema.columns``.

        Args:
            connection: An open psycopg connection, or a libpq connection
                        string. A string opens a short-lived connection that is
                        closed before returning.
            table_name: The table name, optionally as "schema.table".

        Returns:
            The columns in table order with contiguous zero-based ordinals.

        Raises:
            SchemaResolutionError: If the table does not exist, exposes no
                columns, or the database reports an error.

        """
        schema, table = split_table_name(table_name)
        params = {"schema": schema, "table": table}
        try:
            if isinstance(connection, str):
                with psycopg.connect(connection) as conn:
                    rows = self._query_columns(conn, params)
            else:
                rows = self._query_columns(connection, params)
        except psycopg.Error as e:
            msg = f"Could not introspect table '{table_name}': {e}"
            raise SchemaResolutionError(msg) from e

        if not rows:
            msg = f"Table '{table_name}' does not exist or has no visible columns."
            raise SchemaResolutionError(msg)

        # information_schema keeps gaps left by dropped columns; renumber.
        columns = [
            ColumnDescriptor(
                ordinal=ordinal,
                name=column_name,
                data_type=data_type,
                is_nullable=is_nullable == "YES",
                is_computed=is_generated == "ALWAYS" or identity_generation == "ALWAYS",
            )
            for ordinal, (
                column_name,
                is_nullable,
                data_type,
                is_generated,
                identity_generation,
            ) in enumerate(rows)
        ]
        logger.debug("Fetched %d columns for table %s", len(columns), table_name)
        return columns
