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
"""Utility functions for the application."""

from collections.abc import Iterable
from typing import Any

from .binder import SchemaBinder
from .config import settings
from .loader.postgres import PostgresLoader
from .reader import RecordCursor


def copy_records(
    records: Iterable[Any],
    conn_string: str | None = None,
    table_name: str | None = None,
    *,
    record_type: type | None = None,
    binder: SchemaBinder | None = None,
) -> int:
    """Bulk copy ``records`` into their destination table in one transaction.

    The destination schema is read over the loader's own connection, so
    tables created earlier in the same session are visible.

    Returns:
        The number of rows copied.
    """
    with PostgresLoader(conn_string or settings.db_connection_string) as loader:
        reader = RecordCursor(
            records,
            loader.connection,
            table_name,
            record_type=record_type,
            binder=binder,
        )
        with reader:
            return loader.bulk_copy(reader)
