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
"""Defines the abstract base class for database loaders."""

import abc
import types
from collections.abc import Iterable
from typing import Any

from ..reader import BulkCopyReader


class BaseLoader(abc.ABC):
    """Abstract Base Class for all database loaders.

    A loader owns a connection and a transaction and knows how to stream a
    ``BulkCopyReader`` into the database's native bulk loading utility. It
    acts as a context manager to handle the connection and transaction
    lifecycles.
    """

    @abc.abstractmethod
    def __enter__(self) -> "BaseLoader":
        """Establish the database connection and begin a transaction.

        Returns:
            The loader instance.

        """
        raise NotImplementedError

    @abc.abstractmethod
    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Commit the transaction on success or roll back on error.

        Closes the database connection.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def bulk_copy(self, reader: BulkCopyReader) -> int:
        """Stream every row of ``reader`` into its destination table.

        The loader targets ``reader.destination_table_name``, maps columns
        according to ``reader.column_mapping()`` and drives the reader until
        ``advance()`` returns False.

        Args:
            reader: The cursor to drain.

        Returns:
            The number of rows written.

        """
        raise NotImplementedError

    @abc.abstractmethod
    def execute_sql(self, sql: str, params: Iterable[Any] | None = None) -> None:
        """Execute an arbitrary SQL command.

        Used for tasks like creating or truncating destination tables.

        Args:
            sql: The SQL statement to execute.
            params: An optional iterable of parameters to be used with the SQL
                    statement to prevent SQL injection.

        """
        raise NotImplementedError
