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
"""Provides a forward-only tabular cursor over an in-memory record sequence."""

import abc
import types
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from .binder import SchemaBinder, default_binder
from .config import settings
from .errors import (
    ArgumentError,
    NoCurrentRecordError,
    UnknownColumnError,
    UnsupportedOperationError,
)
from .models import ColumnDescriptor
from .typemap import python_types_for

_NO_RECORD = object()


class BulkCopyReader(abc.ABC):
    """Abstract Base Class for cursors consumed by a bulk loader.

    A bulk loader sets its target table from ``destination_table_name``,
    registers every pair from ``column_mapping()``, then calls ``advance()``
    and ``get_value()`` until ``advance()`` returns False.
    """

    @property
    @abc.abstractmethod
    def destination_table_name(self) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def column_mapping(self) -> list[tuple[int, int]]:
        """Return (source ordinal, destination ordinal) pairs."""
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def field_count(self) -> int:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def is_closed(self) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def advance(self) -> bool:
        """Move to the next record. Returns False once the source is exhausted."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_value(self, ordinal: int) -> Any:
        """Return the current record's value for the column at ``ordinal``."""
        raise NotImplementedError

    @abc.abstractmethod
    def is_null(self, ordinal: int) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def column_metadata(self, key: int | str) -> ColumnDescriptor:
        raise NotImplementedError

    @abc.abstractmethod
    def get_name(self, ordinal: int) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def get_ordinal(self, name: str) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> "BulkCopyReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()


class RecordCursor(BulkCopyReader):
    """Streams a sequence of typed records as rows of a destination table.

    The cursor is Idle until the first ``advance()``, which opens an iterator
    over the source. When the source is exhausted the iterator is released and
    the row counter reset, so a later ``advance()`` starts a fresh pass. One
    cursor supports one pass at a time and must not be shared across threads.
    """

    def __init__(
        self,
        source: Iterable[Any] | None,
        connection: Any = None,
        table_name: str | None = None,
        *,
        record_type: type | None = None,
        binder: SchemaBinder | None = None,
    ) -> None:
        """Bind the record type and prepare the cursor.

        Args:
            source: The records to stream. Iterated lazily, once per pass.
            connection: A psycopg connection or libpq connection string used
                        to introspect the destination table. Defaults to the
                        configured database.
            table_name: The destination table. Defaults to the record type's
                        class name.
            record_type: The type of the records. Inferred from the first
                         element when ``source`` is a non-empty sequence.
            binder: The binder to use. Defaults to the process-wide binder.

        Raises:
            ArgumentError: If ``source`` is None or the record type is unknown.
            SchemaResolutionError: If the destination schema cannot be bound.

        """
        if source is None:
            msg = "source cannot be None"
            raise ArgumentError(msg)

        if record_type is None:
            if not isinstance(source, Sequence) or not source:
                msg = "record_type is required unless source is a non-empty sequence"
                raise ArgumentError(msg)
            record_type = type(source[0])

        self._source = source
        self._iterator: Iterator[Any] | None = None
        self._current: Any = _NO_RECORD
        self._rows_read = 0
        self._record_type = record_type
        self._table_name = (
            table_name if table_name and table_name.strip() else record_type.__name__
        )

        binder = binder or default_binder
        if connection is None:
            connection = settings.db_connection_string
        self._binding_set = binder.bind(record_type, self._table_name, connection)
        self._accessors = self._binding_set.accessors

    @property
    def record_type(self) -> type:
        return self._record_type

    @property
    def destination_table_name(self) -> str:
        return self._table_name

    def column_mapping(self) -> list[tuple[int, int]]:
        """Source and destination ordinals coincide, so every pair is (n, n)."""
        return [(ordinal, ordinal) for ordinal in self._accessors]

    @property
    def field_count(self) -> int:
        return len(self._accessors)

    @property
    def rows_read(self) -> int:
        """Number of ``advance()`` calls in the current pass."""
        return self._rows_read

    @property
    def depth(self) -> int:
        return 1

    @property
    def is_closed(self) -> bool:
        return self._iterator is None

    def advance(self) -> bool:
        if self._iterator is None:
            self._iterator = iter(self._source)

        # Counted before the pull, so the exhausting call is counted too.
        self._rows_read += 1
        self._current = next(self._iterator, _NO_RECORD)

        if self._current is _NO_RECORD:
            self._iterator = None
            self._rows_read = 0
            return False
        return True

    @property
    def current(self) -> Any:
        if self._current is _NO_RECORD:
            msg = "There is no current record; call advance() first."
            raise NoCurrentRecordError(msg)
        return self._current

    def get_value(self, ordinal: int) -> Any:
        if self._current is _NO_RECORD:
            msg = "There is no current record; call advance() first."
            raise NoCurrentRecordError(msg)
        try:
            accessor = self._accessors[ordinal]
        except KeyError:
            msg = f"Column ordinal {ordinal} is not bound for table '{self._table_name}'."
            raise UnknownColumnError(msg) from None
        return accessor(self._current)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            key = self.get_ordinal(key)
        return self.get_value(key)

    def is_null(self, ordinal: int) -> bool:
        return self.get_value(ordinal) is None

    def column_metadata(self, key: int | str) -> ColumnDescriptor:
        """Look up a bound column by ordinal or by name."""
        if isinstance(key, str):
            key = self.get_ordinal(key)
        column = self._binding_set.column(key)
        if column is None:
            msg = f"Column ordinal {key} is not bound for table '{self._table_name}'."
            raise UnknownColumnError(msg)
        return column

    def get_name(self, ordinal: int) -> str:
        return self.column_metadata(ordinal).name

    def get_ordinal(self, name: str) -> int:
        ordinal = self._binding_set.ordinal_of(name)
        if ordinal is None:
            msg = f"Column '{name}' is not bound for table '{self._table_name}'."
            raise UnknownColumnError(msg)
        return ordinal

    def get_data_type_name(self, ordinal: int) -> str:
        return self.column_metadata(ordinal).data_type

    def get_field_type(self, ordinal: int) -> type:
        """Return the primary Python type for the column, or ``object`` if unmapped."""
        python_types = python_types_for(self.column_metadata(ordinal).data_type)
        return python_types[0] if python_types else object

    def schema_snapshot(self) -> list[ColumnDescriptor]:
        """Return a copy of every column of the destination table, bound or not."""
        return list(self._binding_set.columns)

    def close(self) -> None:
        iterator, self._iterator = self._iterator, None
        self._current = _NO_RECORD
        # Generators release their resources only when closed.
        close_iterator = getattr(iterator, "close", None)
        if close_iterator is not None:
            close_iterator()

    # Chunked, nested and multi-result access is never used by bulk loading.

    def get_bytes(self, ordinal: int, offset: int, buffer: bytearray, length: int) -> int:
        msg = "Chunked binary reads are not supported."
        raise UnsupportedOperationError(msg)

    def get_chars(self, ordinal: int, offset: int, buffer: list[str], length: int) -> int:
        msg = "Chunked character reads are not supported."
        raise UnsupportedOperationError(msg)

    def get_data(self, ordinal: int) -> "BulkCopyReader":
        msg = "Nested readers are not supported."
        raise UnsupportedOperationError(msg)

    def get_values(self, values: list[Any]) -> int:
        msg = "Bulk value retrieval is not supported."
        raise UnsupportedOperationError(msg)

    def next_result(self) -> bool:
        msg = "Multiple result sets are not supported."
        raise UnsupportedOperationError(msg)
