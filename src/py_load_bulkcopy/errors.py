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
"""Exception types raised by the binder, the record cursor and the schema sources.

All errors are raised synchronously from the call that triggers them. None of
them are logged or retried internally.
"""


class BulkCopyError(Exception):
    """Base class for all py-load-bulkcopy errors."""


class ArgumentError(BulkCopyError, ValueError):
    """Raised when a cursor is constructed from invalid input (e.g. no source)."""


class SchemaResolutionError(BulkCopyError, RuntimeError):
    """Raised when the destination table schema cannot be fetched.

    This covers a missing table, a table without visible columns and any
    database error raised during introspection (chained as ``__cause__``).
    """


class BindingTypeError(SchemaResolutionError):
    """Raised when a field annotation cannot be written to its bound column."""


class NoCurrentRecordError(BulkCopyError, RuntimeError):
    """Raised when a field is read before the first advance or after exhaustion."""


class UnknownColumnError(BulkCopyError, KeyError):
    """Raised when an ordinal or column name is not part of the bound mapping."""

    def __str__(self) -> str:
        # KeyError repr()s its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class UnsupportedOperationError(BulkCopyError, NotImplementedError):
    """Raised for cursor operations that bulk loading never needs."""
