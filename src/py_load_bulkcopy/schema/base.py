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
"""Defines the abstract base class for destination schema sources."""

import abc
from typing import Any

from ..models import ColumnDescriptor


class BaseSchemaSource(abc.ABC):
    """Abstract Base Class for destination table introspection.

    A schema source answers one question: given a connection and a table
    name, which columns does the table have? The binder calls it at most
    once per (record type, table name) pair.
    """

    @abc.abstractmethod
    def fetch_columns(self, connection: Any, table_name: str) -> list[ColumnDescriptor]:
        """Return the table's columns ordered by ordinal.

        Args:
            connection: A database connection, or anything the implementation
                        knows how to turn into one (e.g. a connection string).
            table_name: The table to introspect, optionally schema-qualified.

        Raises:
            SchemaResolutionError: If the table cannot be introspected.

        """
        raise NotImplementedError
