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
"""Stream typed Python records into PostgreSQL with COPY, without a temp table."""

from .binder import SchemaBinder, build_bindings, default_binder, readable_fields
from .errors import (
    ArgumentError,
    BindingTypeError,
    BulkCopyError,
    NoCurrentRecordError,
    SchemaResolutionError,
    UnknownColumnError,
    UnsupportedOperationError,
)
from .loader import BaseLoader, PostgresLoader
from .models import BindingSet, ColumnDescriptor, FieldBinding
from .reader import BulkCopyReader, RecordCursor
from .schema import BaseSchemaSource, PostgresSchemaSource
from .utils import copy_records

__all__ = [
    "ArgumentError",
    "BaseLoader",
    "BaseSchemaSource",
    "BindingSet",
    "BindingTypeError",
    "BulkCopyError",
    "BulkCopyReader",
    "ColumnDescriptor",
    "FieldBinding",
    "NoCurrentRecordError",
    "PostgresLoader",
    "PostgresSchemaSource",
    "RecordCursor",
    "SchemaBinder",
    "SchemaResolutionError",
    "UnknownColumnError",
    "UnsupportedOperationError",
    "build_bindings",
    "copy_records",
    "default_binder",
    "readable_fields",
]
