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

import pytest

from py_load_bulkcopy.loader.base import BaseLoader
from py_load_bulkcopy.reader import BulkCopyReader
from py_load_bulkcopy.schema.base import BaseSchemaSource

pytestmark = pytest.mark.unit


# Minimal concrete classes for testing the abstract base classes
class MinimalLoader(BaseLoader):
    def __enter__(self):
        return super().__enter__()

    def __exit__(self, exc_type, exc_val, exc_tb):
        return super().__exit__(exc_type, exc_val, exc_tb)

    def bulk_copy(self, reader):
        return super().bulk_copy(reader)

    def execute_sql(self, sql, params=None):
        return super().execute_sql(sql, params)


class MinimalSchemaSource(BaseSchemaSource):
    def fetch_columns(self, connection, table_name):
        return super().fetch_columns(connection, table_name)


@pytest.fixture
def minimal_loader():
    """Provides an instance of MinimalLoader."""
    return MinimalLoader()


def test_base_loader_enter_raises_not_implemented(minimal_loader):
    with pytest.raises(NotImplementedError):
        with minimal_loader:
            pass


def test_base_loader_exit_raises_not_implemented(minimal_loader):
    with pytest.raises(NotImplementedError):
        minimal_loader.__exit__(None, None, None)


def test_base_loader_bulk_copy_raises_not_implemented(minimal_loader):
    with pytest.raises(NotImplementedError):
        minimal_loader.bulk_copy(None)


def test_base_loader_execute_sql_raises_not_implemented(minimal_loader):
    with pytest.raises(NotImplementedError):
        minimal_loader.execute_sql("a")


def test_base_schema_source_raises_not_implemented():
    with pytest.raises(NotImplementedError):
        MinimalSchemaSource().fetch_columns(None, "t")


def test_bulk_copy_reader_cannot_be_instantiated():
    with pytest.raises(TypeError):
        BulkCopyReader()
