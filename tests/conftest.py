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

import threading
import time

import pytest

from py_load_bulkcopy.binder import SchemaBinder, default_binder
from py_load_bulkcopy.models import ColumnDescriptor
from py_load_bulkcopy.schema.base import BaseSchemaSource


class FakeSchemaSource(BaseSchemaSource):
    """An in-memory schema source that records every fetch."""

    def __init__(self, columns, delay=0.0, error=None):
        self.columns = list(columns)
        self.delay = delay
        self.error = error
        self.calls = []
        self._calls_lock = threading.Lock()

    def fetch_columns(self, connection, table_name):
        with self._calls_lock:
            self.calls.append((connection, table_name))
        if self.delay:
            # Widen the window in which concurrent binders could race.
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.columns)


@pytest.fixture
def bulk_copy_columns():
    """Columns of a table with an identity id and no counter column."""
    return [
        ColumnDescriptor(
            ordinal=0, name="id", data_type="bigint", is_nullable=False, is_computed=True
        ),
        ColumnDescriptor(ordinal=1, name="name", data_type="text"),
        ColumnDescriptor(
            ordinal=2, name="date_created", data_type="timestamp without time zone"
        ),
    ]


@pytest.fixture
def make_schema_source():
    """Factory for FakeSchemaSource instances."""
    return FakeSchemaSource


@pytest.fixture
def fake_source(bulk_copy_columns):
    return FakeSchemaSource(bulk_copy_columns)


@pytest.fixture
def binder(fake_source):
    """A binder with its own cache, isolated from the process-wide one."""
    return SchemaBinder(fake_source, case_sensitive=True)


@pytest.fixture(autouse=True)
def _reset_default_binder():
    yield
    default_binder.invalidate()
