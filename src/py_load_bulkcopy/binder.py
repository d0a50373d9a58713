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
"""Binds a record type's fields to destination column ordinals.

Binding runs once per (record type, table name) pair. The result holds one
prebuilt accessor per writable column, so streaming a row never needs to
look up attributes by reflection.
"""

import dataclasses
import functools
import logging
import operator
import threading
import typing
from collections.abc import Callable, Iterable
from typing import Any, NamedTuple

from pydantic import BaseModel

from .config import settings
from .errors import BindingTypeError
from .models import BindingSet, ColumnDescriptor, FieldBinding
from .schema.base import BaseSchemaSource
from .schema.postgres import PostgresSchemaSource
from .typemap import is_assignable

logger = logging.getLogger(__name__)


class RecordField(NamedTuple):
    """A readable field of a record type."""

    name: str
    annotation: Any
    accessor: Callable[[Any], Any]


def _type_hints(obj: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError):
        # Unresolvable forward references leave the field unchecked.
        return getattr(obj, "__annotations__", {})


def _is_namedtuple(record_type: type) -> bool:
    return issubclass(record_type, tuple) and hasattr(record_type, "_fields")


@functools.lru_cache(maxsize=None)
def readable_fields(record_type: type) -> tuple[RecordField, ...]:
    """List the public readable fields of ``record_type`` in declaration order.

    Pydantic models contribute their fields followed by their computed
    fields; dataclasses and NamedTuples their fields; plain classes their
    annotated attributes followed by their properties.
    """
    fields: list[RecordField] = []

    if issubclass(record_type, BaseModel):
        for name, info in record_type.model_fields.items():
            fields.append(RecordField(name, info.annotation, operator.attrgetter(name)))
        for name, info in record_type.model_computed_fields.items():
            fields.append(
                RecordField(name, getattr(info, "return_type", None), operator.attrgetter(name))
            )
    elif dataclasses.is_dataclass(record_type):
        hints = _type_hints(record_type)
        for field in dataclasses.fields(record_type):
            annotation = hints.get(field.name, field.type)
            fields.append(RecordField(field.name, annotation, operator.attrgetter(field.name)))
    elif _is_namedtuple(record_type):
        hints = _type_hints(record_type)
        for index, name in enumerate(record_type._fields):
            fields.append(RecordField(name, hints.get(name), operator.itemgetter(index)))
    else:
        for name, annotation in _type_hints(record_type).items():
            if typing.get_origin(annotation) is typing.ClassVar:
                continue
            fields.append(RecordField(name, annotation, operator.attrgetter(name)))
        seen = {field.name for field in fields}
        for klass in reversed(record_type.__mro__):
            for name, member in vars(klass).items():
                if isinstance(member, property) and name not in seen:
                    seen.add(name)
                    annotation = _type_hints(member.fget).get("return") if member.fget else None
                    fields.append(RecordField(name, annotation, operator.attrgetter(name)))

    return tuple(field for field in fields if not field.name.startswith("_"))


def build_bindings(
    record_type: type,
    table_name: str,
    columns: Iterable[ColumnDescriptor],
    case_sensitive: bool = True,
) -> BindingSet:
    """Match the fields of ``record_type`` against ``columns``.

    Fields without a matching column are ignored, computed columns are never
    bound, and when several fields match the same column the first one wins.

    Raises:
        BindingTypeError: If a matched field's annotation cannot be written to
            the column's data type.

    """
    columns = tuple(columns)

    def normalize(name: str) -> str:
        return name if case_sensitive else name.casefold()

    by_name = {normalize(column.name): column for column in columns}
    fields = readable_fields(record_type)
    bindings: dict[int, FieldBinding] = {}

    for field in fields:
        column = by_name.get(normalize(field.name))
        if column is None or column.ordinal in bindings:
            continue
        if column.is_computed:
            logger.debug("Skipping computed column %s.%s", table_name, column.name)
            continue
        if not is_assignable(field.annotation, column.data_type):
            msg = (
                f"Field '{record_type.__name__}.{field.name}' ({field.annotation!r}) "
                f"cannot be written to column '{column.name}' of type '{column.data_type}'."
            )
            raise BindingTypeError(msg)
        bindings[column.ordinal] = FieldBinding(
            ordinal=column.ordinal,
            field_name=field.name,
            column=column,
            accessor=field.accessor,
        )

    logger.info(
        "Bound %d of %d fields of %s to table %s",
        len(bindings),
        len(fields),
        record_type.__name__,
        table_name,
    )
    return BindingSet(
        record_type=record_type,
        table_name=table_name,
        columns=columns,
        bindings=bindings,
        case_sensitive=case_sensitive,
    )


class SchemaBinder:
    """Caches binding sets keyed by (record type, table name).

    The cache assumes a table's schema does not change while the process
    runs; call ``invalidate`` after altering a bound table. First binds are
    serialized by a single lock so that concurrent cursors for a new type
    fetch the schema exactly once.
    """

    def __init__(
        self,
        schema_source: BaseSchemaSource | None = None,
        case_sensitive: bool | None = None,
    ) -> None:
        self.schema_source = schema_source or PostgresSchemaSource()
        self.case_sensitive = (
            settings.case_sensitive_columns if case_sensitive is None else case_sensitive
        )
        self._bindings: dict[tuple[type, str], BindingSet] = {}
        self._lock = threading.Lock()

    def bind(self, record_type: type, table_name: str, connection: Any) -> BindingSet:
        """Return the binding set for ``record_type`` and ``table_name``.

        The schema source is only consulted the first time a pair is seen.

        Raises:
            SchemaResolutionError: If the schema cannot be fetched or a field
                is incompatible with its column.

        """
        key = (record_type, table_name)
        binding_set = self._bindings.get(key)
        if binding_set is not None:
            return binding_set

        with self._lock:
            binding_set = self._bindings.get(key)
            if binding_set is None:
                columns = self.schema_source.fetch_columns(connection, table_name)
                binding_set = build_bindings(
                    record_type, table_name, columns, case_sensitive=self.case_sensitive
                )
                self._bindings[key] = binding_set
        return binding_set

    def is_bound(self, record_type: type, table_name: str) -> bool:
        return (record_type, table_name) in self._bindings

    def invalidate(
        self, record_type: type | None = None, table_name: str | None = None
    ) -> int:
        """Drop cached binding sets matching the given filters.

        Returns:
            The number of entries removed.

        """
        with self._lock:
            stale = [
                key
                for key in self._bindings
                if (record_type is None or key[0] is record_type)
                and (table_name is None or key[1] == table_name)
            ]
            for key in stale:
                del self._bindings[key]
        return len(stale)


# Process-wide binder shared by every cursor that is not given its own.
default_binder = SchemaBinder()
