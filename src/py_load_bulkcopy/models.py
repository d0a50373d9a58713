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
"""Defines the Pydantic data models shared by the binder and the cursor."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ColumnDescriptor(BaseModel):
    """Represents one column of a destination table.

    Retrieved once per binding event from the schema source and never
    modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    ordinal: int = Field(..., ge=0, description="Zero-based position in the table.")
    name: str = Field(..., description="Column name, unique within the table.")
    data_type: str = Field(
        ..., description="Database type name, e.g. 'integer' or 'text'."
    )
    is_nullable: bool = Field(default=True)
    is_computed: bool = Field(
        default=False,
        description="True for generated or identity-always columns that reject writes.",
    )


class FieldBinding(BaseModel):
    """Associates a record field with a destination column ordinal."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    ordinal: int = Field(..., ge=0)
    field_name: str
    column: ColumnDescriptor
    accessor: Callable[[Any], Any] = Field(..., repr=False)


class BindingSet(BaseModel):
    """The result of binding one record type to one destination table.

    ``bindings`` is keyed by column ordinal and keeps the declaration order of
    the record type's fields. The set is shared read-only by every cursor
    created for the same (record type, table name) pair.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    record_type: type
    table_name: str
    columns: tuple[ColumnDescriptor, ...]
    bindings: dict[int, FieldBinding]
    case_sensitive: bool = True

    @property
    def ordinals(self) -> list[int]:
        return list(self.bindings)

    @property
    def accessors(self) -> dict[int, Callable[[Any], Any]]:
        return {ordinal: binding.accessor for ordinal, binding in self.bindings.items()}

    def column(self, ordinal: int) -> ColumnDescriptor | None:
        binding = self.bindings.get(ordinal)
        return binding.column if binding else None

    def ordinal_of(self, name: str) -> int | None:
        """Find a bound column by name, using the same matching as the binder."""
        if not self.case_sensitive:
            name = name.casefold()
        for ordinal, binding in self.bindings.items():
            column_name = binding.column.name
            if (column_name if self.case_sensitive else column_name.casefold()) == name:
                return ordinal
        return None
