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
"""Maps PostgreSQL data types to the Python types psycopg can write to them."""

import types
import typing
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

# Keys are the names reported by information_schema.columns.data_type.
PYTHON_TYPES: dict[str, tuple[type, ...]] = {
    "smallint": (int,),
    "integer": (int,),
    "bigint": (int,),
    "numeric": (Decimal, int, float),
    "real": (float, int, Decimal),
    "double precision": (float, int, Decimal),
    "boolean": (bool,),
    "text": (str,),
    "character varying": (str,),
    "character": (str,),
    "citext": (str,),
    "date": (date,),
    "time without time zone": (time,),
    "time with time zone": (time,),
    "timestamp without time zone": (datetime, date),
    "timestamp with time zone": (datetime, date),
    "interval": (timedelta,),
    "uuid": (UUID, str),
    "bytea": (bytes, bytearray, memoryview),
}


def python_types_for(data_type: str) -> tuple[type, ...] | None:
    """Return the accepted Python types for a column type, or None if unchecked."""
    return PYTHON_TYPES.get(data_type.lower())


def _candidate_types(annotation: Any) -> list[type]:
    """Flatten an annotation into the concrete classes it allows.

    None is dropped from unions; non-class annotations (Any, Literal,
    TypeVar, ...) contribute nothing and are therefore never rejected.
    """
    if annotation is Any:
        # Any is a class from Python 3.11 on.
        return []
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return _candidate_types(typing.get_args(annotation)[0])
    if origin is typing.Union or origin is types.UnionType:
        candidates: list[type] = []
        for arg in typing.get_args(annotation):
            if arg is type(None):
                continue
            candidates.extend(_candidate_types(arg))
        return candidates
    if origin is not None:
        return [origin] if isinstance(origin, type) else []
    if isinstance(annotation, type) and annotation is not type(None):
        return [annotation]
    return []


def is_assignable(annotation: Any, data_type: str) -> bool:
    """Check whether values declared as ``annotation`` can be written to ``data_type``."""
    expected = python_types_for(data_type)
    if expected is None or annotation is None:
        return True
    is_boolean = bool in expected
    for candidate in _candidate_types(annotation):
        if not issubclass(candidate, expected):
            return False
        # bool subclasses int, but COPY writes it as t/f.
        if issubclass(candidate, bool) and not is_boolean:
            return False
    return True
