# Copyright 2026 Firefly Software Solutions Inc.
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
"""Flattening of nested documents into flat configuration keys.

A document such as::

    {"logging": {"level": "debug", "sinks": ["console", "file"]}}

becomes::

    logging:level   -> "debug"
    logging:sinks:0 -> "console"
    logging:sinks:1 -> "file"

Empty objects and arrays below the root are kept as keys mapped to ``None``
so that "present but empty" stays distinguishable from "absent".
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from docconf.flat.keys import KEY_DELIMITER, FlatMap
from docconf.kernel.exceptions import (
    DocumentFormatError,
    DuplicateKeyError,
    InvalidRootError,
    UnsupportedLeafKindError,
)


class FieldList(list[tuple[str, Any]]):
    """Object fields in source order, repeated names included.

    ``json.loads`` keeps only the last of two equal field names; parsing
    objects into a FieldList lets the flattener report the repetition.
    """


def parse_document(source: str | bytes | bytearray) -> Any:
    """Parse JSON text into a tree whose objects are :class:`FieldList`."""
    try:
        return json.loads(source, object_pairs_hook=FieldList)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DocumentFormatError(f"Document is not valid JSON: {exc}") from exc


def value_kind(value: Any) -> str:
    """JSON-style name of a value's kind, used in error messages."""
    if isinstance(value, (Mapping, FieldList)):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if value is None:
        return "null"
    return type(value).__name__


def _fields(node: Mapping[str, Any] | FieldList) -> Iterable[tuple[str, Any]]:
    if isinstance(node, FieldList):
        return node
    return node.items()


class PathFlattener:
    """Depth-first, pre-order walk that emits one flat key per leaf.

    Instances are single-use; call :meth:`flatten` instead of building one.
    """

    def __init__(self) -> None:
        self._data = FlatMap()
        self._paths: list[str] = []

    @classmethod
    def flatten(cls, document: Any, prefix: str = "") -> FlatMap:
        """Flatten *document* with every key placed under *prefix*.

        Raises:
            InvalidRootError: the document is not an object.
            UnsupportedLeafKindError: a leaf is not a JSON scalar.
            DuplicateKeyError: two paths collapse to the same flat key.
        """
        return cls()._run(document, prefix)

    def _run(self, document: Any, prefix: str) -> FlatMap:
        if not isinstance(document, (Mapping, FieldList)):
            raise InvalidRootError(value_kind(document))
        if prefix:
            self._paths.append(prefix)
        self._visit_object(document)
        return self._data

    def _enter(self, segment: str) -> None:
        self._paths.append(self._paths[-1] + KEY_DELIMITER + segment if self._paths else segment)

    def _exit(self) -> None:
        self._paths.pop()

    def _visit_object(self, node: Mapping[str, Any] | FieldList) -> None:
        is_empty = True
        for name, value in _fields(node):
            is_empty = False
            self._enter(str(name))
            self._visit_value(value)
            self._exit()
        self._mark_if_empty(is_empty)

    def _visit_array(self, node: list[Any] | tuple[Any, ...]) -> None:
        for index, element in enumerate(node):
            self._enter(str(index))
            self._visit_value(element)
            self._exit()
        self._mark_if_empty(len(node) == 0)

    def _mark_if_empty(self, is_empty: bool) -> None:
        # The document root is only a path when a prefix was pushed.
        if is_empty and self._paths:
            self._emit(self._paths[-1], None)

    def _visit_value(self, value: Any) -> None:
        if isinstance(value, (Mapping, FieldList)):
            self._visit_object(value)
        elif isinstance(value, (list, tuple)):
            self._visit_array(value)
        else:
            self._emit(self._paths[-1], self._scalar_text(value))

    def _scalar_text(self, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            return json.dumps(value)
        raise UnsupportedLeafKindError(value_kind(value), self._paths[-1])

    def _emit(self, key: str, value: str | None) -> None:
        if key in self._data:
            raise DuplicateKeyError(key)
        self._data[key] = value


def flatten(document: Any, prefix: str = "") -> FlatMap:
    """Flatten a parsed document. See :meth:`PathFlattener.flatten`."""
    return PathFlattener.flatten(document, prefix)


def flatten_json(source: str | bytes | bytearray, prefix: str = "") -> FlatMap:
    """Parse JSON text and flatten it, reporting repeated field names."""
    return PathFlattener.flatten(parse_document(source), prefix)
