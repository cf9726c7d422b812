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
"""Flat configuration keys and the case-insensitive mapping that holds them."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any

from docconf.kernel.exceptions import DuplicateKeyError

KEY_DELIMITER = ":"

FlatValue = str | None


def fold(key: str) -> str:
    """Normalise a key for case-insensitive comparison."""
    return key.lower()


def join_path(prefix: str | None, *segments: str) -> str:
    """Join path segments, omitting an empty or missing leading prefix.

    >>> join_path("cfg", "app", "name")
    'cfg:app:name'
    >>> join_path("", "app")
    'app'
    """
    if prefix:
        return KEY_DELIMITER.join((prefix, *segments))
    return KEY_DELIMITER.join(segments)


class FlatMap(MutableMapping[str, FlatValue]):
    """Mapping of flat keys to optional string values.

    Keys compare case-insensitively; the spelling used by the first insert
    is the one reported by iteration.
    """

    __slots__ = ("_entries",)

    def __init__(self, data: Mapping[str, FlatValue] | Iterable[tuple[str, FlatValue]] | None = None) -> None:
        self._entries: dict[str, tuple[str, FlatValue]] = {}
        if data is not None:
            self.update(data)

    def __getitem__(self, key: str) -> FlatValue:
        return self._entries[fold(key)][1]

    def __setitem__(self, key: str, value: FlatValue) -> None:
        folded = fold(key)
        existing = self._entries.get(folded)
        self._entries[folded] = (existing[0] if existing else key, value)

    def __delitem__(self, key: str) -> None:
        del self._entries[fold(key)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and fold(key) in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        if len(other) != len(self):
            return False
        return all(key in self and self[key] == value for key, value in other.items())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"

    def add(self, key: str, value: FlatValue) -> None:
        """Insert a new key, refusing to overwrite an existing one."""
        if key in self:
            raise DuplicateKeyError(key)
        self[key] = value

    def copy(self) -> FlatMap:
        return FlatMap(self.items())

    def to_dict(self) -> dict[str, Any]:
        return dict(self.items())
