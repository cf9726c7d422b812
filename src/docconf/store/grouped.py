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
"""GroupedStore — flat configuration entries partitioned by key prefix."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

import structlog

from docconf.flat.keys import FlatMap, FlatValue, fold
from docconf.kernel.exceptions import CannotCategorizeError, DuplicateKeyError, MisplacedKeyError
from docconf.store.categorizer import KeyCategorizer

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of :meth:`GroupedStore.validate`."""

    is_invalid: bool
    misplaced: tuple[str, ...] = ()


@dataclass
class _Group:
    key: str
    entries: FlatMap = field(default_factory=FlatMap)


class GroupedStore:
    """Partitioned map of flat keys to optional string values.

    Every entry lives in the group its key categorizes to. Groups are keyed
    case-insensitively and are removed as soon as they hold no entries.
    The store is not synchronized; callers serialize mutation.

    Usage::

        store = GroupedStore(KeyCategorizer.for_prefix("cfg"))
        store.replace_group("cfg:app", flatten(document, "cfg:app"))
        store.get("cfg:app:name")
    """

    def __init__(self, categorizer: KeyCategorizer) -> None:
        self._categorizer = categorizer
        self._groups: dict[str, _Group] = {}

    @property
    def categorizer(self) -> KeyCategorizer:
        return self._categorizer

    def categorize(self, key: str) -> str | None:
        return self._categorizer.categorize(key)

    # ------------------------------------------------------------------
    # Entry access
    # ------------------------------------------------------------------

    def insert(self, key: str, value: FlatValue) -> None:
        """Insert a new entry into the group its key categorizes to.

        Raises:
            CannotCategorizeError: the key has too few segments.
            DuplicateKeyError: the key is already stored.
        """
        group_key = self._categorizer.categorize(key)
        if group_key is None:
            raise CannotCategorizeError(key)

        group = self._groups.get(fold(group_key))
        if group is None:
            group = _Group(group_key)
            self._groups[fold(group_key)] = group
        group.entries.add(key, value)

    def _locate(self, key: str) -> _Group | None:
        group_key = self._categorizer.categorize(key)
        if group_key is None:
            return None
        group = self._groups.get(fold(group_key))
        if group is None or key not in group.entries:
            return None
        return group

    def try_get(self, key: str) -> tuple[bool, FlatValue]:
        """Return ``(found, value)``; a found value may itself be None."""
        group = self._locate(key)
        if group is None:
            return False, None
        return True, group.entries[key]

    def get(self, key: str, default: FlatValue = None) -> FlatValue:
        found, value = self.try_get(key)
        return value if found else default

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._locate(key) is not None

    def __len__(self) -> int:
        return sum(len(group.entries) for group in self._groups.values())

    def keys(self) -> Iterator[str]:
        for group in self._groups.values():
            yield from group.entries

    def items(self) -> Iterator[tuple[str, FlatValue]]:
        for group in self._groups.values():
            yield from group.entries.items()

    def remove(self, key: str) -> bool:
        """Remove one entry; its group disappears if it becomes empty."""
        group = self._locate(key)
        if group is None:
            return False
        del group.entries[key]
        self.remove_empty_groups()
        return True

    def to_flat_map(self) -> FlatMap:
        """Merged view of every group."""
        return FlatMap(self.items())

    # ------------------------------------------------------------------
    # Group access
    # ------------------------------------------------------------------

    def groups(self) -> list[str]:
        return [group.key for group in self._groups.values()]

    def group(self, group_key: str) -> FlatMap | None:
        """Copy of one group's entries, or None if the group is absent."""
        group = self._groups.get(fold(group_key))
        return group.entries.copy() if group is not None else None

    def replace_group(self, group_key: str, mapping: Mapping[str, FlatValue]) -> None:
        """Swap a whole group's contents; an empty mapping removes the group.

        The replacement is built completely before it becomes visible, so a
        rejected mapping leaves the previous group untouched.

        Raises:
            MisplacedKeyError: a key categorizes to another group.
            DuplicateKeyError: the mapping repeats a key.
        """
        entries = FlatMap()
        for key, value in mapping.items():
            expected = self._categorizer.categorize(key)
            if expected is None or fold(expected) != fold(group_key):
                raise MisplacedKeyError(key, group_key, expected)
            entries.add(key, value)

        if entries:
            self._groups[fold(group_key)] = _Group(group_key, entries)
        else:
            self._groups.pop(fold(group_key), None)

    def remove_empty_groups(self) -> int:
        """Drop every group without entries. Returns how many were dropped."""
        empty = [name for name, group in self._groups.items() if not group.entries]
        for name in empty:
            del self._groups[name]
        return len(empty)

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def _is_placed(self, group: _Group, key: str) -> bool:
        expected = self._categorizer.categorize(key)
        return expected is not None and fold(expected) == fold(group.key)

    def with_categorizer(self, categorizer: KeyCategorizer) -> GroupedStore:
        """New store over copies of these groups that uses *categorizer*.

        Entries are not moved; call :meth:`reconcile` on the result.
        """
        store = GroupedStore(categorizer)
        store._groups = {name: _Group(group.key, group.entries.copy()) for name, group in self._groups.items()}
        return store

    def reconcile(self, continue_on_duplicate: bool = True) -> int:
        """Move every misplaced entry to the group it categorizes to.

        With ``continue_on_duplicate`` entries that collide with an existing
        key, or that no longer categorize at all, are dropped and logged.
        Without it the first such entry raises and the store is rolled back
        to its state before the call.

        Returns:
            Number of entries moved.
        """
        snapshot = None
        if not continue_on_duplicate:
            snapshot = {name: _Group(group.key, group.entries.copy()) for name, group in self._groups.items()}

        misplaced: list[tuple[str, FlatValue]] = []
        for group in self._groups.values():
            moving = [key for key in group.entries if not self._is_placed(group, key)]
            for key in moving:
                misplaced.append((key, group.entries.pop(key)))

        moved = 0
        try:
            for key, value in misplaced:
                try:
                    self.insert(key, value)
                    moved += 1
                except (DuplicateKeyError, CannotCategorizeError) as exc:
                    if snapshot is not None:
                        raise
                    logger.warning("reconcile_entry_dropped", key=key, reason=exc.code)
        except (DuplicateKeyError, CannotCategorizeError):
            if snapshot is not None:
                self._groups = snapshot
            raise
        finally:
            self.remove_empty_groups()

        if moved:
            logger.debug("store_reconciled", moved=moved, groups=len(self._groups))
        return moved

    def validate(self, fail_fast: bool = False) -> ValidationResult:
        """Report entries whose group differs from their categorization."""
        misplaced: list[str] = []
        for group in self._groups.values():
            for key in group.entries:
                if self._is_placed(group, key):
                    continue
                misplaced.append(key)
                if fail_fast:
                    return ValidationResult(True, tuple(misplaced))
        return ValidationResult(bool(misplaced), tuple(misplaced))

    def __repr__(self) -> str:
        return f"GroupedStore(segments={self._categorizer.segments}, groups={self.groups()!r})"
