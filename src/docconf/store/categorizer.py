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
"""Key categorization strategy used to partition the grouped store."""

from __future__ import annotations

from dataclasses import dataclass

from docconf.flat.keys import KEY_DELIMITER, join_path


@dataclass(frozen=True)
class KeyCategorizer:
    """Maps a flat key to the group made of its first ``segments`` segments.

    The value is immutable, so a store built with it always categorizes the
    same way. Build it with :meth:`for_prefix` from a configuration prefix:
    one segment per prefix segment plus one for the document identifier.
    """

    segments: int = 1
    prefix: str = ""

    def __post_init__(self) -> None:
        if self.segments < 1:
            raise ValueError(f"segments must be at least 1, got {self.segments}")

    @classmethod
    def for_prefix(cls, prefix: str | None) -> KeyCategorizer:
        prefix = (prefix or "").strip()
        if not prefix:
            return cls(segments=1, prefix="")
        return cls(segments=prefix.count(KEY_DELIMITER) + 2, prefix=prefix)

    def categorize(self, key: str) -> str | None:
        """Return the group key of *key*, or None when it has too few segments."""
        end = -1
        for found in range(self.segments):
            end = key.find(KEY_DELIMITER, end + 1)
            if end == -1:
                # The last wanted segment may run to the end of the key.
                return key if found == self.segments - 1 else None
        return key[:end]

    __call__ = categorize

    def document_group_key(self, doc_id: str) -> str:
        """Key prefix under which a document's flattened content is stored."""
        return join_path(self.prefix, doc_id)
