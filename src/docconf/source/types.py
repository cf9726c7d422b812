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
"""Shared types describing document sources, scopes and change events."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

RawDocument = Mapping[str, Any]
"""A parsed document as returned by a source: field name -> JSON-like value."""


class SearchScope(StrEnum):
    """Which documents a provider loads."""

    DOCUMENT = "DOCUMENT"
    COLLECTION = "COLLECTION"
    PREFIX = "PREFIX"
    ALL = "ALL"

    @property
    def is_grouped(self) -> bool:
        """True for scopes that load many documents into a grouped store."""
        return self is not SearchScope.DOCUMENT


class ChangeKind(StrEnum):
    """Kind of change reported by a subscription."""

    PUT = "PUT"
    DELETE = "DELETE"
    OTHER = "OTHER"


@dataclass(frozen=True)
class ScopeSelector:
    """Selects the documents of a multi-document fetch or a subscription.

    ``identifier`` is the collection name for COLLECTION, the id prefix for
    PREFIX, the document id for DOCUMENT and ignored for ALL.
    """

    kind: SearchScope
    identifier: str | None = None

    def matches(self, doc_id: str, collection: str | None = None) -> bool:
        """Whether a document belongs to this selection."""
        if self.kind is SearchScope.ALL:
            return True
        if self.kind is SearchScope.DOCUMENT:
            return doc_id == self.identifier
        if self.kind is SearchScope.PREFIX:
            return doc_id.startswith(self.identifier or "")
        return collection is not None and collection == self.identifier


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification for one document."""

    id: str
    kind: ChangeKind
    collection: str | None = None

    @property
    def triggers_reload(self) -> bool:
        return self.kind in (ChangeKind.PUT, ChangeKind.DELETE)
