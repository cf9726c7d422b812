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
"""Outbound ports: document source and change subscription interfaces."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from docconf.source.types import ChangeEvent, RawDocument, ScopeSelector


@runtime_checkable
class ChangeSubscription(Protocol):
    """Cancellable stream of change events for one scope.

    Iteration ends once :meth:`close` has been called.
    """

    def __aiter__(self) -> AsyncIterator[ChangeEvent]: ...

    async def close(self) -> None: ...


@runtime_checkable
class DocumentSourcePort(Protocol):
    """Abstract read access to a document database."""

    async def fetch_document(self, doc_id: str) -> RawDocument | None: ...

    async def fetch_documents(self, selector: ScopeSelector) -> list[tuple[str, RawDocument]]: ...

    async def subscribe(self, selector: ScopeSelector) -> ChangeSubscription: ...
