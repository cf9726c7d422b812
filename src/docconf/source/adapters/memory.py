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
"""In-memory document source for testing and single-process applications."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable, Mapping
from typing import Any

from docconf.source.types import ChangeEvent, ChangeKind, RawDocument, ScopeSelector, SearchScope


class QueueSubscription:
    """Change subscription fed through an :class:`asyncio.Queue`."""

    def __init__(self, selector: ScopeSelector, on_close: Callable[[QueueSubscription], None] | None = None) -> None:
        self.selector = selector
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: ChangeEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def __aiter__(self) -> QueueSubscription:
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)
        if self._on_close is not None:
            self._on_close(self)


class InMemoryDocumentSource:
    """Collections of documents held in process memory.

    Document ids are unique across collections. :meth:`put` and
    :meth:`delete` publish change events to every matching subscription.
    """

    def __init__(self, collections: Mapping[str, Mapping[str, RawDocument]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._subscriptions: list[QueueSubscription] = []
        for collection, documents in (collections or {}).items():
            for doc_id, document in documents.items():
                self._store(collection, doc_id, document)

    def _store(self, collection: str, doc_id: str, document: RawDocument) -> None:
        self._discard(doc_id)
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(dict(document))

    def _discard(self, doc_id: str) -> str | None:
        for collection, documents in self._collections.items():
            if documents.pop(doc_id, None) is not None:
                return collection
        return None

    async def put(self, collection: str, doc_id: str, document: RawDocument) -> None:
        """Insert or replace a document and notify subscribers."""
        self._store(collection, doc_id, document)
        self.publish(ChangeEvent(doc_id, ChangeKind.PUT, collection))

    async def delete(self, doc_id: str) -> bool:
        """Delete a document and notify subscribers. Returns False if absent."""
        collection = self._discard(doc_id)
        if collection is None:
            return False
        self.publish(ChangeEvent(doc_id, ChangeKind.DELETE, collection))
        return True

    def __str__(self) -> str:
        return "InMemoryDocumentSource"

    def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions):
            if subscription.selector.matches(event.id, event.collection):
                subscription.deliver(event)

    async def fetch_document(self, doc_id: str) -> RawDocument | None:
        for documents in self._collections.values():
            if doc_id in documents:
                return copy.deepcopy(documents[doc_id])
        return None

    async def fetch_documents(self, selector: ScopeSelector) -> list[tuple[str, RawDocument]]:
        if selector.kind is SearchScope.DOCUMENT:
            document = await self.fetch_document(selector.identifier or "")
            return [] if document is None else [(selector.identifier or "", document)]
        return [
            (doc_id, copy.deepcopy(document))
            for collection, documents in self._collections.items()
            for doc_id, document in documents.items()
            if selector.matches(doc_id, collection)
        ]

    async def subscribe(self, selector: ScopeSelector) -> QueueSubscription:
        subscription = QueueSubscription(selector, on_close=self._subscriptions.remove)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)
