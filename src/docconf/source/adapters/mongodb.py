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
"""MongoDB document source built on Motor.

Documents are addressed by qualified ids of the form
``"<collection>/<_id>"``, so a single id names both the collection and the
document, and PREFIX scopes can span or narrow collections.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from bson import ObjectId, Timestamp
from pymongo.errors import PyMongoError

from docconf.kernel.exceptions import SourceUnavailableException
from docconf.source.types import ChangeEvent, ChangeKind, RawDocument, ScopeSelector, SearchScope

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorChangeStream, AsyncIOMotorDatabase

logger = structlog.get_logger(__name__)

ID_SEPARATOR = "/"

_PUT_OPERATIONS = frozenset({"insert", "update", "replace"})


def qualify(collection: str, key: Any) -> str:
    return f"{collection}{ID_SEPARATOR}{key}"


def _id_candidates(key: str) -> list[Any]:
    candidates: list[Any] = [key]
    if ObjectId.is_valid(key):
        candidates.append(ObjectId(key))
    return candidates


def change_to_event(change: Mapping[str, Any]) -> ChangeEvent | None:
    """Translate a change stream document into a ChangeEvent.

    Returns None for events that do not concern a single document
    (drop, rename, invalidate, ...).
    """
    collection = change.get("ns", {}).get("coll")
    document_key = change.get("documentKey", {})
    if collection is None or "_id" not in document_key:
        return None

    operation = change.get("operationType")
    if operation in _PUT_OPERATIONS:
        kind = ChangeKind.PUT
    elif operation == "delete":
        kind = ChangeKind.DELETE
    else:
        kind = ChangeKind.OTHER
    return ChangeEvent(qualify(collection, document_key["_id"]), kind, collection)


class MongoChangeSubscription:
    """Database-level change stream filtered to one scope.

    The stream starts at *start_at*, the cluster time captured when the
    subscription was made, and resumes after the last seen change when it
    has to be reopened. Change streams require a replica set.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        selector: ScopeSelector,
        start_at: Timestamp | None = None,
    ) -> None:
        self._database = database
        self._selector = selector
        self._start_at = start_at
        self._resume_token: Mapping[str, Any] | None = None
        self._stream: AsyncIOMotorChangeStream | None = None
        self._closed = False

    def _pipeline(self) -> list[dict[str, Any]]:
        if self._selector.kind is SearchScope.COLLECTION:
            return [{"$match": {"ns.coll": self._selector.identifier}}]
        if self._selector.kind is SearchScope.DOCUMENT and self._selector.identifier:
            collection, _, key = self._selector.identifier.partition(ID_SEPARATOR)
            return [{"$match": {"ns.coll": collection, "documentKey._id": {"$in": _id_candidates(key)}}}]
        return []

    def open(self) -> AsyncIOMotorChangeStream:
        """Return the change stream, creating it if none is open."""
        if self._stream is not None:
            return self._stream
        options: dict[str, Any] = {}
        if self._resume_token is not None:
            options["resume_after"] = self._resume_token
        elif self._start_at is not None:
            options["start_at_operation_time"] = self._start_at
        self._stream = self._database.watch(self._pipeline(), **options)
        return self._stream

    def __aiter__(self) -> MongoChangeSubscription:
        return self

    async def __anext__(self) -> ChangeEvent:
        while not self._closed:
            stream = self.open()
            try:
                change = await stream.next()
            except PyMongoError as exc:
                await self._discard_stream()
                raise SourceUnavailableException(
                    "Change stream failed",
                    code="SOURCE_WATCH",
                    context={"scope": str(self._selector.kind), "identifier": self._selector.identifier},
                ) from exc
            self._resume_token = change.get("_id", self._resume_token)
            event = change_to_event(change)
            if event is not None and self._selector.matches(event.id, event.collection):
                return event
        raise StopAsyncIteration

    async def _discard_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                await stream.close()
            except PyMongoError as exc:
                logger.debug("change_stream_close_failed", error=str(exc))

    async def close(self) -> None:
        self._closed = True
        await self._discard_stream()


class MongoDocumentSource:
    """DocumentSourcePort over one MongoDB database."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database

    @classmethod
    def from_uri(cls, uri: str, database: str | None = None) -> MongoDocumentSource:
        """Connect to *uri*; without *database*, use the one named in the URI."""
        from motor.motor_asyncio import AsyncIOMotorClient

        client: AsyncIOMotorClient = AsyncIOMotorClient(uri)
        return cls(client[database] if database else client.get_default_database("docconf"))

    @property
    def database_name(self) -> str:
        return str(self._database.name)

    def __str__(self) -> str:
        return f"MongoDocumentSource({self.database_name})"

    async def fetch_document(self, doc_id: str) -> RawDocument | None:
        collection, separator, key = doc_id.partition(ID_SEPARATOR)
        if not separator or not collection:
            return None
        try:
            return await self._database[collection].find_one({"_id": {"$in": _id_candidates(key)}})
        except PyMongoError as exc:
            raise SourceUnavailableException(
                f"Failed to fetch document '{doc_id}'", code="SOURCE_FETCH", context={"id": doc_id}
            ) from exc

    async def fetch_documents(self, selector: ScopeSelector) -> list[tuple[str, RawDocument]]:
        if selector.kind is SearchScope.DOCUMENT:
            document = await self.fetch_document(selector.identifier or "")
            return [] if document is None else [(selector.identifier or "", document)]

        try:
            if selector.kind is SearchScope.COLLECTION:
                collections = [selector.identifier or ""]
            else:
                names = await self._database.list_collection_names()
                collections = sorted(name for name in names if not name.startswith("system."))

            results: list[tuple[str, RawDocument]] = []
            for collection in collections:
                if selector.kind is SearchScope.PREFIX and not self._may_match(collection, selector.identifier or ""):
                    continue
                async for document in self._database[collection].find({}):
                    doc_id = qualify(collection, document["_id"])
                    if selector.matches(doc_id, collection):
                        results.append((doc_id, document))
            return results
        except PyMongoError as exc:
            raise SourceUnavailableException(
                f"Failed to fetch documents for {selector.kind} '{selector.identifier}'",
                code="SOURCE_FETCH",
                context={"scope": str(selector.kind), "identifier": selector.identifier},
            ) from exc

    @staticmethod
    def _may_match(collection: str, prefix: str) -> bool:
        qualified = collection + ID_SEPARATOR
        return qualified.startswith(prefix) or prefix.startswith(qualified)

    async def subscribe(self, selector: ScopeSelector) -> MongoChangeSubscription:
        """Open a change stream starting at the current cluster time.

        Changes made after this call are delivered even if iteration starts
        later, e.g. after an initial load.
        """
        try:
            reply = await self._database.command("hello")
        except PyMongoError as exc:
            raise SourceUnavailableException(
                "Failed to open change subscription",
                code="SOURCE_WATCH",
                context={"scope": str(selector.kind), "identifier": selector.identifier},
            ) from exc
        subscription = MongoChangeSubscription(self._database, selector, start_at=reply.get("operationTime"))
        subscription.open()
        return subscription
