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
"""DocumentLoadOrchestrator — turns fetched documents into flat configuration.

DOCUMENT scope produces one un-partitioned :class:`FlatMap`. COLLECTION,
PREFIX and ALL scopes produce a :class:`GroupedStore` holding one group per
document, keyed ``<prefix>:<document id>``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, NoReturn

import structlog

from docconf.flat.flattener import flatten
from docconf.flat.keys import FlatMap, fold
from docconf.kernel.exceptions import (
    FlattenError,
    InternalStateViolationError,
    MandatoryConfigurationMissingError,
    StoreException,
)
from docconf.source.types import ChangeEvent, RawDocument, ScopeSelector, SearchScope
from docconf.store.categorizer import KeyCategorizer
from docconf.store.grouped import GroupedStore

if TYPE_CHECKING:
    from docconf.config.properties.source import DocumentSourceProperties
    from docconf.source.ports.outbound import DocumentSourcePort

logger = structlog.get_logger(__name__)

LoadedData = FlatMap | GroupedStore

DEFAULT_METADATA_FIELDS = ("_id", "@metadata")


class DocumentLoadOrchestrator:
    """Sequences full loads and single-document updates for one scope."""

    def __init__(
        self,
        source: DocumentSourcePort,
        scope: SearchScope,
        identifier: str | None = None,
        prefix: str = "",
        optional: bool = False,
        metadata_fields: Iterable[str] = DEFAULT_METADATA_FIELDS,
        description: str | None = None,
    ) -> None:
        self._source = source
        self._scope = scope
        self._identifier = identifier
        self._prefix = (prefix or "").strip()
        self._optional = optional
        self._metadata_fields = frozenset(metadata_fields)
        self._categorizer = KeyCategorizer.for_prefix(self._prefix)
        self._description = description or f"{scope} '{identifier}'"

    @classmethod
    def from_properties(
        cls,
        source: DocumentSourcePort,
        properties: DocumentSourceProperties,
        description: str | None = None,
    ) -> DocumentLoadOrchestrator:
        return cls(
            source,
            scope=properties.scope,
            identifier=properties.identifier,
            prefix=properties.prefix,
            optional=properties.optional,
            metadata_fields=properties.metadata_fields,
            description=description,
        )

    @property
    def scope(self) -> SearchScope:
        return self._scope

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def categorizer(self) -> KeyCategorizer:
        return self._categorizer

    @property
    def selector(self) -> ScopeSelector:
        return ScopeSelector(self._scope, self._identifier)

    # ------------------------------------------------------------------
    # Full load
    # ------------------------------------------------------------------

    async def load(self) -> LoadedData:
        """Fetch and flatten every document of the scope.

        Raises:
            MandatoryConfigurationMissingError: nothing was found and the
                source is not optional.
        """
        if not self._scope.is_grouped:
            return await self._load_document()
        return await self._load_multiple()

    async def _load_document(self) -> FlatMap:
        document = await self._source.fetch_document(self._identifier or "")
        if document is None:
            if not self._optional:
                self._mandatory_missing()
            logger.info("optional_configuration_absent", scope=str(self._scope), document_id=self._identifier)
            return FlatMap()

        data = self.flatten_document(document, self._prefix)
        logger.info(
            "configuration_loaded",
            scope=str(self._scope),
            document_id=self._identifier,
            prefix=self._prefix,
            keys=len(data),
        )
        return data

    async def _load_multiple(self) -> GroupedStore:
        documents = await self._source.fetch_documents(self.selector)
        if not documents and not self._optional:
            self._mandatory_missing()

        store = GroupedStore(self._categorizer)
        loaded = 0
        for doc_id, document in documents:
            if self._merge(store, doc_id, document):
                loaded += 1
        store.remove_empty_groups()

        logger.info(
            "configuration_loaded",
            scope=str(self._scope),
            identifier=self._identifier,
            prefix=self._prefix,
            documents=loaded,
            skipped=len(documents) - loaded,
            groups=len(store.groups()),
        )
        return store

    def _merge(self, store: GroupedStore, doc_id: str, document: RawDocument) -> bool:
        group_key = self.group_key_for(doc_id)
        if group_key is None:
            logger.error("configuration_categorize_failed", document_id=doc_id, prefix=self._prefix)
            return False
        try:
            store.replace_group(group_key, self.flatten_document(document, group_key))
        except (FlattenError, StoreException) as exc:
            logger.error(
                "configuration_document_skipped",
                document_id=doc_id,
                code=exc.code,
                error=str(exc),
            )
            return False
        logger.debug("configuration_document_loaded", document_id=doc_id, group=group_key)
        return True

    def _mandatory_missing(self) -> NoReturn:
        logger.critical(
            "mandatory_configuration_missing",
            source=self._description,
            scope=str(self._scope),
            identifier=self._identifier,
        )
        raise MandatoryConfigurationMissingError(
            self._description,
            context={"scope": str(self._scope), "identifier": self._identifier},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def group_key_for(self, doc_id: str) -> str | None:
        """Group of a document, or None when its id breaks categorization.

        An id containing the key delimiter would spill into a neighbouring
        group, so it is rejected like an uncategorizable key.
        """
        key_prefix = self._categorizer.document_group_key(doc_id)
        group_key = self._categorizer.categorize(key_prefix)
        if group_key is None or fold(group_key) != fold(key_prefix):
            return None
        return group_key

    def flatten_document(self, document: RawDocument, prefix: str) -> FlatMap:
        """Flatten a fetched document without its metadata fields.

        A document with no remaining fields contributes no keys at all.
        """
        if isinstance(document, Mapping):
            document = {name: value for name, value in document.items() if name not in self._metadata_fields}
            if not document:
                return FlatMap()
        return flatten(document, prefix)

    # ------------------------------------------------------------------
    # Incremental updates
    # ------------------------------------------------------------------

    async def fetch_change(self, event: ChangeEvent) -> RawDocument | None:
        """Fetch the current state of the document named by *event*."""
        return await self._source.fetch_document(event.id)

    def apply_change(self, current: LoadedData, event: ChangeEvent, document: RawDocument | None) -> LoadedData:
        """Fold one re-fetched document into the loaded data.

        A document that no longer exists contributes nothing, which removes
        its keys.

        Raises:
            InternalStateViolationError: *current* is not a GroupedStore
                although the scope is grouped.
            FlattenError: the new document content is malformed.
        """
        if not self._scope.is_grouped:
            data = FlatMap() if document is None else self.flatten_document(document, self._prefix)
            logger.info("configuration_reloaded", prefix=self._prefix, document_id=event.id, kind=str(event.kind))
            return data

        if not isinstance(current, GroupedStore):
            raise InternalStateViolationError(
                f"Expected grouped data for scope {self._scope}, found {type(current).__name__}",
                context={"data_type": type(current).__name__, "document_id": event.id},
            )

        group_key = self.group_key_for(event.id)
        if group_key is None:
            logger.error("configuration_categorize_failed", document_id=event.id, prefix=self._prefix)
            return current

        mapping = FlatMap() if document is None else self.flatten_document(document, group_key)
        current.replace_group(group_key, mapping)
        current.remove_empty_groups()
        logger.info("configuration_reloaded", prefix=group_key, document_id=event.id, kind=str(event.kind))
        return current

    async def refresh(self, current: LoadedData, event: ChangeEvent) -> LoadedData:
        """Fetch and apply one change in a single step."""
        return self.apply_change(current, event, await self.fetch_change(event))
