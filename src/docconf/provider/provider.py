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
"""DocumentConfigurationProvider — flat configuration view over a document source."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from docconf.config.properties.source import DocumentSourceProperties
from docconf.core.config import Config
from docconf.flat.keys import KEY_DELIMITER, FlatMap, FlatValue, fold
from docconf.kernel.exceptions import DocConfException, InternalStateViolationError
from docconf.provider.orchestrator import DocumentLoadOrchestrator, LoadedData
from docconf.source.ports.outbound import ChangeSubscription, DocumentSourcePort
from docconf.source.types import ChangeEvent
from docconf.store.grouped import GroupedStore

logger = structlog.get_logger(__name__)


def _child_sort_key(segment: str) -> tuple[int, int, str]:
    # Numeric segments (array indexes) first, in numeric order.
    if segment.isascii() and segment.isdecimal():
        return (0, int(segment), "")
    return (1, 0, segment.lower())


class DocumentConfigurationProvider:
    """Loads configuration documents and keeps them current.

    Implements the :class:`~docconf.kernel.lifecycle.Lifecycle` protocol:
    ``start()`` performs the initial load and, when ``reload_on_change`` is
    set, consumes change events in one background task. Every mutation of
    the loaded data happens under a single lock; fetches happen outside it.

    Usage::

        provider = DocumentConfigurationProvider(source, properties)
        await provider.start()
        provider.get("cfg:app:name")
        await provider.stop()
    """

    def __init__(self, source: DocumentSourcePort, properties: DocumentSourceProperties) -> None:
        self._source = source
        self._properties = properties
        self._orchestrator = DocumentLoadOrchestrator.from_properties(source, properties, description=str(self))
        self._data: LoadedData = FlatMap()
        self._lock = asyncio.Lock()
        self._subscription: ChangeSubscription | None = None
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: Config, source: DocumentSourcePort | None = None) -> DocumentConfigurationProvider:
        """Build a provider from the ``docconf.source`` section.

        Without an explicit *source*, a MongoDB source is created from the
        configured URI and database.
        """
        properties = config.bind(DocumentSourceProperties)
        if source is None:
            from docconf.source.adapters.mongodb import MongoDocumentSource

            source = MongoDocumentSource.from_uri(properties.uri, properties.database)
        return cls(source, properties)

    @property
    def properties(self) -> DocumentSourceProperties:
        return self._properties

    @property
    def orchestrator(self) -> DocumentLoadOrchestrator:
        return self._orchestrator

    @property
    def data(self) -> LoadedData:
        return self._data

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def __str__(self) -> str:
        database = self._properties.database or getattr(self._source, "database_name", None) or "default"
        marker = "Optional" if self._properties.optional else "Required"
        return f"{type(self).__name__} for '{self._source}'/{database} ({marker})"

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Reload everything, replacing the current data wholesale."""
        data = await self._orchestrator.load()
        async with self._lock:
            self._data = data

    async def apply(self, event: ChangeEvent) -> None:
        """Apply one change event. Events other than PUT/DELETE are ignored."""
        if not event.triggers_reload:
            return
        document = await self._orchestrator.fetch_change(event)
        async with self._lock:
            self._data = self._orchestrator.apply_change(self._data, event, document)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._properties.reload_on_change and self._subscription is None:
            # Subscribe first so changes made during the initial load queue up.
            self._subscription = await self._source.subscribe(self._orchestrator.selector)
        try:
            await self.load()
        except BaseException:
            await self._close_subscription()
            raise

        if self._subscription is not None and self._task is None:
            self._task = asyncio.create_task(self._consume(self._subscription))
            self._task.add_done_callback(self._consume_done)

    async def stop(self) -> None:
        await self._close_subscription()
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

    async def _close_subscription(self) -> None:
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            await subscription.close()

    async def _consume(self, subscription: ChangeSubscription) -> None:
        events = aiter(subscription)
        while True:
            try:
                event = await anext(events)
            except StopAsyncIteration:
                return
            except DocConfException as exc:
                logger.warning(
                    "configuration_change_stream_error",
                    code=exc.code,
                    error=str(exc),
                    retry_in=self._properties.reconnect_delay,
                )
                await asyncio.sleep(self._properties.reconnect_delay)
                continue

            logger.debug("configuration_change_received", document_id=event.id, kind=str(event.kind))
            try:
                await self.apply(event)
            except InternalStateViolationError as exc:
                logger.error(
                    "configuration_storage_error",
                    document_id=event.id,
                    data_type=exc.context.get("data_type"),
                    error=str(exc),
                )
            except DocConfException as exc:
                logger.error("configuration_reload_failed", document_id=event.id, code=exc.code, error=str(exc))

    @staticmethod
    def _consume_done(task: asyncio.Task[None]) -> None:
        if not task.cancelled():
            exc = task.exception()
            if exc is not None:
                logger.error("configuration_change_loop_failed", error=str(exc), exc_info=exc)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def try_get(self, key: str) -> tuple[bool, FlatValue]:
        if isinstance(self._data, GroupedStore):
            return self._data.try_get(key)
        if key in self._data:
            return True, self._data[key]
        return False, None

    def get(self, key: str, default: FlatValue = None) -> FlatValue:
        found, value = self.try_get(key)
        return value if found else default

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self._data, GroupedStore):
            return self._data.to_flat_map().to_dict()
        return self._data.to_dict()

    def child_keys(self, parent_path: str | None = None) -> list[str]:
        """Distinct immediate child segments below *parent_path*.

        Numeric segments come first in numeric order, the rest follow in
        case-insensitive order.
        """
        prefix = fold(parent_path + KEY_DELIMITER) if parent_path else ""
        depth = parent_path.count(KEY_DELIMITER) + 1 if parent_path else 0
        children: dict[str, str] = {}
        for key in self._data.keys():
            if not fold(key).startswith(prefix):
                continue
            segment = key.split(KEY_DELIMITER, depth + 1)[depth]
            children.setdefault(fold(segment), segment)
        return sorted(children.values(), key=_child_sort_key)
