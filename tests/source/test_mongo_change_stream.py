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
"""Tests for MongoChangeSubscription — resume points and stream failures."""

from __future__ import annotations

import asyncio

import pytest
from bson import Timestamp
from pymongo.errors import AutoReconnect, OperationFailure

from docconf.config.properties.source import DocumentSourceProperties
from docconf.kernel.exceptions import SourceUnavailableException
from docconf.provider.provider import DocumentConfigurationProvider
from docconf.source.adapters.mongodb import MongoDocumentSource
from docconf.source.types import ChangeEvent, ChangeKind, ScopeSelector, SearchScope

OPERATION_TIME = Timestamp(1_700_000_000, 1)

# ---------------------------------------------------------------------------
# Recording doubles
# ---------------------------------------------------------------------------


def _change(token: str, operation: str, key: str, collection: str = "services") -> dict:
    return {
        "_id": {"_data": token},
        "operationType": operation,
        "ns": {"db": "settings", "coll": collection},
        "documentKey": {"_id": key},
    }


class RecordingStream:
    """Plays back scripted changes; waits forever once the script is used up."""

    def __init__(self, script: list) -> None:
        self._script = list(script)
        self.closed = False

    async def next(self) -> dict:
        if not self._script:
            await asyncio.Event().wait()
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class RecordingDatabase:
    name = "settings"

    def __init__(self, *scripts: list, hello: dict | Exception | None = None) -> None:
        self._scripts = list(scripts)
        self._hello = hello if hello is not None else {"ok": 1.0, "operationTime": OPERATION_TIME}
        self.watch_calls: list[tuple[list, dict]] = []
        self.streams: list[RecordingStream] = []

    def watch(self, pipeline, **options) -> RecordingStream:
        self.watch_calls.append((pipeline, options))
        stream = RecordingStream(self._scripts.pop(0) if self._scripts else [])
        self.streams.append(stream)
        return stream

    async def command(self, name: str) -> dict:
        if isinstance(self._hello, Exception):
            raise self._hello
        return self._hello


SERVICES = ScopeSelector(SearchScope.COLLECTION, "services")


# ===========================================================================
# 1. Opening the stream
# ===========================================================================


class TestSubscribe:
    async def test_stream_opens_at_subscription_time(self):
        database = RecordingDatabase()
        await MongoDocumentSource(database).subscribe(SERVICES)

        assert database.watch_calls == [
            ([{"$match": {"ns.coll": "services"}}], {"start_at_operation_time": OPERATION_TIME})
        ]

    async def test_without_operation_time_stream_starts_now(self):
        database = RecordingDatabase(hello={"ok": 1.0})
        await MongoDocumentSource(database).subscribe(ScopeSelector(SearchScope.ALL))
        assert database.watch_calls == [([], {})]

    async def test_hello_failure_is_source_unavailable(self):
        database = RecordingDatabase(hello=OperationFailure("not a replica set"))
        with pytest.raises(SourceUnavailableException) as exc_info:
            await MongoDocumentSource(database).subscribe(SERVICES)
        assert exc_info.value.code == "SOURCE_WATCH"
        assert database.watch_calls == []

    async def test_provider_watches_before_initial_load(self):
        class LoadingSource(MongoDocumentSource):
            watches_at_load: int | None = None

            async def fetch_documents(self, selector):
                self.watches_at_load = len(database.watch_calls)
                return [("services/app", {"_id": "app", "name": "demo"})]

        database = RecordingDatabase()
        source = LoadingSource(database)
        properties = DocumentSourceProperties(
            scope="COLLECTION", identifier="services", database="settings", reload_on_change=True
        )
        provider = DocumentConfigurationProvider(source, properties)

        await provider.start()
        try:
            assert source.watches_at_load == 1
            assert provider.get("services/app:name") == "demo"
        finally:
            await provider.stop()
        assert database.streams[0].closed


# ===========================================================================
# 2. Iteration and failures
# ===========================================================================


class TestIteration:
    async def test_events_outside_scope_are_skipped(self):
        database = RecordingDatabase(
            [_change("t1", "insert", "x", collection="other"), _change("t2", "update", "app")]
        )
        subscription = await MongoDocumentSource(database).subscribe(SERVICES)
        assert await anext(subscription) == ChangeEvent("services/app", ChangeKind.PUT, "services")

    async def test_stream_failure_is_wrapped_and_resumed(self):
        database = RecordingDatabase(
            [_change("t1", "insert", "app"), AutoReconnect("connection reset")],
            [_change("t2", "delete", "app")],
        )
        subscription = await MongoDocumentSource(database).subscribe(SERVICES)

        assert await anext(subscription) == ChangeEvent("services/app", ChangeKind.PUT, "services")
        with pytest.raises(SourceUnavailableException) as exc_info:
            await anext(subscription)
        assert exc_info.value.code == "SOURCE_WATCH"
        assert database.streams[0].closed

        assert await anext(subscription) == ChangeEvent("services/app", ChangeKind.DELETE, "services")
        assert database.watch_calls[1][1] == {"resume_after": {"_data": "t1"}}

    async def test_close_ends_iteration(self):
        database = RecordingDatabase()
        subscription = await MongoDocumentSource(database).subscribe(SERVICES)
        await subscription.close()

        assert database.streams[0].closed
        assert [event async for event in subscription] == []
