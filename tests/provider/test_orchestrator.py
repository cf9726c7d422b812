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
"""Tests for DocumentLoadOrchestrator — scopes, failures and updates."""

from __future__ import annotations

from datetime import datetime

import pytest
from structlog.testing import capture_logs

from docconf.flat.keys import FlatMap
from docconf.kernel.exceptions import (
    InternalStateViolationError,
    MandatoryConfigurationMissingError,
    UnsupportedLeafKindError,
)
from docconf.provider.orchestrator import DocumentLoadOrchestrator
from docconf.source.adapters.memory import InMemoryDocumentSource
from docconf.source.types import ChangeEvent, ChangeKind, ScopeSelector, SearchScope
from docconf.store.grouped import GroupedStore

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def source() -> InMemoryDocumentSource:
    return InMemoryDocumentSource(
        {
            "docs": {
                "A": {"x": "1"},
                "B": {"x": "2"},
                "C": {},
            },
            "other": {
                "app/settings": {"_id": "app/settings", "logging": {"level": "debug"}},
                "app/limits": {"max": 10, "tags": []},
            },
        }
    )


def _orchestrator(source, scope, identifier=None, prefix="cfg", optional=False):
    return DocumentLoadOrchestrator(source, scope, identifier=identifier, prefix=prefix, optional=optional)


# ===========================================================================
# Document scope
# ===========================================================================


class TestDocumentScope:
    async def test_loads_flat_map(self, source):
        data = await _orchestrator(source, SearchScope.DOCUMENT, "app/settings").load()
        assert isinstance(data, FlatMap)
        assert data == {"cfg:logging:level": "debug"}

    async def test_metadata_fields_are_stripped(self, source):
        data = await _orchestrator(source, SearchScope.DOCUMENT, "app/settings", prefix="").load()
        assert data == {"logging:level": "debug"}

    async def test_missing_mandatory_document_fails(self, source):
        orchestrator = _orchestrator(source, SearchScope.DOCUMENT, "nope")
        with capture_logs() as logs:
            with pytest.raises(MandatoryConfigurationMissingError) as exc_info:
                await orchestrator.load()
        assert exc_info.value.code == "CONFIG_MISSING"
        assert any(entry["log_level"] == "critical" for entry in logs)

    async def test_missing_optional_document_is_empty(self, source):
        data = await _orchestrator(source, SearchScope.DOCUMENT, "nope", optional=True).load()
        assert data == {}

    async def test_malformed_single_document_is_fatal(self):
        source = InMemoryDocumentSource({"docs": {"bad": {"when": datetime(2026, 1, 1)}}})
        with pytest.raises(UnsupportedLeafKindError):
            await _orchestrator(source, SearchScope.DOCUMENT, "bad").load()


# ===========================================================================
# Multi-document scopes
# ===========================================================================


class TestCollectionScope:
    async def test_one_group_per_document(self, source):
        store = await _orchestrator(source, SearchScope.COLLECTION, "docs").load()
        assert isinstance(store, GroupedStore)
        assert sorted(store.groups()) == ["cfg:A", "cfg:B"]
        assert store.group("cfg:A") == {"cfg:A:x": "1"}
        assert store.group("cfg:B") == {"cfg:B:x": "2"}

    async def test_empty_document_never_creates_group(self, source):
        store = await _orchestrator(source, SearchScope.COLLECTION, "docs").load()
        assert store.group("cfg:C") is None
        assert store.validate().is_invalid is False

    async def test_without_prefix_documents_are_top_level_groups(self, source):
        store = await _orchestrator(source, SearchScope.COLLECTION, "docs", prefix="").load()
        assert sorted(store.groups()) == ["A", "B"]
        assert store.get("A:x") == "1"

    async def test_empty_collection_is_mandatory_missing(self, source):
        with pytest.raises(MandatoryConfigurationMissingError):
            await _orchestrator(source, SearchScope.COLLECTION, "missing").load()

    async def test_empty_optional_collection_is_empty_store(self, source):
        store = await _orchestrator(source, SearchScope.COLLECTION, "missing", optional=True).load()
        assert store.groups() == []

    async def test_bad_document_is_skipped(self):
        source = InMemoryDocumentSource(
            {"docs": {"good": {"a": "1"}, "bad": {"blob": b"\x00"}, "dup": {"k": 1, "K": 2}}}
        )
        with capture_logs() as logs:
            store = await _orchestrator(source, SearchScope.COLLECTION, "docs").load()

        assert store.groups() == ["cfg:good"]
        skipped = [entry for entry in logs if entry["event"] == "configuration_document_skipped"]
        assert sorted(entry["document_id"] for entry in skipped) == ["bad", "dup"]
        assert {entry["code"] for entry in skipped} == {"FLATTEN_UNSUPPORTED_LEAF", "DUPLICATE_KEY"}

    async def test_uncategorizable_document_id_is_skipped(self):
        source = InMemoryDocumentSource({"docs": {"ok": {"a": "1"}, "a:b": {"a": "2"}}})
        with capture_logs() as logs:
            store = await _orchestrator(source, SearchScope.COLLECTION, "docs").load()

        assert store.groups() == ["cfg:ok"]
        assert any(
            entry["event"] == "configuration_categorize_failed" and entry["document_id"] == "a:b" for entry in logs
        )


class TestPrefixAndAllScopes:
    async def test_prefix_scope(self, source):
        store = await _orchestrator(source, SearchScope.PREFIX, "app/").load()
        assert sorted(store.groups()) == ["cfg:app/limits", "cfg:app/settings"]
        assert store.get("cfg:app/limits:max") == "10"
        assert store.try_get("cfg:app/limits:tags") == (True, None)

    async def test_prefix_without_matches_is_mandatory_missing(self, source):
        with pytest.raises(MandatoryConfigurationMissingError):
            await _orchestrator(source, SearchScope.PREFIX, "zzz").load()

    async def test_all_scope(self, source):
        store = await _orchestrator(source, SearchScope.ALL, prefix="root:sub").load()
        assert store.categorizer.segments == 3
        assert sorted(store.groups()) == [
            "root:sub:A",
            "root:sub:B",
            "root:sub:app/limits",
            "root:sub:app/settings",
        ]

    def test_selector_follows_scope(self, source):
        orchestrator = _orchestrator(source, SearchScope.PREFIX, "app/")
        assert orchestrator.selector == ScopeSelector(SearchScope.PREFIX, "app/")


# ===========================================================================
# Incremental updates
# ===========================================================================


class TestApplyChange:
    async def test_put_replaces_one_group(self, source):
        orchestrator = _orchestrator(source, SearchScope.COLLECTION, "docs")
        store = await orchestrator.load()

        await source.put("docs", "A", {"x": "10", "y": {"z": True}})
        result = await orchestrator.refresh(store, ChangeEvent("A", ChangeKind.PUT, "docs"))

        assert result is store
        assert store.group("cfg:A") == {"cfg:A:x": "10", "cfg:A:y:z": "true"}
        assert store.group("cfg:B") == {"cfg:B:x": "2"}

    async def test_delete_removes_group(self, source):
        orchestrator = _orchestrator(source, SearchScope.COLLECTION, "docs")
        store = await orchestrator.load()

        await source.delete("B")
        await orchestrator.refresh(store, ChangeEvent("B", ChangeKind.DELETE, "docs"))

        assert store.groups() == ["cfg:A"]

    async def test_new_document_adds_group(self, source):
        orchestrator = _orchestrator(source, SearchScope.COLLECTION, "docs")
        store = await orchestrator.load()

        await source.put("docs", "D", {"x": "4"})
        await orchestrator.refresh(store, ChangeEvent("D", ChangeKind.PUT, "docs"))

        assert store.get("cfg:D:x") == "4"

    async def test_document_emptied_removes_group(self, source):
        orchestrator = _orchestrator(source, SearchScope.COLLECTION, "docs")
        store = await orchestrator.load()

        store = orchestrator.apply_change(store, ChangeEvent("A", ChangeKind.PUT), {"_id": "A"})

        assert store.group("cfg:A") is None

    async def test_document_scope_replaces_whole_map(self, source):
        orchestrator = _orchestrator(source, SearchScope.DOCUMENT, "app/settings")
        await orchestrator.load()

        data = orchestrator.apply_change(FlatMap(), ChangeEvent("app/settings", ChangeKind.PUT), {"a": [1]})

        assert data == {"cfg:a:0": "1"}

    async def test_document_scope_delete_empties_map(self, source):
        orchestrator = _orchestrator(source, SearchScope.DOCUMENT, "app/settings")
        current = await orchestrator.load()

        data = orchestrator.apply_change(current, ChangeEvent("app/settings", ChangeKind.DELETE), None)

        assert data == {}

    def test_flat_map_for_grouped_scope_is_internal_violation(self, source):
        orchestrator = _orchestrator(source, SearchScope.COLLECTION, "docs")
        with pytest.raises(InternalStateViolationError) as exc_info:
            orchestrator.apply_change(FlatMap(), ChangeEvent("A", ChangeKind.PUT), {"x": "1"})
        assert exc_info.value.context["data_type"] == "FlatMap"

    async def test_uncategorizable_update_leaves_store_unchanged(self, source):
        orchestrator = _orchestrator(source, SearchScope.COLLECTION, "docs")
        store = await orchestrator.load()

        with capture_logs() as logs:
            orchestrator.apply_change(store, ChangeEvent("x:y", ChangeKind.PUT), {"a": "1"})

        assert sorted(store.groups()) == ["cfg:A", "cfg:B"]
        assert logs[0]["event"] == "configuration_categorize_failed"
