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
"""Tests for KeyCategorizer — group identity from leading key segments."""

from __future__ import annotations

import pytest

from docconf.store.categorizer import KeyCategorizer


class TestForPrefix:
    def test_no_prefix_uses_one_segment(self):
        assert KeyCategorizer.for_prefix("").segments == 1
        assert KeyCategorizer.for_prefix(None).segments == 1
        assert KeyCategorizer.for_prefix("   ").segments == 1

    def test_single_segment_prefix_adds_document_segment(self):
        assert KeyCategorizer.for_prefix("cfg").segments == 2

    def test_each_delimiter_adds_a_segment(self):
        assert KeyCategorizer.for_prefix("a:b:c").segments == 4

    def test_prefix_is_trimmed(self):
        assert KeyCategorizer.for_prefix("  cfg ").prefix == "cfg"

    def test_segments_must_be_positive(self):
        with pytest.raises(ValueError):
            KeyCategorizer(segments=0)


class TestCategorize:
    def test_takes_leading_segments(self):
        categorizer = KeyCategorizer.for_prefix("cfg")
        assert categorizer.categorize("cfg:A:x") == "cfg:A"
        assert categorizer.categorize("cfg:A:x:y:z") == "cfg:A"

    def test_key_with_exactly_k_segments_is_its_own_group(self):
        assert KeyCategorizer.for_prefix("cfg").categorize("cfg:A") == "cfg:A"

    def test_too_few_segments_cannot_be_categorized(self):
        categorizer = KeyCategorizer.for_prefix("a:b")
        assert categorizer.categorize("a:b") is None
        assert categorizer.categorize("a") is None

    def test_single_segment_groups(self):
        categorizer = KeyCategorizer()
        assert categorizer.categorize("app:x") == "app"
        assert categorizer.categorize("app") == "app"

    def test_empty_segments_count(self):
        assert KeyCategorizer(segments=2).categorize("::x") == ":"

    def test_is_deterministic(self):
        categorizer = KeyCategorizer.for_prefix("cfg")
        keys = ["cfg:A:x", "cfg:B", "cfg:C:0:1"]
        assert [categorizer(k) for k in keys] == [categorizer(k) for k in keys]

    def test_is_immutable(self):
        categorizer = KeyCategorizer.for_prefix("cfg")
        with pytest.raises(AttributeError):
            categorizer.segments = 3  # type: ignore[misc]


class TestDocumentGroupKey:
    def test_with_prefix(self):
        assert KeyCategorizer.for_prefix("cfg").document_group_key("A") == "cfg:A"

    def test_without_prefix(self):
        assert KeyCategorizer.for_prefix("").document_group_key("A") == "A"
