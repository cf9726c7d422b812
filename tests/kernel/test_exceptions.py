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
"""Tests for the docconf exception hierarchy."""

from __future__ import annotations

import pytest

from docconf.kernel.exceptions import (
    BusinessException,
    CannotCategorizeError,
    DocConfException,
    DocumentFormatError,
    DocumentFormatException,
    DuplicateKeyError,
    FlattenError,
    InfrastructureException,
    InternalStateViolationError,
    InvalidRootError,
    MandatoryConfigurationMissingError,
    MisplacedKeyError,
    ResourceNotFoundException,
    SourceUnavailableException,
    StoreException,
    UnsupportedLeafKindError,
)


class TestDocConfException:
    def test_basic_creation(self):
        exc = DocConfException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = DocConfException("not found", code="NOT_FOUND", context={"id": "app"})
        assert exc.code == "NOT_FOUND"
        assert exc.context["id"] == "app"

    def test_context_not_shared_between_instances(self):
        a = DocConfException("a")
        b = DocConfException("b")
        a.context["key"] = "value"
        assert b.context == {}


class TestHierarchy:
    @pytest.mark.parametrize(
        ("exc_cls", "base"),
        [
            (BusinessException, DocConfException),
            (InfrastructureException, DocConfException),
            (ResourceNotFoundException, BusinessException),
            (DocumentFormatException, BusinessException),
            (StoreException, BusinessException),
            (SourceUnavailableException, InfrastructureException),
            (FlattenError, DocumentFormatException),
            (InvalidRootError, FlattenError),
            (UnsupportedLeafKindError, FlattenError),
            (DuplicateKeyError, FlattenError),
            (DocumentFormatError, FlattenError),
            (CannotCategorizeError, StoreException),
            (MisplacedKeyError, StoreException),
            (MandatoryConfigurationMissingError, ResourceNotFoundException),
            (InternalStateViolationError, InfrastructureException),
        ],
    )
    def test_subclass(self, exc_cls, base):
        assert issubclass(exc_cls, base)

    def test_catch_all_flatten_failures(self):
        with pytest.raises(FlattenError):
            raise DuplicateKeyError("a:b")


class TestConcreteErrors:
    def test_invalid_root(self):
        exc = InvalidRootError("array")
        assert exc.code == "FLATTEN_INVALID_ROOT"
        assert exc.actual_kind == "array"
        assert "'array'" in str(exc)

    def test_unsupported_leaf_with_key(self):
        exc = UnsupportedLeafKindError("datetime", "cfg:when")
        assert exc.code == "FLATTEN_UNSUPPORTED_LEAF"
        assert str(exc) == "Unsupported value of kind 'datetime' was found at 'cfg:when'."

    def test_unsupported_leaf_without_key(self):
        assert str(UnsupportedLeafKindError("bytes")) == "Unsupported value of kind 'bytes' was found."

    def test_duplicate_key(self):
        exc = DuplicateKeyError("cfg:A:x")
        assert exc.code == "DUPLICATE_KEY"
        assert exc.context == {"key": "cfg:A:x"}

    def test_document_format(self):
        assert DocumentFormatError("bad json").code == "DOCUMENT_FORMAT"

    def test_cannot_categorize(self):
        exc = CannotCategorizeError("cfg")
        assert exc.code == "CANNOT_CATEGORIZE"
        assert exc.key == "cfg"

    def test_misplaced_key(self):
        exc = MisplacedKeyError("cfg:B:x", "cfg:A", "cfg:B")
        assert exc.code == "MISPLACED_KEY"
        assert exc.context == {"key": "cfg:B:x", "group_key": "cfg:A", "expected": "cfg:B"}

    def test_mandatory_configuration_missing(self):
        exc = MandatoryConfigurationMissingError("source 'x'", context={"scope": "DOCUMENT"})
        assert str(exc) == "Mandatory configuration not found for source 'x'"
        assert exc.code == "CONFIG_MISSING"
        assert exc.source == "source 'x'"
        assert exc.context["scope"] == "DOCUMENT"

    def test_internal_state_violation(self):
        exc = InternalStateViolationError("wrong shape", context={"data_type": "FlatMap"})
        assert exc.code == "INTERNAL_STATE"
        assert exc.context["data_type"] == "FlatMap"
