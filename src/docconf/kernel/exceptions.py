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
"""Unified exception hierarchy for docconf.

All library exceptions inherit from DocConfException, so callers can catch a
single base type or target a specific failure.

Categories:
- BusinessException: malformed documents and store contract violations
- InfrastructureException: source and internal state failures
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Base Exception
# =============================================================================


class DocConfException(Exception):
    """Base exception for all docconf errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "DUPLICATE_KEY").
        context: Arbitrary key-value pairs describing the failure.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict[str, Any] = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(DocConfException):
    """Document content or store usage that breaks a contract."""


class ResourceNotFoundException(BusinessException):
    """Requested resource does not exist."""


class DocumentFormatException(BusinessException):
    """A document cannot be turned into flat configuration."""


class StoreException(BusinessException):
    """A grouped store operation was rejected."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(DocConfException):
    """Document source or internal state failures."""


class SourceUnavailableException(InfrastructureException):
    """The document source could not be reached or queried."""


# =============================================================================
# Flattening
# =============================================================================


class FlattenError(DocumentFormatException):
    """Base class for every error raised while flattening a document."""


class InvalidRootError(FlattenError):
    """The top-level element of a document is not an object."""

    def __init__(self, actual_kind: str) -> None:
        super().__init__(
            f"Top-level element must be an object. Instead, '{actual_kind}' was found.",
            code="FLATTEN_INVALID_ROOT",
            context={"actual_kind": actual_kind},
        )
        self.actual_kind = actual_kind


class UnsupportedLeafKindError(FlattenError):
    """A leaf value is neither a scalar nor a container."""

    def __init__(self, kind: str, key: str | None = None) -> None:
        super().__init__(
            f"Unsupported value of kind '{kind}' was found" + (f" at '{key}'." if key else "."),
            code="FLATTEN_UNSUPPORTED_LEAF",
            context={"kind": kind, "key": key},
        )
        self.kind = kind
        self.key = key


class DuplicateKeyError(FlattenError):
    """A flat key was produced or inserted twice."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"A duplicate key '{key}' was found.",
            code="DUPLICATE_KEY",
            context={"key": key},
        )
        self.key = key


class DocumentFormatError(FlattenError):
    """Raw document text could not be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="DOCUMENT_FORMAT")


# =============================================================================
# Grouped store
# =============================================================================


class CannotCategorizeError(StoreException):
    """A key has fewer segments than the categorizer requires."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"The given key '{key}' could not be categorized.",
            code="CANNOT_CATEGORIZE",
            context={"key": key},
        )
        self.key = key


class MisplacedKeyError(StoreException):
    """A key was offered to a group it does not categorize to."""

    def __init__(self, key: str, group_key: str, expected: str | None) -> None:
        super().__init__(
            f"The key '{key}' belongs to group '{expected}', not '{group_key}'.",
            code="MISPLACED_KEY",
            context={"key": key, "group_key": group_key, "expected": expected},
        )
        self.key = key
        self.group_key = group_key
        self.expected = expected


# =============================================================================
# Loading
# =============================================================================


class MandatoryConfigurationMissingError(ResourceNotFoundException):
    """A non-optional source produced no document."""

    def __init__(self, source: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"Mandatory configuration not found for {source}",
            code="CONFIG_MISSING",
            context=context,
        )
        self.source = source


class InternalStateViolationError(InfrastructureException):
    """The provider holds data of the wrong shape for its scope."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="INTERNAL_STATE", context=context)
