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
"""docconf — flat, incrementally updated configuration from document databases."""

from docconf.core.config import Config, config_properties
from docconf.flat.flattener import PathFlattener, flatten, flatten_json
from docconf.flat.keys import KEY_DELIMITER, FlatMap
from docconf.provider.orchestrator import DocumentLoadOrchestrator
from docconf.provider.provider import DocumentConfigurationProvider
from docconf.source.types import ChangeEvent, ChangeKind, ScopeSelector, SearchScope
from docconf.store.categorizer import KeyCategorizer
from docconf.store.grouped import GroupedStore, ValidationResult

__version__ = "0.1.0"

__all__ = [
    "KEY_DELIMITER",
    "ChangeEvent",
    "ChangeKind",
    "Config",
    "DocumentConfigurationProvider",
    "DocumentLoadOrchestrator",
    "FlatMap",
    "GroupedStore",
    "KeyCategorizer",
    "PathFlattener",
    "ScopeSelector",
    "SearchScope",
    "ValidationResult",
    "config_properties",
    "flatten",
    "flatten_json",
]
