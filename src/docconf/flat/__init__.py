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
"""Document flattening and flat key helpers."""

from docconf.flat.flattener import FieldList, PathFlattener, flatten, flatten_json, parse_document
from docconf.flat.keys import KEY_DELIMITER, FlatMap, FlatValue, join_path

__all__ = [
    "KEY_DELIMITER",
    "FieldList",
    "FlatMap",
    "FlatValue",
    "PathFlattener",
    "flatten",
    "flatten_json",
    "join_path",
    "parse_document",
]
