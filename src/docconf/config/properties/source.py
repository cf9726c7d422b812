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
"""Document source configuration properties."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from docconf.core.config import config_properties
from docconf.source.types import SearchScope


@config_properties(prefix="docconf.source")
class DocumentSourceProperties(BaseModel):
    """Where configuration documents come from (docconf.source.*)."""

    uri: str = "mongodb://localhost:27017"
    database: str | None = None
    scope: SearchScope = SearchScope.DOCUMENT
    identifier: str | None = None
    prefix: str = ""
    optional: bool = False
    reload_on_change: bool = False
    reconnect_delay: float = Field(default=1.0, ge=0)
    metadata_fields: list[str] = Field(default_factory=lambda: ["_id", "@metadata"])

    @field_validator("scope", mode="before")
    @classmethod
    def _normalise_scope(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("prefix", mode="before")
    @classmethod
    def _trim_prefix(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _require_identifier(self) -> DocumentSourceProperties:
        if self.scope is not SearchScope.ALL and not self.identifier:
            raise ValueError(f"identifier is required for scope {self.scope}")
        return self
