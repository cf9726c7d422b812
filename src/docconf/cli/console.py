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
"""Shared Rich console and table rendering for CLI output."""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

DOCCONF_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "dim": "dim",
})

console = Console(theme=DOCCONF_THEME)


def print_flat_table(items: Iterable[tuple[str, str | None]], title: str) -> int:
    """Print flat key/value pairs as a table. Returns the number of rows."""
    table = Table(title=title, border_style="dim")
    table.add_column("Key", style="info", no_wrap=True)
    table.add_column("Value")

    rows = 0
    for key, value in items:
        table.add_row(key, "[dim]<empty>[/dim]" if value is None else value)
        rows += 1

    console.print(table)
    return rows
