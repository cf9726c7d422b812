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
"""'docconf flatten' — show the flat keys of a JSON document."""

from __future__ import annotations

import json
from pathlib import Path

import click

from docconf.cli.console import console, print_flat_table
from docconf.flat.flattener import flatten_json
from docconf.kernel.exceptions import FlattenError


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--prefix", default="", help="Prefix placed in front of every key.")
@click.option("--json", "as_json", is_flag=True, help="Print a JSON object instead of a table.")
def flatten_command(path: Path, prefix: str, as_json: bool) -> None:
    """Flatten the JSON document at PATH."""
    try:
        data = flatten_json(path.read_bytes(), prefix.strip())
    except FlattenError as exc:
        console.print(f"[error]✗[/error] {path}: {exc}")
        raise SystemExit(1) from None

    if as_json:
        click.echo(json.dumps(data.to_dict(), indent=2))
        return
    print_flat_table(data.items(), title=str(path))
