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
"""'docconf load' — load a configured source once and print its namespace."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from docconf.cli.console import console, print_flat_table
from docconf.core.config import Config
from docconf.kernel.exceptions import DocConfException
from docconf.logging.structlog_adapter import StructlogAdapter
from docconf.provider.provider import DocumentConfigurationProvider


async def _load(provider: DocumentConfigurationProvider) -> None:
    await provider.load()


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("docconf.yaml"),
    show_default=True,
    help="YAML or TOML file holding the docconf.source section.",
)
@click.option("--profile", "profiles", multiple=True, help="Profile overlay to merge (repeatable).")
def load_command(config_path: Path, profiles: tuple[str, ...]) -> None:
    """Load configuration documents and print the flat keys."""
    config = Config.from_file(config_path, active_profiles=list(profiles))
    StructlogAdapter().configure(config)

    try:
        provider = DocumentConfigurationProvider.from_config(config)
    except ValueError as exc:
        console.print(f"[error]✗[/error] {exc}")
        raise SystemExit(1) from None

    try:
        asyncio.run(_load(provider))
    except DocConfException as exc:
        console.print(f"[error]✗[/error] {exc}")
        raise SystemExit(1) from None

    rows = print_flat_table(sorted(provider.to_dict().items()), title=str(provider))
    console.print(f"[success]✓[/success] {rows} keys loaded")
