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
"""docconf CLI — inspect flattened configuration documents."""

from __future__ import annotations

import click


@click.group()
@click.version_option(package_name="docconf")
def cli() -> None:
    """docconf — flat configuration from document databases."""


from docconf.cli.flatten import flatten_command
from docconf.cli.load import load_command

cli.add_command(flatten_command, name="flatten")
cli.add_command(load_command, name="load")
