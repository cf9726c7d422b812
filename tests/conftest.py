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
"""Shared fixtures for the docconf test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo structlog configuration made by a test."""
    yield
    structlog.reset_defaults()


async def eventually(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Wait until *predicate* holds, yielding to background tasks meanwhile."""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)
