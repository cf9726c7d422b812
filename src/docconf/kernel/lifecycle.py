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
"""Lifecycle protocol for components that own background work.

Providers that subscribe to change feeds implement start() and stop() so a
host application can open and release their subscriptions in order.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Lifecycle(Protocol):
    """Start/stop contract for long-lived components."""

    async def start(self) -> None:
        """Perform the initial load and open any change subscription.

        Raise on failure so the host can abort startup.
        """
        ...

    async def stop(self) -> None:
        """Close subscriptions and wait for background tasks to finish."""
        ...
