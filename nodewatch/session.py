#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Interface to the Session Service.

The Session Service performs the actual remote protocol work (browsing,
attribute reads, subscriptions, session management). The explorer core
only talks to it through this narrow contract. Failures surface as
ServiceError.
"""

from abc import ABC, abstractmethod
from typing import Callable, List

from nodewatch.models import AttributeRecord, ChildRef, SessionStatistics, TableEvent

TableListener = Callable[[TableEvent], None]
Unsubscribe = Callable[[], None]


class SessionService(ABC):
    """Narrow async interface the explorer core depends on."""

    @abstractmethod
    async def list_children(self, node_id: str) -> List[ChildRef]:
        """Return the ordered children of node_id."""

    @abstractmethod
    async def read_attributes(self, node_id: str) -> List[AttributeRecord]:
        """Return the ordered attributes of node_id for the detail panel."""

    @abstractmethod
    async def monitor(self, node_id: str) -> None:
        """Start monitoring node_id; it then appears in the items table."""

    @abstractmethod
    async def unmonitor(self, node_id: str) -> None:
        """Stop monitoring node_id."""

    @abstractmethod
    def watch_subscribed_items(self, listener: TableListener) -> Unsubscribe:
        """Deliver subscribed-items Snapshot/Delta events to listener."""

    @abstractmethod
    def watch_alarms(self, listener: TableListener) -> Unsubscribe:
        """Start alarm monitoring and deliver alarm events to listener."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the session."""

    @abstractmethod
    def statistics(self) -> SessionStatistics:
        """Return the current transport counters."""
