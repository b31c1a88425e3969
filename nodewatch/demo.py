#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
In-memory Session Service used by the demo dashboard and the tests.

Serves a small synthetic address space (a server folder and a device set of
boilers and pumps), simulates latency, drifts variable values on a ticker
and publishes monitored items and alarm conditions as table events.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from nodewatch.errors import ServiceError
from nodewatch.models import (
    ROOT_LABEL,
    ROOT_NODE_ID,
    AttributeRecord,
    ChildRef,
    Delta,
    SessionStatistics,
    Snapshot,
    TableRow,
    make_row,
)
from nodewatch.session import SessionService, TableListener, Unsubscribe

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 1.0
TEMPERATURE_ALARM_LIMIT = 80.0
FLAKY_NODE_ID = "ns=1;s=Diagnostics"

ITEM_HEADERS = ("Node", "Name", "Value", "Status", "Timestamp")
ALARM_HEADERS = ("EventType", "ConditionId", "Message", "Severity", "E!AC", "Comment")


@dataclass
class DemoNode:
    """A node of the synthetic address space."""
    node_id: str
    name: str
    node_class: str = "Object"
    description: str = ""
    children: List[str] = field(default_factory=list)
    value: Optional[float] = None
    unit: str = ""


def _build_address_space() -> Dict[str, DemoNode]:
    nodes: Dict[str, DemoNode] = {}

    def add(parent: Optional[str], node: DemoNode) -> DemoNode:
        nodes[node.node_id] = node
        if parent is not None:
            nodes[parent].children.append(node.node_id)
        return node

    add(None, DemoNode(ROOT_NODE_ID, ROOT_LABEL, "Object", "The root of the address space"))
    add(ROOT_NODE_ID, DemoNode("i=85", "Objects", description="Instances"))
    add(ROOT_NODE_ID, DemoNode("i=86", "Types", description="Type definitions"))
    add(ROOT_NODE_ID, DemoNode("i=87", "Views"))
    add("i=86", DemoNode("i=88", "ObjectTypes"))
    add("i=86", DemoNode("i=89", "VariableTypes"))
    add("i=85", DemoNode("i=2253", "Server", description="Server diagnostics and status"))
    add("i=2253", DemoNode("i=2256", "ServerStatus", "Variable", "Current server state"))
    add("i=85", DemoNode("ns=1;s=DeviceSet", "DeviceSet", description="Plant devices"))
    add("i=85", DemoNode(FLAKY_NODE_ID, "Diagnostics", description="Slow diagnostic folder"))
    add(FLAKY_NODE_ID, DemoNode("ns=1;s=Diagnostics.Uptime", "Uptime", "Variable", value=0.0, unit="s"))

    for device, kind in (("Boiler1", "Boiler"), ("Boiler2", "Boiler"), ("Pump1", "Pump")):
        device_id = f"ns=1;s={device}"
        add("ns=1;s=DeviceSet", DemoNode(
            device_id, device,
            description=f"{kind} unit {device}\nManufacturer: ACME\nSerial: {device.upper()}-0001",
        ))
        add(device_id, DemoNode(f"{device_id}.Temperature", "Temperature", "Variable", value=60.0, unit="C"))
        add(device_id, DemoNode(f"{device_id}.Pressure", "Pressure", "Variable", value=1.2, unit="bar"))
        add(device_id, DemoNode(f"{device_id}.Status", "Status", "Variable", value=1.0))
    return nodes


class DemoSessionService(SessionService):
    """Synthetic Session Service with simulated latency.

    Args:
        latency: Seconds every request waits before answering
        tick_interval: Seconds between value updates; None disables the ticker
        seed: Seed for the value random walk
    """

    def __init__(
        self,
        latency: float = 0.05,
        tick_interval: Optional[float] = DEFAULT_TICK_INTERVAL,
        seed: Optional[int] = None,
    ) -> None:
        self.latency = latency
        self.tick_interval = tick_interval
        self.nodes = _build_address_space()
        self.connected = True
        self.stats = SessionStatistics()
        self._random = random.Random(seed)
        self._monitored: Dict[str, TableRow] = {}
        self._item_listeners: List[TableListener] = []
        self._alarm_listeners: List[TableListener] = []
        self._alarms: Dict[str, TableRow] = {}
        self._alarms_enabled = False
        self._flaky_failed = False
        self._ticker: Optional["asyncio.Task[None]"] = None

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _request(self, operation: str, node_id: Optional[str] = None) -> Optional[DemoNode]:
        if not self.connected:
            raise ServiceError(operation, node_id, "session closed")
        self.stats.transaction_count += 1
        self.stats.sent_bytes += 32 + len(node_id or "")
        if self.latency:
            await asyncio.sleep(self.latency)
        if node_id is None:
            return None
        node = self.nodes.get(node_id)
        if node is None:
            raise ServiceError(operation, node_id, "BadNodeIdUnknown")
        return node

    async def list_children(self, node_id: str) -> List[ChildRef]:
        node = await self._request("list_children", node_id)
        if node_id == FLAKY_NODE_ID and not self._flaky_failed:
            self._flaky_failed = True
            raise ServiceError("list_children", node_id, "BadTimeout")
        refs = [ChildRef(child_id, self.nodes[child_id].name) for child_id in node.children]
        self.stats.received_bytes += sum(16 + len(r.node_id) + len(r.label) for r in refs)
        return refs

    async def read_attributes(self, node_id: str) -> List[AttributeRecord]:
        node = await self._request("read_attributes", node_id)
        records = [
            AttributeRecord("NodeId", node.node_id),
            AttributeRecord("NodeClass", node.node_class),
            AttributeRecord("BrowseName", node.name),
            AttributeRecord("DisplayName", node.name),
        ]
        if node.description:
            records.append(AttributeRecord("Description", node.description))
        if node.value is not None:
            records.append(AttributeRecord("Value", self._format_value(node)))
            records.append(AttributeRecord("DataType", "Double"))
        self.stats.received_bytes += sum(len(r.name) + len(r.text) for r in records)
        return records

    async def monitor(self, node_id: str) -> None:
        node = await self._request("monitor", node_id)
        if node_id in self._monitored:
            raise ServiceError("monitor", node_id, "already monitored")
        row = self._item_row(node)
        self._monitored[node_id] = row
        self._ensure_ticker()
        self._publish(self._item_listeners, Delta((row,)))

    async def unmonitor(self, node_id: str) -> None:
        await self._request("unmonitor", node_id)
        if self._monitored.pop(node_id, None) is None:
            raise ServiceError("unmonitor", node_id, "not monitored")
        self._publish(self._item_listeners, Snapshot(tuple(self._monitored.values())))

    async def disconnect(self) -> None:
        await self._request("disconnect")
        self.connected = False
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def statistics(self) -> SessionStatistics:
        return self.stats

    # ------------------------------------------------------------------
    # Event streams
    # ------------------------------------------------------------------

    def watch_subscribed_items(self, listener: TableListener) -> Unsubscribe:
        self._item_listeners.append(listener)
        listener(Snapshot(tuple(self._monitored.values())))
        return lambda: self._remove(self._item_listeners, listener)

    def watch_alarms(self, listener: TableListener) -> Unsubscribe:
        self._alarm_listeners.append(listener)
        self._alarms_enabled = True
        self._refresh_alarms()
        listener(Snapshot(tuple(self._alarms.values())))
        self._ensure_ticker()
        return lambda: self._remove(self._alarm_listeners, listener)

    @staticmethod
    def _remove(listeners: List[TableListener], listener: TableListener) -> None:
        if listener in listeners:
            listeners.remove(listener)

    @staticmethod
    def _publish(listeners: List[TableListener], event) -> None:
        for listener in list(listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def _ensure_ticker(self) -> None:
        if self._ticker is not None or not self.tick_interval:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._ticker = loop.create_task(self._run_ticker())

    async def _run_ticker(self) -> None:
        while self.connected:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    def tick(self) -> None:
        """Advance every variable one step and publish what changed."""
        for node in self.nodes.values():
            if node.value is None:
                continue
            if node.name == "Temperature":
                node.value = round(node.value + self._random.uniform(-3.0, 4.0), 1)
            elif node.name == "Pressure":
                node.value = round(max(node.value + self._random.uniform(-0.1, 0.1), 0.0), 2)
            elif node.name == "Uptime":
                node.value += self.tick_interval or 1.0

        if self._monitored:
            changed = []
            for node_id in self._monitored:
                row = self._item_row(self.nodes[node_id])
                self._monitored[node_id] = row
                changed.append(row)
            self._publish(self._item_listeners, Delta(tuple(changed)))

        if self._alarms_enabled:
            changed = self._refresh_alarms()
            if changed:
                self._publish(self._alarm_listeners, Delta(tuple(changed)))

    def _refresh_alarms(self) -> List[TableRow]:
        """Recompute temperature conditions; return rows that changed."""
        changed = []
        for node in self.nodes.values():
            if node.name != "Temperature" or node.value is None:
                continue
            condition_id = f"{node.node_id}.HighTemperature"
            active = node.value > TEMPERATURE_ALARM_LIMIT
            if not active and condition_id not in self._alarms:
                continue
            device = node.node_id.split("=")[-1].split(".")[0]
            row = make_row(
                condition_id,
                "AlarmConditionType",
                condition_id,
                f"{device} temperature {node.value} C" if active else f"{device} temperature normal",
                700 if active else 100,
                "EA--" if active else "E---",
                "",
            )
            if self._alarms.get(condition_id) != row:
                self._alarms[condition_id] = row
                changed.append(row)
        return changed

    def _item_row(self, node: DemoNode) -> TableRow:
        return make_row(
            node.node_id,
            node.node_id,
            node.name,
            self._format_value(node),
            "Good",
            datetime.now().strftime("%H:%M:%S"),
        )

    @staticmethod
    def _format_value(node: DemoNode) -> str:
        if node.value is None:
            return ""
        return f"{node.value} {node.unit}".strip()
