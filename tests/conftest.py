"""
Pytest configuration and fixtures for nodewatch tests.
"""

import sys
from pathlib import Path

# Ensure project root is in sys.path for 'nodewatch' imports without install
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import asyncio
import logging
from typing import Dict, List, Optional, Set, Tuple

import pytest

from nodewatch.errors import ServiceError
from nodewatch.models import (
    AttributeRecord,
    ChildRef,
    SessionStatistics,
    TableEvent,
)
from nodewatch.session import SessionService, TableListener, Unsubscribe


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "tui: marks TUI tests")


@pytest.fixture
def temp_state_dir(tmp_path: Path, monkeypatch) -> Path:
    """Create and return a temporary state directory.

    Sets NODEWATCH_STATE and points NODEWATCH_SETTINGS at a file that
    doesn't exist yet, so tests never read the real user configuration.
    """
    state_dir = tmp_path / ".local" / "state" / "nodewatch"
    state_dir.mkdir(parents=True)
    monkeypatch.setenv("NODEWATCH_STATE", str(state_dir))
    monkeypatch.setenv("NODEWATCH_SETTINGS", str(tmp_path / "settings.json"))
    return state_dir


@pytest.fixture(autouse=True)
def isolate_state_dir(temp_state_dir: Path):
    """Autouse fixture that keeps every test on an isolated state directory.

    Also detaches any handler a test left on the nodewatch logger.
    """
    yield temp_state_dir

    nodewatch_logger = logging.getLogger("nodewatch")
    for handler in list(nodewatch_logger.handlers):
        nodewatch_logger.removeHandler(handler)
    nodewatch_logger.setLevel(logging.NOTSET)


# =============================================================================
# Scripted Session Service
# =============================================================================


class ScriptedSession(SessionService):
    """Session Service fake whose answers are scripted by the test.

    Calls can be held open with hold() until the returned event is set,
    and made to fail with fail(). Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        children: Optional[Dict[str, List[ChildRef]]] = None,
        attributes: Optional[Dict[str, List[AttributeRecord]]] = None,
    ) -> None:
        self.children = children or {}
        self.attributes = attributes or {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.monitored: Set[str] = set()
        self.item_listeners: List[TableListener] = []
        self.alarm_listeners: List[TableListener] = []
        self.alarm_watch_count = 0
        self.disconnected = False
        self.disconnect_delay = 0.0
        self.disconnect_error: Optional[Exception] = None
        self._gates: Dict[Tuple[str, Optional[str]], asyncio.Event] = {}
        self._failures: Dict[Tuple[str, Optional[str]], List[Exception]] = {}

    def hold(self, operation: str, node_id: Optional[str] = None) -> asyncio.Event:
        """Block operation(node_id) until the returned event is set."""
        gate = asyncio.Event()
        self._gates[(operation, node_id)] = gate
        return gate

    def fail(self, operation: str, node_id: Optional[str] = None, times: int = 1) -> None:
        """Make the next `times` calls of operation(node_id) raise ServiceError."""
        errors = self._failures.setdefault((operation, node_id), [])
        errors.extend(ServiceError(operation, node_id, "scripted failure") for _ in range(times))

    def count(self, operation: str, node_id: Optional[str] = None) -> int:
        return sum(1 for call in self.calls if call == (operation, node_id))

    async def _call(self, operation: str, node_id: Optional[str] = None) -> None:
        self.calls.append((operation, node_id))
        gate = self._gates.get((operation, node_id))
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        errors = self._failures.get((operation, node_id))
        if errors:
            raise errors.pop(0)

    async def list_children(self, node_id: str) -> List[ChildRef]:
        await self._call("list_children", node_id)
        return list(self.children.get(node_id, []))

    async def read_attributes(self, node_id: str) -> List[AttributeRecord]:
        await self._call("read_attributes", node_id)
        return list(self.attributes.get(node_id, []))

    async def monitor(self, node_id: str) -> None:
        await self._call("monitor", node_id)
        self.monitored.add(node_id)

    async def unmonitor(self, node_id: str) -> None:
        await self._call("unmonitor", node_id)
        self.monitored.discard(node_id)

    def watch_subscribed_items(self, listener: TableListener) -> Unsubscribe:
        self.item_listeners.append(listener)
        return lambda: self.item_listeners.remove(listener)

    def watch_alarms(self, listener: TableListener) -> Unsubscribe:
        self.alarm_watch_count += 1
        self.alarm_listeners.append(listener)
        return lambda: self.alarm_listeners.remove(listener)

    def push_items(self, event: TableEvent) -> None:
        for listener in list(self.item_listeners):
            listener(event)

    def push_alarms(self, event: TableEvent) -> None:
        for listener in list(self.alarm_listeners):
            listener(event)

    async def disconnect(self) -> None:
        self.calls.append(("disconnect", None))
        if self.disconnect_delay:
            await asyncio.sleep(self.disconnect_delay)
        if self.disconnect_error is not None:
            raise self.disconnect_error
        self.disconnected = True

    def statistics(self) -> SessionStatistics:
        return SessionStatistics(
            transaction_count=len(self.calls),
            sent_bytes=100,
            received_bytes=200,
            token_renewal_count=1,
            reconnection_count=0,
        )


@pytest.fixture
def session() -> ScriptedSession:
    """Scripted session with a small tree: RootFolder -> X, Y; X -> Z."""
    return ScriptedSession(
        children={
            "RootFolder": [ChildRef("X", "Node X"), ChildRef("Y", "Node Y")],
            "X": [ChildRef("Z", "Node Z")],
            "Y": [],
            "Z": [],
        },
        attributes={
            "RootFolder": [AttributeRecord("BrowseName", "RootFolder")],
            "X": [AttributeRecord("BrowseName", "X")],
            "Y": [
                AttributeRecord("BrowseName", "Y"),
                AttributeRecord("Description", "first line\nsecond line"),
            ],
            "Z": [AttributeRecord("BrowseName", "Z")],
        },
    )
