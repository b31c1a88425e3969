#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Dashboard controller.

Routes the named keyboard commands to the explorer components and owns the
lifecycle of optional panels (currently the alarm view). Commands act on
the node selected at the moment they run. Service failures are logged and
never end the process; only the exit command does that.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Protocol, Tuple

from rich.markup import escape

from nodewatch.errors import NodeNotFound, UnknownCommand
from nodewatch.expansion import ExpansionEngine
from nodewatch.formatting import format_statistics
from nodewatch.log_sink import LogSink
from nodewatch.models import NodeRecord
from nodewatch.selection import SelectionDebouncer
from nodewatch.session import SessionService, Unsubscribe
from nodewatch.tables import LiveTableReconciler

logger = logging.getLogger(__name__)

DEFAULT_DISCONNECT_TIMEOUT = 2.0

ALARM_PANEL = "alarms"
TREE_PANEL = "tree"
ATTRIBUTES_PANEL = "attributes"
LOG_PANEL = "log"


class DashboardView(Protocol):
    """What the controller needs from the presentation layer."""

    def focus_panel(self, name: str) -> None: ...

    async def create_alarm_panel(self) -> None: ...

    def set_panel_visible(self, name: str, visible: bool) -> None: ...

    def request_exit(self) -> None: ...


class PanelState(str, Enum):
    """Visibility lifecycle of an optional panel."""
    NOT_CREATED = "not_created"
    HIDDEN = "hidden"
    VISIBLE = "visible"


class OptionalPanel:
    """A panel created and subscribed on first show, then only toggled."""

    def __init__(
        self,
        name: str,
        create: Callable[[], Awaitable[None]],
        subscribe: Callable[[], Unsubscribe],
    ) -> None:
        self.name = name
        self.state = PanelState.NOT_CREATED
        self._create = create
        self._subscribe = subscribe
        self._unsubscribe: Optional[Unsubscribe] = None
        self._opening: Optional["asyncio.Task[None]"] = None

    async def toggle(self) -> PanelState:
        """Show the panel, creating it on first use, or flip its visibility.

        A toggle that arrives while the panel is still being created waits
        for that creation and then flips, as if it had come after it.
        """
        if self.state is PanelState.NOT_CREATED:
            first = self._opening is None
            if first:
                self._opening = asyncio.ensure_future(self._open())
            await asyncio.shield(self._opening)
            if first:
                return self.state

        if self.state is PanelState.VISIBLE:
            self.state = PanelState.HIDDEN
        else:
            self.state = PanelState.VISIBLE
        return self.state

    async def _open(self) -> None:
        try:
            await self._create()
            self._unsubscribe = self._subscribe()
        except BaseException:
            # Leave the panel creatable on the next toggle.
            self._opening = None
            raise
        self.state = PanelState.VISIBLE

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


class DashboardController:
    """Runs dashboard commands against the currently selected node."""

    def __init__(
        self,
        session: SessionService,
        engine: ExpansionEngine,
        debouncer: SelectionDebouncer,
        log_sink: LogSink,
        alarms: LiveTableReconciler,
        view: DashboardView,
        disconnect_timeout: float = DEFAULT_DISCONNECT_TIMEOUT,
    ) -> None:
        self.session = session
        self.engine = engine
        self.debouncer = debouncer
        self.log_sink = log_sink
        self.alarms = alarms
        self.view = view
        self.disconnect_timeout = disconnect_timeout
        self.alarm_panel = OptionalPanel(
            ALARM_PANEL,
            create=view.create_alarm_panel,
            subscribe=lambda: session.watch_alarms(alarms.apply),
        )
        self._commands: Dict[str, Callable[[], Awaitable[None]]] = {
            "monitor": self.monitor,
            "unmonitor": self.unmonitor,
            "focus-tree": self._focus(TREE_PANEL),
            "focus-attributes": self._focus(ATTRIBUTES_PANEL),
            "focus-log": self._focus(LOG_PANEL),
            "clear-log": self.clear_log,
            "toggle-alarms": self.toggle_alarms,
            "dump-statistics": self.dump_statistics,
            "exit": self.exit,
        }

    @property
    def commands(self) -> Tuple[str, ...]:
        return tuple(self._commands)

    async def run(self, name: str) -> None:
        """Run a named command.

        Raises:
            UnknownCommand: name is not one of the dashboard commands.
        """
        try:
            handler = self._commands[name]
        except KeyError:
            raise UnknownCommand(name) from None
        await handler()

    def selected_node(self) -> Optional[NodeRecord]:
        """The node selected right now, or None."""
        node_id = self.debouncer.state.node_id
        if node_id is None:
            return None
        try:
            return self.engine.store.get(node_id)
        except NodeNotFound:
            return None

    def _focus(self, panel: str) -> Callable[[], Awaitable[None]]:
        async def focus() -> None:
            self.view.focus_panel(panel)
        return focus

    async def monitor(self) -> None:
        node = self.selected_node()
        if node is None:
            self.log_sink.write("no node selected")
            return
        if node.is_monitored:
            self.log_sink.write(f" Already monitoring {escape(node.node_id)}")
            return
        try:
            await self.session.monitor(node.node_id)
        except Exception as exc:
            logger.error("cannot monitor %s: %s", node.node_id, exc)
            return
        self.engine.set_monitored(node.node_id, True)

    async def unmonitor(self) -> None:
        node = self.selected_node()
        if node is None:
            self.log_sink.write("no node selected")
            return
        if not node.is_monitored:
            self.log_sink.write(f"{escape(node.node_id)} was not being monitored")
            return
        try:
            await self.session.unmonitor(node.node_id)
        except Exception as exc:
            logger.error("cannot unmonitor %s: %s", node.node_id, exc)
            return
        self.engine.set_monitored(node.node_id, False)

    async def clear_log(self) -> None:
        self.log_sink.clear()

    async def toggle_alarms(self) -> None:
        state = await self.alarm_panel.toggle()
        visible = state is PanelState.VISIBLE
        self.view.set_panel_visible(ALARM_PANEL, visible)
        if visible:
            self.view.focus_panel(ALARM_PANEL)

    async def dump_statistics(self) -> None:
        for line in format_statistics(self.session.statistics()):
            self.log_sink.write(line)

    async def exit(self) -> None:
        """Disconnect on a best-effort basis, then leave."""
        self.log_sink.write("[red] disconnecting .... [/red]")
        try:
            await asyncio.wait_for(self.session.disconnect(), timeout=self.disconnect_timeout)
        except asyncio.TimeoutError:
            logger.warning("disconnect timed out after %.1fs", self.disconnect_timeout)
        except Exception as exc:
            logger.error("disconnect failed: %s", exc)
        else:
            self.log_sink.write("[green] disconnected .... [/green]")
        finally:
            self.debouncer.stop()
            self.alarm_panel.close()
            self.view.request_exit()
