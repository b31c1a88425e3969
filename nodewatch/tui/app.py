#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Main TUI application for the nodewatch dashboard.

Lays out the explorer panels and wires them to the core:
- Address space tree, expanded lazily through the expansion engine
- Attribute list for the highlighted node, refreshed after a debounce
- Monitored items table and optional alarm table fed by live table events
- Info log showing the log sink
"""

from typing import Dict, Iterable, List, Optional

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult, SystemCommand
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, OptionList, RichLog, Tree
from textual.widgets.tree import TreeNode

from nodewatch.config import DashboardConfig
from nodewatch.controller import (
    ALARM_PANEL,
    ATTRIBUTES_PANEL,
    LOG_PANEL,
    TREE_PANEL,
    DashboardController,
)
from nodewatch.demo import ALARM_HEADERS, ITEM_HEADERS
from nodewatch.details import AttributeRows, DetailPanelBinder
from nodewatch.errors import ExpansionFailed, NodewatchError
from nodewatch.expansion import ExpansionEngine
from nodewatch.formatting import NAME_SEPARATOR, value_width
from nodewatch.log_sink import LogSink
from nodewatch.models import ROOT_LABEL, ROOT_NODE_ID
from nodewatch.selection import SelectionDebouncer, SelectionState
from nodewatch.session import SessionService, Unsubscribe
from nodewatch.store import NodeStore
from nodewatch.tables import LiveTableReconciler, RenderedRows
from nodewatch.tui.app_state import AppState

PANEL_SELECTORS: Dict[str, str] = {
    TREE_PANEL: "#address-space",
    ATTRIBUTES_PANEL: "#attribute-list",
    LOG_PANEL: "#info-log",
    ALARM_PANEL: "#alarm-list",
}


class ExplorerApp(App):
    """
    Textual application for browsing an address space.

    All widgets are rendered from core component state; nothing is read
    back from them except the tree node id carried in each TreeNode.
    """

    TITLE = "Address Space Explorer"
    CSS_PATH = "styles/app.tcss"

    BINDINGS = [
        Binding("m", "command('monitor')", "Monitor"),
        Binding("q", "command('exit')", "Exit"),
        Binding("t", "command('focus-tree')", "Tree"),
        Binding("l", "command('focus-attributes')", "Attributes"),
        Binding("i", "command('focus-log')", "Info"),
        Binding("c", "command('clear-log')", "Clear"),
        Binding("u", "command('unmonitor')", "Unmonitor"),
        Binding("s", "command('dump-statistics')", "Stat"),
        Binding("a", "command('toggle-alarms')", "Alarm"),
    ]

    def __init__(
        self,
        session: SessionService,
        config: Optional[DashboardConfig] = None,
    ) -> None:
        """
        Initialize the app.

        Args:
            session: Session Service performing the remote calls
            config: Dashboard settings (defaults when omitted)
        """
        super().__init__()
        self.session = session
        self.config = config or DashboardConfig()
        self.state = AppState()
        # Core components (not part of state - they have methods)
        self.store = NodeStore()
        self.engine = ExpansionEngine(self.store, session)
        self.log_sink = LogSink()
        self.selection = SelectionState()
        self.debouncer = SelectionDebouncer(
            self._refresh_details, delay=self.config.debounce_delay, state=self.selection
        )
        self.details = DetailPanelBinder(
            session, self.selection, self._render_attributes, name_width=self.config.name_width
        )
        self.items_table = LiveTableReconciler(
            "items", lambda rows: self._render_table("#monitored-items", rows), ITEM_HEADERS
        )
        self.alarms_table = LiveTableReconciler(
            "alarms", lambda rows: self._render_table("#alarm-list", rows), ALARM_HEADERS
        )
        self.controller = DashboardController(
            session,
            self.engine,
            self.debouncer,
            self.log_sink,
            self.alarms_table,
            view=self,
            disconnect_timeout=self.config.disconnect_timeout,
        )
        self._unsubscribe_items: Optional[Unsubscribe] = None

    def get_system_commands(self, screen: Screen) -> Iterable[SystemCommand]:
        """Add custom commands to the command palette."""
        yield from super().get_system_commands(screen)
        yield SystemCommand(
            "Toggle Alarms",
            "Show or hide the alarms and conditions table",
            lambda: self.action_command("toggle-alarms"),
        )
        yield SystemCommand(
            "Dump Statistics",
            "Write session transport counters to the Info log",
            lambda: self.action_command("dump-statistics"),
        )

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()
        with Horizontal(id="main"):
            yield Tree(Text(ROOT_LABEL), data=ROOT_NODE_ID, id="address-space")
            with Vertical(id="side"):
                yield OptionList(id="attribute-list")
                yield DataTable(id="monitored-items", cursor_type="row")
        yield RichLog(id="info-log", markup=True)
        yield Footer()

    def on_mount(self) -> None:
        """Start the core components and load the root."""
        self.query_one("#address-space", Tree).border_title = "Address Space"
        self.query_one("#attribute-list", OptionList).border_title = "Attribute List"
        self.query_one("#info-log", RichLog).border_title = "Info"
        items = self.query_one("#monitored-items", DataTable)
        items.border_title = "Monitored Items"
        items.add_columns(*ITEM_HEADERS)

        self.log_sink.add_listener(self._write_log_lines, self._clear_log_view)
        self.log_sink.start(level=self.config.log_level)
        self.debouncer.start()
        self._unsubscribe_items = self.session.watch_subscribed_items(self.items_table.apply)

        self.engine.ensure_root(ROOT_NODE_ID, ROOT_LABEL)
        tree = self.query_one("#address-space", Tree)
        tree.root.expand()
        tree.focus()

    def on_unmount(self) -> None:
        self.debouncer.stop()
        self.log_sink.stop()
        if self._unsubscribe_items is not None:
            self._unsubscribe_items()
            self._unsubscribe_items = None

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        node = event.node
        if node.data is None or node.id in self.state.explorer.populated:
            return
        self._load_children(node)

    @work(group="expand")
    async def _load_children(self, node: TreeNode) -> None:
        """Resolve a tree node's children and add them below it."""
        record = self.store.get(node.data)
        try:
            children = await record.resolver()
        except ExpansionFailed:
            self.state.explorer.failed_ids.add(record.node_id)
            node.collapse()
            return

        # Another expand event may have filled the node while we waited.
        if node.id in self.state.explorer.populated:
            return
        self.state.explorer.populated.add(node.id)
        self.state.explorer.failed_ids.discard(record.node_id)
        node.remove_children()
        for child in children:
            node.add(Text(child.label), data=child.node_id, allow_expand=True)
        if not children:
            node.allow_expand = False

    def on_tree_node_highlighted(self, event: Tree.NodeHighlighted) -> None:
        node_id = event.node.data
        if node_id is None:
            return
        self.state.explorer.selected_id = node_id
        self.debouncer.navigate(node_id)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        node_id = event.node.data
        if node_id is not None and node_id == self.selection.node_id:
            self._refresh_details_now(node_id)

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    def _refresh_details(self, node_id: str):
        return self.details.refresh_details(node_id)

    @work(group="details")
    async def _refresh_details_now(self, node_id: str) -> None:
        await self.details.refresh_details(node_id)

    def _render_attributes(self, rows: AttributeRows) -> None:
        try:
            panel = self.query_one("#attribute-list", OptionList)
        except NoMatches:
            return
        width = max(value_width(panel.size.width, self.config.name_width), 1)
        panel.clear_options()
        panel.add_options(
            [Text(name + NAME_SEPARATOR + value) for name, value in self.details.render_rows(width)]
        )

    # ------------------------------------------------------------------
    # Tables and log
    # ------------------------------------------------------------------

    def _render_table(self, selector: str, rows: RenderedRows) -> None:
        try:
            table = self.query_one(selector, DataTable)
        except NoMatches:
            return
        table.clear()
        table.add_rows([tuple(Text(cell) for cell in row) for row in rows])

    def _write_log_lines(self, lines: List[str]) -> None:
        try:
            log = self.query_one("#info-log", RichLog)
        except NoMatches:
            return
        for line in lines:
            log.write(line)

    def _clear_log_view(self) -> None:
        try:
            self.query_one("#info-log", RichLog).clear()
        except NoMatches:
            pass

    # ------------------------------------------------------------------
    # Commands and the DashboardView protocol
    # ------------------------------------------------------------------

    def action_command(self, name: str) -> None:
        """Run a dashboard command by name."""
        self._run_command(name)

    @work(group="commands")
    async def _run_command(self, name: str) -> None:
        try:
            await self.controller.run(name)
        except NodewatchError as e:
            self.notify(f"{name}: {e}", severity="error")

    def focus_panel(self, name: str) -> None:
        try:
            self.query_one(PANEL_SELECTORS[name]).focus()
        except (KeyError, NoMatches):
            return
        self.state.layout.focused = name

    async def create_alarm_panel(self) -> None:
        table = DataTable(id="alarm-list", cursor_type="row")
        table.border_title = "Alarms - Conditions"
        await self.query_one("#side", Vertical).mount(table)
        table.add_columns(*ALARM_HEADERS)

    def set_panel_visible(self, name: str, visible: bool) -> None:
        if name != ALARM_PANEL:
            return
        try:
            self.query_one("#alarm-list", DataTable).display = visible
        except NoMatches:
            return
        self.state.layout.alarms_visible = visible
        if not visible and self.state.layout.focused == ALARM_PANEL:
            self.focus_panel(TREE_PANEL)

    def request_exit(self) -> None:
        self.state.exiting = True
        self.exit()


def run_app(session: Optional[SessionService] = None, config: Optional[DashboardConfig] = None) -> None:
    """
    Run the TUI application.

    Args:
        session: Session Service to browse (demo service when omitted)
        config: Dashboard settings (read from settings.json when omitted)
    """
    config = config or DashboardConfig.load()
    if session is None:
        from nodewatch.demo import DemoSessionService

        session = DemoSessionService(latency=config.demo_latency)
    app = ExplorerApp(session, config=config)
    app.run()


if __name__ == "__main__":
    run_app()
