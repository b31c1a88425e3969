# SPDX-License-Identifier: MIT
"""State management dataclasses for the TUI app.

This module provides structured state containers for ExplorerApp. The
engine state (node records, selection version, table rows) lives in the
core components; these dataclasses only hold what the Textual layer needs
on top of it:

- ExplorerState: tree nodes already populated and the highlighted node
- LayoutState: which panel has focus and whether the alarm view is shown
- AppState: Top-level container for all app state
"""
from dataclasses import dataclass, field
from typing import Optional, Set


@dataclass
class ExplorerState:
    """State of the address-space tree widget.

    ``populated`` holds Textual TreeNode ids whose children have been
    added, so a node is filled once even if several expand events race.
    """

    selected_id: Optional[str] = None
    populated: Set[int] = field(default_factory=set)
    failed_ids: Set[str] = field(default_factory=set)


@dataclass
class LayoutState:
    """Focus and optional panel visibility."""

    focused: str = "tree"
    alarms_visible: bool = False


@dataclass
class AppState:
    """Top-level app state container."""

    explorer: ExplorerState = field(default_factory=ExplorerState)
    layout: LayoutState = field(default_factory=LayoutState)
    exiting: bool = False
