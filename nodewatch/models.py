#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Data models for the explorer core.

Contains the node record and its expansion states, the records exchanged
with the Session Service, and the live table rows and events.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple


# =============================================================================
# Constants
# =============================================================================

ROOT_NODE_ID = "RootFolder"
ROOT_LABEL = "RootFolder"

# Continuation marker for the second and later lines of a multi-line attribute
CONTINUATION_PREFIX = "   |    "


# =============================================================================
# Enums
# =============================================================================


class ExpansionState(str, Enum):
    """Where a node is in the lazy child-loading lifecycle."""
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


# Loaded -> Loading is only legal for a forced refresh (see is_transition_allowed).
ALLOWED_TRANSITIONS: Dict[ExpansionState, FrozenSet[ExpansionState]] = {
    ExpansionState.UNLOADED: frozenset({ExpansionState.LOADING}),
    ExpansionState.LOADING: frozenset({ExpansionState.LOADED, ExpansionState.FAILED}),
    ExpansionState.LOADED: frozenset(),
    ExpansionState.FAILED: frozenset({ExpansionState.LOADING}),
}


def is_transition_allowed(
    current: ExpansionState, requested: ExpansionState, force: bool = False
) -> bool:
    """Check a move between expansion states against the transition table.

    Args:
        current: State the record is in now
        requested: State the caller wants to move to
        force: Permit Loaded -> Loading (explicit refresh)

    Returns:
        True if the transition is legal.
    """
    if current is ExpansionState.LOADED and requested is ExpansionState.LOADING:
        return force
    return requested in ALLOWED_TRANSITIONS[current]


# =============================================================================
# Tree
# =============================================================================


@dataclass
class NodeRecord:
    """One entity of the remote address space.

    ``children`` holds child ids and is only meaningful once the record is
    LOADED. ``parent_id`` is a lookup-only back reference. ``resolver`` is
    the lazy expand capability attached by the expansion engine.
    """
    node_id: str
    label: str
    expansion_state: ExpansionState = ExpansionState.UNLOADED
    children: List[str] = field(default_factory=list)
    is_monitored: bool = False
    parent_id: Optional[str] = None
    resolver: Optional[Callable[[], Awaitable[List["NodeRecord"]]]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_loaded(self) -> bool:
        return self.expansion_state is ExpansionState.LOADED


@dataclass(frozen=True)
class ChildRef:
    """A child as reported by the Session Service's child listing."""
    node_id: str
    label: str


@dataclass(frozen=True)
class AttributeRecord:
    """One attribute of a node; ``text`` may span several lines."""
    name: str
    text: str


# =============================================================================
# Live tables
# =============================================================================


@dataclass(frozen=True)
class TableRow:
    """A row of a live table.

    ``revision`` is bookkeeping for the reconciler and is never displayed.
    """
    key: str
    fields: Tuple[str, ...]
    revision: int = 0


@dataclass(frozen=True)
class TableEvent:
    """Base class for updates pushed to a live table."""
    rows: Tuple[TableRow, ...] = ()


@dataclass(frozen=True)
class Snapshot(TableEvent):
    """Full replacement of a table's rows."""


@dataclass(frozen=True)
class Delta(TableEvent):
    """Merge by key: known keys are replaced in place, new keys appended."""


def make_row(key: str, *fields: object) -> TableRow:
    """Build a TableRow, converting every field to its display string."""
    return TableRow(key=key, fields=tuple(str(f) for f in fields))


# =============================================================================
# Statistics
# =============================================================================


@dataclass
class SessionStatistics:
    """Transport counters reported by the Session Service."""
    transaction_count: int = 0
    sent_bytes: int = 0
    received_bytes: int = 0
    token_renewal_count: int = 0
    reconnection_count: int = 0
