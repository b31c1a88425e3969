#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Live table reconciliation.

Applies Snapshot and Delta events from the Session Service to an in-memory
row set in arrival order and renders the table after every event. The
stream is trusted to be coherent; nothing here validates it.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from nodewatch.formatting import pad
from nodewatch.models import Delta, Snapshot, TableEvent, TableRow

logger = logging.getLogger(__name__)

RenderedRows = List[Tuple[str, ...]]

# Stand-in cell for an empty table; the table widget won't repaint on zero rows.
PLACEHOLDER_CELL = " "


class LiveTableReconciler:
    """Row set of one live table (subscribed items or alarms).

    Row order is first-seen order of each key; Snapshot events replace the
    whole set and so impose their own order.
    """

    def __init__(
        self,
        name: str,
        render: Optional[Callable[[RenderedRows], None]] = None,
        headers: Sequence[str] = (),
    ) -> None:
        self.name = name
        self.render = render
        self.headers = tuple(headers)
        self.revision = 0
        self._rows: Dict[str, TableRow] = {}
        self._changed: List[str] = []

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> List[TableRow]:
        return list(self._rows.values())

    def changed_keys(self) -> List[str]:
        """Keys whose fields changed with the most recent event."""
        return list(self._changed)

    def apply(self, event: TableEvent) -> RenderedRows:
        """Apply one event and render the table.

        Returns:
            The rendered row sequence handed to the render callback.
        """
        self.revision += 1
        self._changed = []
        if isinstance(event, Snapshot):
            previous = self._rows
            self._rows = {}
            for row in event.rows:
                self._store(row, previous.get(row.key))
        elif isinstance(event, Delta):
            for row in event.rows:
                self._store(row, self._rows.get(row.key))
        else:
            raise TypeError(f"unsupported table event: {type(event).__name__}")

        rendered = self.render_rows()
        logger.debug(
            "%s table: %s with %d rows -> %d rows (%d changed)",
            self.name, type(event).__name__, len(event.rows), len(self._rows), len(self._changed),
        )
        if self.render is not None:
            self.render(rendered)
        return rendered

    def _store(self, row: TableRow, existing: Optional[TableRow]) -> None:
        if existing is not None and existing.fields == row.fields:
            self._rows[row.key] = existing
            return
        # Assigning to an existing dict key keeps its position.
        self._rows[row.key] = TableRow(key=row.key, fields=tuple(row.fields), revision=self.revision)
        if row.key not in self._changed:
            self._changed.append(row.key)

    def placeholder(self) -> Tuple[str, ...]:
        return (PLACEHOLDER_CELL,) * max(len(self.headers), 1)

    def render_rows(self, width: Optional[int] = None) -> RenderedRows:
        """Rows as display tuples, or one placeholder row when empty.

        Args:
            width: Pad or truncate every cell to this width when given
        """
        if not self._rows:
            return [self.placeholder()]
        rendered = [row.fields for row in self._rows.values()]
        if width is not None:
            rendered = [tuple(pad(cell, width) for cell in fields) for fields in rendered]
        return rendered
