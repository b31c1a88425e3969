#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Detail panel binding for the selected node.

A refresh only renders if the selection has not moved while the attribute
read was in flight, so a slow answer for an earlier node never overwrites
the panel after the user has moved on.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from nodewatch.formatting import DEFAULT_NAME_WIDTH, format_attribute_rows
from nodewatch.models import CONTINUATION_PREFIX, AttributeRecord
from nodewatch.selection import SelectionState
from nodewatch.session import SessionService

logger = logging.getLogger(__name__)

AttributeRows = List[Tuple[str, str]]


def expand_attribute_rows(records: Sequence[AttributeRecord]) -> AttributeRows:
    """Flatten attributes into panel rows.

    A multi-line value yields one row with the attribute name and its first
    line, then one continuation row per following line.
    """
    rows: AttributeRows = []
    for record in records:
        lines = record.text.split("\n")
        rows.append((record.name, lines[0]))
        for line in lines[1:]:
            rows.append((CONTINUATION_PREFIX, line))
    return rows


class DetailPanelBinder:
    """Fetches and holds the attribute rows of the selected node."""

    def __init__(
        self,
        session: SessionService,
        selection: SelectionState,
        render: Optional[Callable[[AttributeRows], None]] = None,
        name_width: int = DEFAULT_NAME_WIDTH,
    ) -> None:
        self.session = session
        self.selection = selection
        self.render = render
        self.name_width = name_width
        self.node_id: Optional[str] = None
        self._rows: AttributeRows = []

    @property
    def rows(self) -> AttributeRows:
        return list(self._rows)

    def render_rows(self, width: int) -> AttributeRows:
        """Current rows fitted to a value column of the given width."""
        return format_attribute_rows(self._rows, width, self.name_width)

    async def refresh_details(self, node_id: str) -> bool:
        """Read node_id's attributes and show them if still relevant.

        Returns:
            True if the panel was updated. False when the result was stale,
            empty, or the read failed; the panel keeps its previous rows.
        """
        version = self.selection.version
        try:
            records = await self.session.read_attributes(node_id)
        except Exception as exc:
            logger.error("cannot read attributes of %s: %s", node_id, exc)
            return False

        if version != self.selection.version:
            logger.debug(
                "discarding stale attributes of %s (version %d, now %d)",
                node_id, version, self.selection.version,
            )
            return False
        if not records:
            return False

        self._rows = expand_attribute_rows(records)
        self.node_id = node_id
        if self.render is not None:
            self.render(self.rows)
        return True
