#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Expansion engine: on-demand loading of a node's children.

Each node is fetched at most once at a time. Concurrent expand() calls for
a node that is already loading share the single outstanding fetch, and a
loaded node answers from the store without suspending. The fetch runs in
its own task so a caller that gets cancelled does not abort it.
"""

import asyncio
import functools
import logging
from typing import Dict, List

from nodewatch.errors import ExpansionFailed
from nodewatch.models import ExpansionState, NodeRecord
from nodewatch.session import SessionService
from nodewatch.store import NodeStore

logger = logging.getLogger(__name__)


class ExpansionEngine:
    """Resolves children on demand and is the only writer of the store."""

    def __init__(self, store: NodeStore, session: SessionService) -> None:
        self.store = store
        self.session = session
        self._pending: Dict[str, "asyncio.Task[List[NodeRecord]]"] = {}

    def ensure_root(self, node_id: str, label: str) -> NodeRecord:
        """Create the root record with its resolver attached."""
        record = self.store.create_root(node_id, label)
        record.resolver = functools.partial(self.expand, node_id)
        return record

    def is_loading(self, node_id: str) -> bool:
        return node_id in self._pending

    async def expand(self, node_id: str, force: bool = False) -> List[NodeRecord]:
        """Return the children of node_id, fetching them if needed.

        Args:
            node_id: Node to expand
            force: Re-fetch even if the node is already Loaded

        Returns:
            Child records in listing order.

        Raises:
            ExpansionFailed: The Session Service could not list the children.
                The node is left Failed and can be expanded again.
        """
        pending = self._pending.get(node_id)
        if pending is not None:
            return await asyncio.shield(pending)

        record = self.store.get(node_id)
        if record.is_loaded and not force:
            return self.store.children_of(node_id)

        self.store.upsert(node_id, expansion_state=ExpansionState.LOADING, force=force)
        task = asyncio.ensure_future(self._fetch(node_id))
        self._pending[node_id] = task
        task.add_done_callback(self._on_fetch_done)
        return await asyncio.shield(task)

    async def _fetch(self, node_id: str) -> List[NodeRecord]:
        try:
            refs = await self.session.list_children(node_id)
        except asyncio.CancelledError:
            self.store.upsert(node_id, expansion_state=ExpansionState.FAILED)
            raise
        except Exception as exc:
            self.store.upsert(node_id, expansion_state=ExpansionState.FAILED)
            logger.warning("cannot expand %s: %s", node_id, exc)
            raise ExpansionFailed(node_id, exc) from exc
        finally:
            self._pending.pop(node_id, None)

        self.store.set_children(node_id, refs)
        children = self.store.children_of(node_id)
        for child in children:
            if child.resolver is None:
                child.resolver = functools.partial(self.expand, child.node_id)
        logger.debug("expanded %s: %d children", node_id, len(children))
        return children

    @staticmethod
    def _on_fetch_done(task: "asyncio.Task[List[NodeRecord]]") -> None:
        # Mark a failure as retrieved even if every waiter went away.
        if not task.cancelled():
            task.exception()

    def set_monitored(self, node_id: str, monitored: bool) -> NodeRecord:
        """Record whether node_id is currently monitored."""
        return self.store.upsert(node_id, is_monitored=monitored)
