#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
In-memory store of the address-space tree.

Owns every NodeRecord, indexed by id, and enforces the expansion state
transition table. Records live until the whole tree is torn down.
"""

import logging
from typing import Dict, List, Optional, Sequence

from nodewatch.errors import InvalidStateTransition, NodeNotFound
from nodewatch.models import ChildRef, ExpansionState, NodeRecord, is_transition_allowed

logger = logging.getLogger(__name__)

_PATCHABLE_FIELDS = frozenset({"label", "expansion_state", "is_monitored", "resolver"})


class NodeStore:
    """Id-indexed NodeRecord store."""

    def __init__(self) -> None:
        self._records: Dict[str, NodeRecord] = {}
        self.root_id: Optional[str] = None

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, node_id: str) -> NodeRecord:
        """Return the record for node_id, raising NodeNotFound if unknown."""
        try:
            return self._records[node_id]
        except KeyError:
            raise NodeNotFound(node_id) from None

    def find(self, node_id: str) -> Optional[NodeRecord]:
        return self._records.get(node_id)

    def create_root(self, node_id: str, label: str) -> NodeRecord:
        """Register the single root of the tree.

        Calling it again with the current root id returns the existing record.
        """
        if self.root_id is not None:
            if self.root_id != node_id:
                raise ValueError(f"tree already has root {self.root_id}")
            return self._records[node_id]
        record = NodeRecord(node_id=node_id, label=label)
        self._records[node_id] = record
        self.root_id = node_id
        return record

    def upsert(self, node_id: str, *, force: bool = False, **patch) -> NodeRecord:
        """Merge fields into a record, creating it if missing.

        Args:
            node_id: Record to update
            force: Allow Loaded -> Loading (explicit refresh)
            **patch: Any of label, expansion_state, is_monitored, resolver

        Returns:
            The updated record.

        Raises:
            InvalidStateTransition: expansion_state change not in the
                transition table. The record is left unchanged.
        """
        unknown = set(patch) - _PATCHABLE_FIELDS
        if unknown:
            raise TypeError(f"cannot patch fields: {', '.join(sorted(unknown))}")

        record = self._records.get(node_id)
        requested = patch.get("expansion_state")
        if requested is not None:
            requested = ExpansionState(requested)
            current = record.expansion_state if record else ExpansionState.UNLOADED
            if requested is not current or requested is ExpansionState.LOADING:
                if not is_transition_allowed(current, requested, force=force):
                    raise InvalidStateTransition(node_id, current.value, requested.value)
            patch["expansion_state"] = requested

        if record is None:
            record = NodeRecord(node_id=node_id, label=patch.get("label", node_id))
            self._records[node_id] = record
        for name, value in patch.items():
            setattr(record, name, value)
        return record

    def set_children(self, node_id: str, children: Sequence[ChildRef]) -> NodeRecord:
        """Register a loading node's children and mark it Loaded.

        New child ids become Unloaded records with node_id as parent. Ids
        already in the store keep their record. Duplicate ids in one listing
        collapse to their first occurrence.

        Raises:
            InvalidStateTransition: node is not Loading. Nothing is changed.
        """
        record = self.get(node_id)
        if record.expansion_state is not ExpansionState.LOADING:
            raise InvalidStateTransition(
                node_id, record.expansion_state.value, ExpansionState.LOADED.value
            )

        child_ids: List[str] = []
        seen = set()
        for ref in children:
            if ref.node_id in seen:
                logger.debug("duplicate child %s under %s ignored", ref.node_id, node_id)
                continue
            seen.add(ref.node_id)
            child_ids.append(ref.node_id)
            if ref.node_id not in self._records:
                self._records[ref.node_id] = NodeRecord(
                    node_id=ref.node_id, label=ref.label, parent_id=node_id
                )

        record.children = child_ids
        record.expansion_state = ExpansionState.LOADED
        return record

    def children_of(self, node_id: str) -> List[NodeRecord]:
        """Return the loaded children of node_id in listing order."""
        record = self.get(node_id)
        if not record.is_loaded:
            return []
        return [self._records[child_id] for child_id in record.children]

    def parent_of(self, node_id: str) -> Optional[NodeRecord]:
        record = self.get(node_id)
        if record.parent_id is None:
            return None
        return self._records.get(record.parent_id)

    def clear(self) -> None:
        """Tear down the whole tree."""
        self._records.clear()
        self.root_id = None
