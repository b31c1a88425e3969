# SPDX-License-Identifier: MIT
"""Tests for the NodeRecord store and its expansion state transitions."""

import pytest

from nodewatch.errors import InvalidStateTransition, NodeNotFound
from nodewatch.models import ChildRef, ExpansionState, is_transition_allowed
from nodewatch.store import NodeStore


@pytest.fixture
def store() -> NodeStore:
    store = NodeStore()
    store.create_root("RootFolder", "RootFolder")
    return store


class TestTransitionTable:
    """Tests for is_transition_allowed."""

    @pytest.mark.parametrize(
        "current, requested",
        [
            (ExpansionState.UNLOADED, ExpansionState.LOADING),
            (ExpansionState.LOADING, ExpansionState.LOADED),
            (ExpansionState.LOADING, ExpansionState.FAILED),
            (ExpansionState.FAILED, ExpansionState.LOADING),
        ],
    )
    def test_legal_transitions(self, current, requested):
        assert is_transition_allowed(current, requested) is True

    @pytest.mark.parametrize(
        "current, requested",
        [
            (ExpansionState.UNLOADED, ExpansionState.LOADED),
            (ExpansionState.UNLOADED, ExpansionState.FAILED),
            (ExpansionState.LOADING, ExpansionState.LOADING),
            (ExpansionState.LOADED, ExpansionState.UNLOADED),
            (ExpansionState.FAILED, ExpansionState.LOADED),
        ],
    )
    def test_illegal_transitions(self, current, requested):
        assert is_transition_allowed(current, requested) is False

    def test_reload_of_loaded_node_needs_force(self):
        assert is_transition_allowed(ExpansionState.LOADED, ExpansionState.LOADING) is False
        assert is_transition_allowed(
            ExpansionState.LOADED, ExpansionState.LOADING, force=True
        ) is True


class TestNodeStoreLookup:
    """Tests for get/find/create_root."""

    def test_root_is_unloaded_without_parent(self, store: NodeStore):
        root = store.get("RootFolder")
        assert root.expansion_state is ExpansionState.UNLOADED
        assert root.is_root
        assert store.root_id == "RootFolder"

    def test_get_unknown_raises_not_found(self, store: NodeStore):
        with pytest.raises(NodeNotFound):
            store.get("missing")

    def test_not_found_is_a_key_error(self, store: NodeStore):
        with pytest.raises(KeyError):
            store.get("missing")

    def test_find_unknown_returns_none(self, store: NodeStore):
        assert store.find("missing") is None

    def test_second_root_rejected(self, store: NodeStore):
        with pytest.raises(ValueError):
            store.create_root("Other", "Other")

    def test_create_root_again_returns_existing(self, store: NodeStore):
        assert store.create_root("RootFolder", "RootFolder") is store.get("RootFolder")


class TestUpsert:
    """Tests for upsert field merging and transition enforcement."""

    def test_upsert_merges_fields(self, store: NodeStore):
        record = store.upsert("RootFolder", label="Root", is_monitored=True)
        assert record.label == "Root"
        assert record.is_monitored is True

    def test_upsert_creates_missing_record(self, store: NodeStore):
        record = store.upsert("new", label="New node")
        assert "new" in store
        assert record.expansion_state is ExpansionState.UNLOADED

    def test_illegal_transition_leaves_record_unchanged(self, store: NodeStore):
        with pytest.raises(InvalidStateTransition):
            store.upsert("RootFolder", label="changed", expansion_state=ExpansionState.LOADED)

        root = store.get("RootFolder")
        assert root.label == "RootFolder"
        assert root.expansion_state is ExpansionState.UNLOADED

    def test_second_loading_rejected(self, store: NodeStore):
        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        with pytest.raises(InvalidStateTransition):
            store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)

    def test_failed_can_retry(self, store: NodeStore):
        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        store.upsert("RootFolder", expansion_state=ExpansionState.FAILED)
        record = store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        assert record.expansion_state is ExpansionState.LOADING

    def test_forced_reload_of_loaded_node(self, store: NodeStore):
        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        store.set_children("RootFolder", [])
        with pytest.raises(InvalidStateTransition):
            store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        record = store.upsert("RootFolder", expansion_state=ExpansionState.LOADING, force=True)
        assert record.expansion_state is ExpansionState.LOADING

    def test_unknown_field_rejected(self, store: NodeStore):
        with pytest.raises(TypeError):
            store.upsert("RootFolder", children=["x"])

    def test_accepts_state_value_strings(self, store: NodeStore):
        record = store.upsert("RootFolder", expansion_state="loading")
        assert record.expansion_state is ExpansionState.LOADING


class TestSetChildren:
    """Tests for set_children."""

    def test_set_children_on_unloaded_rejected(self, store: NodeStore):
        with pytest.raises(InvalidStateTransition):
            store.set_children("RootFolder", [ChildRef("X", "X")])

        root = store.get("RootFolder")
        assert root.expansion_state is ExpansionState.UNLOADED
        assert root.children == []
        assert "X" not in store

    def test_set_children_registers_unloaded_children(self, store: NodeStore):
        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        root = store.set_children("RootFolder", [ChildRef("X", "Node X"), ChildRef("Y", "Node Y")])

        assert root.expansion_state is ExpansionState.LOADED
        assert root.children == ["X", "Y"]
        children = store.children_of("RootFolder")
        assert [c.label for c in children] == ["Node X", "Node Y"]
        assert all(c.expansion_state is ExpansionState.UNLOADED for c in children)
        assert store.parent_of("X").node_id == "RootFolder"

    def test_duplicate_child_ids_collapse(self, store: NodeStore):
        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        root = store.set_children(
            "RootFolder", [ChildRef("X", "first"), ChildRef("X", "second")]
        )
        assert root.children == ["X"]
        assert store.get("X").label == "first"

    def test_known_child_keeps_its_record(self, store: NodeStore):
        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING)
        store.set_children("RootFolder", [ChildRef("X", "X")])
        store.upsert("X", is_monitored=True)

        store.upsert("RootFolder", expansion_state=ExpansionState.LOADING, force=True)
        store.set_children("RootFolder", [ChildRef("X", "X renamed")])

        assert store.get("X").is_monitored is True
        assert store.get("X").label == "X"

    def test_children_of_unloaded_is_empty(self, store: NodeStore):
        assert store.children_of("RootFolder") == []

    def test_clear_tears_down_tree(self, store: NodeStore):
        store.clear()
        assert len(store) == 0
        assert store.root_id is None
