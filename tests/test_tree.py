"""Tests for tree construction, traversal and the read view."""
from __future__ import annotations

import copy
import dataclasses

import pytest

from budget.node import AllocationNode
from budget.tree import build_tree, find_node, to_snapshot, walk
from budget.view import flatten, grand_total
from common.errors import InvalidTree, NodeNotFound
from tests._trees import SNAPSHOT


class TestBuildTree:
    """Tests for building nodes from snapshots."""

    def test_values_double_as_baselines(self):
        roots = build_tree(SNAPSHOT)

        for node, _ in walk(roots):
            assert node.baseline_value == node.value

    def test_explicit_baseline(self):
        roots = build_tree([{"id": "x", "value": 120, "baseline": 100}])

        assert roots[0].value == 120
        assert roots[0].baseline_value == 100

    def test_label_defaults_to_id(self):
        assert build_tree([{"id": "x", "value": 1}])[0].label == "x"

    def test_empty_children_is_leaf(self):
        """An explicit empty list is normalised to a leaf."""
        node = build_tree([{"id": "x", "value": 1, "children": []}])[0]

        assert node.is_leaf
        assert node.children is None

    def test_internal_value_defaults_to_children_sum(self):
        node = build_tree([{"id": "p", "children": [{"id": "c1", "value": 2}, {"id": "c2", "value": 3}]}])[0]

        assert node.value == 5
        assert node.baseline_value == 5

    def test_duplicate_id_rejected(self):
        """Ids are unique across the whole tree, not just among siblings."""
        snapshot = copy.deepcopy(SNAPSHOT)
        snapshot[1]["children"][0]["id"] = "phones"

        with pytest.raises(InvalidTree, match="phones"):
            build_tree(snapshot)

    def test_leaf_without_value_rejected(self):
        with pytest.raises(InvalidTree):
            build_tree([{"id": "x"}])

    def test_missing_id_rejected(self):
        with pytest.raises(InvalidTree):
            build_tree([{"value": 3}])

    @pytest.mark.parametrize("bad", ["lots", float("nan"), [1]])
    def test_bad_value_rejected(self, bad):
        with pytest.raises(InvalidTree):
            build_tree([{"id": "x", "value": bad}])

    def test_snapshot_round_trip(self):
        roots = build_tree(SNAPSHOT)

        assert build_tree(to_snapshot(roots)) == roots


class TestAllocationNode:
    """Tests for the node model."""

    def test_baseline_is_immutable(self):
        node = AllocationNode("x", "X", 10, 10)

        with pytest.raises(AttributeError, match="immutable"):
            node.baseline_value = 20

    def test_value_is_mutable(self):
        node = AllocationNode("x", "X", 10, 10)
        node.value = 20

        assert node.value == 20

    def test_deepcopy_keeps_baseline(self):
        node = AllocationNode("x", "X", 10, 7)

        assert copy.deepcopy(node).baseline_value == 7


class TestTraversal:
    """Tests for walk and find_node."""

    def test_walk_is_pre_order_with_depth(self):
        pairs = [(n.id, d) for n, d in walk(build_tree(SNAPSHOT))]

        assert pairs == [
            ("electronics", 0), ("phones", 1), ("laptops", 1),
            ("furniture", 0), ("tables", 1), ("chairs", 1),
        ]

    def test_find_nested_node(self):
        assert find_node(build_tree(SNAPSHOT), "chairs").value == 700

    def test_find_missing_node(self):
        with pytest.raises(NodeNotFound):
            find_node(build_tree(SNAPSHOT), "ghost")


class TestReadView:
    """Tests for flattened rows and the grand total."""

    def test_rows(self, engine):
        rows = flatten(engine.snapshot())

        assert [r.id for r in rows] == ["electronics", "phones", "laptops", "furniture", "tables", "chairs"]
        assert [r.depth for r in rows] == [0, 1, 1, 0, 1, 1]
        assert [r.has_children for r in rows] == [True, False, False, True, False, False]
        assert rows[0].label == "Electronics"
        assert rows[0].baseline_value == 1500

    def test_rows_are_read_only(self, engine):
        row = engine.rows()[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            row.value = 0

    def test_grand_total_sums_top_level_only(self, engine):
        assert grand_total(engine.snapshot()) == 2500

    def test_grand_total_follows_edits(self, engine):
        engine.apply_absolute("electronics", 1600)

        assert engine.grand_total() == 2600
