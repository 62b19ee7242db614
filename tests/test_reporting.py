"""Tests for summaries, change explanations and tabular output."""
from __future__ import annotations

import dataclasses

import pytest

from reporting.explainability import diff_trees, explain_changes
from reporting.summary import tree_summary
from reporting.table import COLUMNS, format_table, rows_frame


class TestTreeSummary:
    """Tests for the summary dict."""

    def test_counts(self, engine):
        summary = tree_summary(engine.snapshot())

        assert summary["grand_total"] == 2500
        assert summary["node_count"] == 6
        assert summary["leaf_count"] == 4
        assert summary["max_depth"] == 1
        assert [t["id"] for t in summary["top_level"]] == ["electronics", "furniture"]

    def test_after_edit(self, engine):
        engine.apply_absolute("electronics", 1600)

        summary = tree_summary(engine.snapshot())

        assert summary["grand_total"] == 2600
        assert summary["top_level"][0]["variance"] == pytest.approx(6.67, abs=0.01)


class TestExplainability:
    """Tests for before/after diffs."""

    def test_diff_lists_changed_nodes_in_order(self, engine):
        before = engine.snapshot()
        after = engine.apply_absolute("electronics", 1600)

        changes = diff_trees(before, after)

        assert [c.id for c in changes] == ["electronics", "phones", "laptops"]
        assert changes[0].delta == pytest.approx(100.0)

    def test_no_changes(self, engine):
        before = engine.snapshot()

        assert diff_trees(before, engine.rollup()) == []

    def test_explain_lines(self, engine):
        before = engine.snapshot()
        after = engine.apply_absolute("electronics", 1600)

        lines = explain_changes(diff_trees(before, after))

        assert lines[0] == "Electronics (electronics): 1,500.00 -> 1,600.00  |  variance +6.67%"
        assert "853.33" in lines[1]


class TestTable:
    """Tests for DataFrame and text rendering."""

    def test_rows_frame(self, engine):
        df = rows_frame(engine.rows())

        assert list(df.columns) == COLUMNS
        assert len(df) == 6
        assert df.loc[df["depth"] == 0, "value"].sum() == 2500

    def test_format_table(self, engine):
        lines = format_table(engine.rows(), engine.grand_total())

        assert lines[0].startswith("Label")
        assert any("> Electronics" in line for line in lines)
        assert any(line.startswith("    Phones") for line in lines)
        assert lines[-1].startswith("Grand Total")
        assert "2,500.00" in lines[-1]

    def test_format_table_missing_variance(self, engine):
        rows = engine.rows()
        rows[0] = dataclasses.replace(rows[0], variance=None)

        lines = format_table(rows, engine.grand_total())

        assert "n/a" in lines[2]
