"""Tabular rendering of flattened allocation rows."""
from __future__ import annotations

import dataclasses
from typing import List, Optional, Sequence

import pandas as pd

from budget.view import NodeRow

COLUMNS = [f.name for f in dataclasses.fields(NodeRow)]


def rows_frame(rows: Sequence[NodeRow]) -> pd.DataFrame:
    """One DataFrame row per node, columns in ``NodeRow`` field order."""
    return pd.DataFrame([dataclasses.asdict(r) for r in rows], columns=COLUMNS)


def _format_variance(variance: Optional[float]) -> str:
    if variance is None or pd.isna(variance):
        return "n/a"
    return f"{variance:.2f}%"


def format_table(rows: Sequence[NodeRow], total: float, indent: int = 2) -> List[str]:
    """Render rows as text lines: indented labels, values, variance, grand total."""
    labels = [" " * (indent * r.depth) + ("> " if r.has_children else "  ") + r.label for r in rows]
    width = max([len(lbl) for lbl in labels] + [len("Grand Total"), len("Label")])

    lines = [f"{'Label':<{width}}  {'Value':>12}  {'Variance %':>10}"]
    lines.append("-" * len(lines[0]))
    for lbl, r in zip(labels, rows):
        lines.append(f"{lbl:<{width}}  {r.value:>12,.2f}  {_format_variance(r.variance):>10}")
    lines.append("-" * len(lines[0]))
    lines.append(f"{'Grand Total':<{width}}  {total:>12,.2f}")
    return lines
