from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
from budget.node import AllocationNode
from budget.tree import index_by_id, walk

@dataclass(frozen=True)
class NodeChange:
    id: str
    label: str
    old_value: float
    new_value: float
    variance: Optional[float]

    @property
    def delta(self) -> float:
        return self.new_value - self.old_value

def diff_trees(
    before: Sequence[AllocationNode],
    after: Sequence[AllocationNode],
    tol: float = 1e-9,
) -> List[NodeChange]:
    """Nodes whose value changed, in pre-order of ``after``."""
    old = index_by_id(before)
    changes: List[NodeChange] = []
    for node, _ in walk(after):
        prev = old.get(node.id)
        if prev is None or abs(prev.value - node.value) <= tol:
            continue
        changes.append(NodeChange(node.id, node.label, prev.value, node.value, node.variance))
    return changes

def explain_changes(changes: List[NodeChange]) -> List[str]:
    lines = []
    for c in changes:
        var = "n/a" if c.variance is None else f"{c.variance:+.2f}%"
        lines.append(f"{c.label} ({c.id}): {c.old_value:,.2f} -> {c.new_value:,.2f}  |  variance {var}")
    return lines
