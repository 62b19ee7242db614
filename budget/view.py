from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
from budget.node import AllocationNode
from budget.tree import walk
from policy.rounding_policy import money_sum

@dataclass(frozen=True)
class NodeRow:
    """Read-only row for rendering layers."""

    id: str
    label: str
    value: float
    baseline_value: float
    variance: Optional[float]
    depth: int
    has_children: bool

def flatten(roots: Sequence[AllocationNode]) -> List[NodeRow]:
    return [
        NodeRow(
            id=n.id,
            label=n.label,
            value=n.value,
            baseline_value=n.baseline_value,
            variance=n.variance,
            depth=depth,
            has_children=not n.is_leaf,
        )
        for n, depth in walk(roots)
    ]

def grand_total(roots: Sequence[AllocationNode]) -> float:
    return money_sum(n.value for n in roots)
