from __future__ import annotations
from typing import Dict, Any, Sequence
from budget.node import AllocationNode
from budget.tree import walk
from budget.view import grand_total

def tree_summary(roots: Sequence[AllocationNode]) -> Dict[str, Any]:
    nodes = list(walk(roots))
    return {
        "grand_total": grand_total(roots),
        "node_count": len(nodes),
        "leaf_count": sum(1 for n, _ in nodes if n.is_leaf),
        "max_depth": max((d for _, d in nodes), default=0),
        "top_level": [{"id": n.id, "label": n.label, "value": n.value, "variance": n.variance} for n in roots],
    }
