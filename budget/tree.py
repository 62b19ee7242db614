"""Allocation tree construction and traversal.

Builds ``AllocationNode`` trees from plain snapshots (lists of nested mappings,
as loaded from ``config/budget_tree.yaml``) and provides the lookup and walk
helpers the engine and the read view share.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from budget.node import AllocationNode
from common.errors import InvalidTree, NodeNotFound

logger = logging.getLogger(__name__)


def _as_number(raw: Any, node_id: str, key: str) -> float:
    """Coerce a snapshot field to a finite float."""
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise InvalidTree(f"Node {node_id!r}: {key} must be numeric, got {raw!r}") from None
    if not math.isfinite(number):
        raise InvalidTree(f"Node {node_id!r}: {key} must be finite, got {raw!r}")
    return number


def _build_node(entry: Mapping[str, Any], seen: Set[str]) -> AllocationNode:
    if "id" not in entry:
        raise InvalidTree(f"Snapshot entry without an id: {dict(entry)!r}")
    node_id = str(entry["id"])
    if node_id in seen:
        raise InvalidTree(f"Duplicate node id {node_id!r}")
    seen.add(node_id)

    children: Optional[List[AllocationNode]] = None
    raw_children = entry.get("children") or []
    if raw_children:
        children = [_build_node(c, seen) for c in raw_children]

    if entry.get("value") is not None:
        value = _as_number(entry["value"], node_id, "value")
    elif children is not None:
        # Internal nodes may omit their value; it is the sum of their children.
        value = sum(c.value for c in children)
    else:
        raise InvalidTree(f"Leaf node {node_id!r} has no value")

    baseline = value
    if entry.get("baseline") is not None:
        baseline = _as_number(entry["baseline"], node_id, "baseline")

    return AllocationNode(
        id=node_id,
        label=str(entry.get("label", node_id)),
        value=value,
        baseline_value=baseline,
        children=children,
    )


def build_tree(snapshot: Sequence[Mapping[str, Any]]) -> List[AllocationNode]:
    """Build the top-level nodes of a tree from a snapshot.

    Each entry needs an ``id`` and, for leaves, a ``value``. ``label`` defaults
    to the id, ``baseline`` defaults to the value, and an empty ``children``
    list is treated as a leaf.

    Raises:
        InvalidTree: On duplicate ids, missing ids or values, or non-numeric amounts.
    """
    seen: Set[str] = set()
    roots = [_build_node(entry, seen) for entry in snapshot]
    logger.debug("Built allocation tree with %d nodes", len(seen))
    return roots


def walk(roots: Sequence[AllocationNode], depth: int = 0) -> Iterator[Tuple[AllocationNode, int]]:
    """Yield ``(node, depth)`` pairs in pre-order."""
    for node in roots:
        yield node, depth
        if node.children:
            yield from walk(node.children, depth + 1)


def find_node(roots: Sequence[AllocationNode], node_id: str) -> AllocationNode:
    """Return the node with ``node_id``, raising ``NodeNotFound`` if absent."""
    for node, _ in walk(roots):
        if node.id == node_id:
            return node
    raise NodeNotFound(node_id)


def index_by_id(roots: Sequence[AllocationNode]) -> Dict[str, AllocationNode]:
    return {node.id: node for node, _ in walk(roots)}


def to_snapshot(roots: Sequence[AllocationNode]) -> List[Dict[str, Any]]:
    """Inverse of ``build_tree``: plain mappings with current values and baselines."""
    out: List[Dict[str, Any]] = []
    for node in roots:
        entry: Dict[str, Any] = {
            "id": node.id,
            "label": node.label,
            "value": node.value,
            "baseline": node.baseline_value,
        }
        if node.children:
            entry["children"] = to_snapshot(node.children)
        out.append(entry)
    return out
