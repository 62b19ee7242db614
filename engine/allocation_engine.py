"""Allocation engine for hierarchical budget trees.

Applies edits to any node of an allocation tree and keeps the tree consistent:
- Editing an internal node spreads the new value over its children in
  proportion to their current values (distribution step).
- After every edit each internal node is re-summed from its children,
  bottom-up (rollup step).
- Every touched node gets its variance against its baseline recomputed.

Operations run on a copy of the tree which is swapped in only on success.
"""
from __future__ import annotations

import copy
import logging
import math
import numbers
import threading
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from budget.node import AllocationNode
from budget.tree import build_tree, find_node
from budget.view import NodeRow, flatten, grand_total
from common.errors import EmptyDistributionBase, InvalidAmount
from policy.distribution_policy import DistributionPolicy
from policy.rounding_policy import RoundingPolicy
from policy.variance_policy import VariancePolicy

logger = logging.getLogger(__name__)


def _refresh_variance(node: AllocationNode, variances: VariancePolicy) -> None:
    node.variance = variances.node_variance(node.value, node.baseline_value)
    if node.variance is None:
        logger.warning("Variance skipped for %s: zero baseline", node.id)


def distribute(
    node: AllocationNode,
    new_value: float,
    rounding: RoundingPolicy,
    variances: VariancePolicy,
    recursive: bool = False,
) -> None:
    """Spread ``new_value`` over the children of ``node`` proportionally.

    Each child is scaled by ``new_value / sum(children)`` and rounded. Only
    immediate children are scaled unless ``recursive`` is set, in which case
    each internal child is distributed to its own new value in turn.

    Args:
        node: Internal node receiving the new value.
        new_value: The node's new value.
        rounding: Rounding applied to every child value.
        variances: Variance policy for recomputing touched nodes.
        recursive: Scale all descendants instead of immediate children only.

    Raises:
        EmptyDistributionBase: If the children currently sum to zero.
    """
    total = rounding.sum(c.value for c in node.children or [])
    if total == 0:
        raise EmptyDistributionBase(
            f"Cannot distribute {new_value} over children of {node.id!r}: they sum to zero"
        )

    ratio = new_value / total
    for child in node.children or []:
        child_value = rounding.round(child.value * ratio)
        if recursive and not child.is_leaf:
            if child_value == 0 and rounding.sum(c.value for c in child.children) == 0:
                child.value = 0.0
                _refresh_variance(child, variances)
                continue
            distribute(child, child_value, rounding, variances, recursive=True)
            continue
        child.value = child_value
        _refresh_variance(child, variances)

    node.value = new_value
    _refresh_variance(node, variances)


def rollup(
    roots: Sequence[AllocationNode],
    rounding: RoundingPolicy,
    variances: VariancePolicy,
) -> None:
    """Re-sum every internal node from its children, post-order, and refresh variances."""
    for node in roots:
        if not node.is_leaf:
            rollup(node.children, rounding, variances)
            node.value = rounding.sum(c.value for c in node.children)
        _refresh_variance(node, variances)


def _finite(amount: Any, name: str) -> float:
    # Text is parsed by the caller; only numbers reach the engine.
    if isinstance(amount, bool) or not isinstance(amount, (numbers.Real, Decimal)):
        raise InvalidAmount(f"{name} must be a number, got {amount!r}")
    number = float(amount)
    if not math.isfinite(number):
        raise InvalidAmount(f"{name} must be finite, got {amount!r}")
    return number


class AllocationEngine:
    """Owns one allocation tree and applies edits to it.

    Mutating calls are serialized with a lock; reads return copies, so callers
    can never observe or corrupt a half-edited tree.
    """

    def __init__(
        self,
        roots: Sequence[AllocationNode],
        raw_policy: Optional[Dict[str, Any]] = None,
    ) -> None:
        raw_policy = raw_policy or {}
        self.rounding = RoundingPolicy(raw_policy)
        self.variances = VariancePolicy(raw_policy)
        self.distribution = DistributionPolicy(raw_policy)
        # Fail on bad settings now rather than on the first edit.
        _ = (self.rounding.mode, self.variances.zero_baseline, self.distribution.depth)

        self._lock = threading.RLock()
        working = copy.deepcopy(list(roots))
        rollup(working, self.rounding, self.variances)
        self._roots: List[AllocationNode] = working

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Sequence[Mapping[str, Any]],
        raw_policy: Optional[Dict[str, Any]] = None,
    ) -> AllocationEngine:
        """Build an engine from a plain snapshot (see ``budget.tree.build_tree``)."""
        return cls(build_tree(snapshot), raw_policy)

    def _commit(self, edit: Callable[[List[AllocationNode]], None]) -> List[AllocationNode]:
        with self._lock:
            working = copy.deepcopy(self._roots)
            edit(working)
            rollup(working, self.rounding, self.variances)
            self._roots = working
            return copy.deepcopy(working)

    def _set_value(self, node: AllocationNode, new_value: float) -> None:
        if node.is_leaf:
            node.value = new_value
            _refresh_variance(node, self.variances)
        else:
            distribute(
                node,
                new_value,
                self.rounding,
                self.variances,
                recursive=self.distribution.recursive,
            )

    def apply_absolute(self, node_id: str, new_value: float) -> List[AllocationNode]:
        """Replace the value of ``node_id`` and return the updated tree.

        Raises:
            NodeNotFound: If no node has ``node_id``.
            EmptyDistributionBase: If the node is internal and its children sum to zero.
            InvalidAmount: If ``new_value`` is not a finite number.
        """
        amount = _finite(new_value, "new_value")

        def edit(roots: List[AllocationNode]) -> None:
            node = find_node(roots, node_id)
            logger.debug("apply_absolute %s: %.2f -> %.2f", node_id, node.value, amount)
            self._set_value(node, amount)

        return self._commit(edit)

    def apply_percentage_delta(self, node_id: str, percent: float) -> List[AllocationNode]:
        """Change ``node_id`` by ``percent`` of its current value and return the updated tree.

        Raises:
            NodeNotFound: If no node has ``node_id``.
            EmptyDistributionBase: If the node is internal and its children sum to zero.
            InvalidAmount: If ``percent`` is not a finite number.
        """
        pct = _finite(percent, "percent")

        def edit(roots: List[AllocationNode]) -> None:
            node = find_node(roots, node_id)
            new_value = node.value * (1 + pct / 100)
            logger.debug(
                "apply_percentage_delta %s: %+.2f%% of %.2f -> %.2f",
                node_id, pct, node.value, new_value,
            )
            self._set_value(node, new_value)

        return self._commit(edit)

    def rollup(self) -> List[AllocationNode]:
        """Run the rollup step on its own; a no-op on an already consistent tree."""
        return self._commit(lambda roots: None)

    def snapshot(self) -> List[AllocationNode]:
        with self._lock:
            return copy.deepcopy(self._roots)

    def get(self, node_id: str) -> AllocationNode:
        with self._lock:
            return copy.deepcopy(find_node(self._roots, node_id))

    def rows(self) -> List[NodeRow]:
        with self._lock:
            return flatten(self._roots)

    def grand_total(self) -> float:
        with self._lock:
            return grand_total(self._roots)
