from __future__ import annotations


class AllocationError(Exception):
    """Base error for allocation tree operations."""

    pass


class NodeNotFound(AllocationError, KeyError):
    """Raised when an operation addresses an id that is not in the tree."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node {self.node_id!r} not found in tree"


class EmptyDistributionBase(AllocationError, ZeroDivisionError):
    """Raised when a value must be spread over children that sum to zero."""

    pass


class DivisionByZero(AllocationError, ZeroDivisionError):
    """Raised when variance is requested against a zero baseline."""

    pass


class InvalidAmount(AllocationError, ValueError):
    """Raised when an amount passed to the engine is not a finite number."""

    pass


class InvalidTree(AllocationError, ValueError):
    """Raised when a tree snapshot cannot be built."""

    pass
