from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional

@dataclass
class AllocationNode:
    id: str
    label: str
    value: float
    baseline_value: float  # fixed at construction
    children: Optional[List[AllocationNode]] = None  # None marks a leaf
    variance: Optional[float] = None  # percent, derived

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "baseline_value" and "baseline_value" in self.__dict__:
            raise AttributeError(f"baseline_value of {self.id!r} is immutable")
        super().__setattr__(name, value)

    @property
    def is_leaf(self) -> bool:
        return self.children is None
