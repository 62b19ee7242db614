from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

DISTRIBUTION_DEPTHS = ("immediate", "recursive")

@dataclass(frozen=True)
class DistributionPolicy:
    raw: Dict[str, Any]

    @property
    def depth(self) -> str:
        depth = str(self.raw.get("distribution", {}).get("depth", "immediate"))
        if depth not in DISTRIBUTION_DEPTHS:
            raise ValueError(f"distribution.depth must be one of {DISTRIBUTION_DEPTHS}, got {depth!r}")
        return depth

    @property
    def recursive(self) -> bool:
        return self.depth == "recursive"
