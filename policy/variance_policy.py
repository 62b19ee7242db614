from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
from common.errors import DivisionByZero

ZERO_BASELINE_MODES = ("raise", "skip")

@dataclass(frozen=True)
class VariancePolicy:
    raw: Dict[str, Any]

    @property
    def zero_baseline(self) -> str:
        mode = str(self.raw.get("variance", {}).get("zero_baseline", "raise"))
        if mode not in ZERO_BASELINE_MODES:
            raise ValueError(f"variance.zero_baseline must be one of {ZERO_BASELINE_MODES}, got {mode!r}")
        return mode

    def node_variance(self, current: float, baseline: float) -> Optional[float]:
        if baseline == 0 and self.zero_baseline == "skip":
            return None
        return variance(current, baseline)

def variance(current: float, baseline: float) -> float:
    if baseline == 0:
        raise DivisionByZero(f"Cannot compute variance of {current} against a zero baseline")
    return (current - baseline) / baseline * 100
