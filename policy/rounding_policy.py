from __future__ import annotations
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Dict, Iterable

ROUNDING_MODES = {"half_up": ROUND_HALF_UP, "half_even": ROUND_HALF_EVEN}

@dataclass(frozen=True)
class RoundingPolicy:
    raw: Dict[str, Any]

    @property
    def decimals(self) -> int:
        return int(self.raw.get("rounding", {}).get("decimals", 2))

    @property
    def mode(self) -> str:
        mode = str(self.raw.get("rounding", {}).get("mode", "half_up"))
        if mode not in ROUNDING_MODES:
            raise ValueError(f"rounding.mode must be one of {tuple(ROUNDING_MODES)}, got {mode!r}")
        return mode

    def round(self, value: float) -> float:
        return round_fixed(value, self.decimals, self.mode)

    def sum(self, values: Iterable[float]) -> float:
        return money_sum(values)

def _to_decimal(value: float) -> Decimal:
    # str() keeps the shortest repr, so 1.005 quantizes as written rather than as 1.00499...
    return Decimal(str(value))

def round_fixed(value: float, decimals: int = 2, mode: str = "half_up") -> float:
    quantum = Decimal(1).scaleb(-decimals)
    d = _to_decimal(value)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the kept decimals
        ctx.prec = max(28, d.adjusted() + decimals + 2)
        return float(d.quantize(quantum, rounding=ROUNDING_MODES[mode]))

def money_sum(values: Iterable[float]) -> float:
    return float(sum((_to_decimal(v) for v in values), Decimal(0)))
