# madopt/config.py

from __future__ import annotations

from dataclasses import dataclass, field

from madopt.optimizers import build_bounds


@dataclass(frozen=True)
class MinMadSpec:
    """
    Minimum-MAD portfolio.

    - leverage:        target NET exposure, sum(w) = leverage (signed, not gross)
    - default_bounds:  (lower, upper) box applied to every asset
    - bounds:          optional per-asset overrides {asset: (lower, upper)}
    """
    leverage: float = 1.5
    default_bounds: tuple[float, float] = (-1.0, 1.0)
    bounds: dict[str, tuple[float, float]] = field(default_factory=dict)

    def bounds_for(self, columns: list[str]) -> list[tuple[float, float]]:
        return build_bounds(columns, self.bounds, self.default_bounds)


@dataclass(frozen=True)
class CardinalitySpec(MinMadSpec):
    """
    Minimum-MAD with a soft cardinality limit.

    Unselected assets are held inside [-tolerance, tolerance] rather than at exactly 0.
    """
    max_positions: int = 15
    tolerance: float = 0.005


@dataclass(frozen=True)
class RatioSpec(MinMadSpec):
    """
    Maximum expected-return / MAD ratio (Charnes-Cooper LP).

    shrinkage_eps: kappa at or below this magnitude is treated as zero.
    """
    shrinkage_eps: float = 1e-10
