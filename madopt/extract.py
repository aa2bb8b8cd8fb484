"""Map raw solver vectors back to named portfolio weights and a MAD risk figure."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from madopt.errors import DegenerateRescale
from madopt.solver import RawSolution


@dataclass(frozen=True, eq=False)
class PortfolioResult:
    """
    weights:     Series indexed by asset label
    risk:        sum over scenarios of |centered portfolio return| (not divided by S)
    shrinkage:   Charnes-Cooper kappa, only set by the ratio variant
    """
    weights: pd.Series
    risk: float
    shrinkage: float | None = None
    variant: str = ""
    n_scenarios: int = 0
    info: dict = field(default_factory=dict)

    @property
    def mean_risk(self) -> float:
        """Mean absolute deviation, risk / S."""
        if self.n_scenarios <= 0:
            return float("nan")
        return self.risk / self.n_scenarios


def _info(raw: RawSolution, params: dict | None) -> dict:
    return {
        "status": raw.status,
        "message": raw.message,
        "elapsed": raw.elapsed,
        "objective": raw.objective,
        **(params or {}),
    }


def extract_weights(
    raw: RawSolution,
    labels: list[str],
    variant: str = "",
    n_scenarios: int = 0,
    params: dict | None = None,
) -> PortfolioResult:
    """
    Read the first N columns as weights; the objective is the risk.

    Used by both minimum-MAD variants: deviation and selection columns are discarded.
    """
    N = len(labels)
    w = np.array(raw.values[:N], dtype=float)
    return PortfolioResult(
        weights=pd.Series(w, index=list(labels), name=variant or "weight"),
        risk=float(raw.objective),
        variant=variant,
        n_scenarios=int(n_scenarios),
        info=_info(raw, params),
    )


def extract_max_ratio(
    raw: RawSolution,
    labels: list[str],
    shrinkage_index: int,
    variant: str = "",
    n_scenarios: int = 0,
    params: dict | None = None,
    eps: float = 1e-10,
) -> PortfolioResult:
    """
    Undo the Charnes-Cooper substitution: w = y / kappa, risk = objective / kappa.

    Raises DegenerateRescale when kappa is not above eps or not finite. A
    negative kappa (possible when every box is pinned) would flip the sign of
    the risk.
    """
    kappa = float(raw.values[shrinkage_index])
    if not np.isfinite(kappa) or kappa <= eps:
        raise DegenerateRescale(kappa, eps)

    N = len(labels)
    w = np.array(raw.values[:N], dtype=float) / kappa
    return PortfolioResult(
        weights=pd.Series(w, index=list(labels), name=variant or "weight"),
        risk=float(raw.objective) / kappa,
        shrinkage=kappa,
        variant=variant,
        n_scenarios=int(n_scenarios),
        info=_info(raw, params),
    )
