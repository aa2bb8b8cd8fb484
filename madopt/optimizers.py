"""
MAD optimisation routines and shared helpers.

Contains:
- bounds utilities
- one entry point per variant: build the model, solve it, map the solution back

Every optimiser takes a clean returns DataFrame (scenarios x assets) and a list
of per-asset (lower, upper) bounds and returns a PortfolioResult. Failures
raise; there is no fallback portfolio.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from madopt.builders import build_max_ratio, build_min_mad, build_min_mad_cardinality
from madopt.data import as_returns_matrix, mean_vector
from madopt.errors import InputError
from madopt.extract import PortfolioResult, extract_max_ratio, extract_weights
from madopt.solver import SolverOptions, solve

logger = logging.getLogger(__name__)


def build_bounds(
    columns: list[str],
    bounds_dict: dict[str, tuple[float, float]],
    default_bounds: tuple[float, float] = (-1.0, 1.0),
) -> list[tuple[float, float]]:
    return [bounds_dict.get(c, default_bounds) for c in columns]


def validate_bounds(bounds: list[tuple[float, float]]) -> None:
    for lo, hi in bounds:
        if not (np.isfinite(lo) and np.isfinite(hi)):
            raise InputError(f"Bounds must be finite: {(lo, hi)}")
        if lo > hi:
            raise InputError(f"Invalid bounds: {(lo, hi)}")


def _prepare(
    returns: pd.DataFrame,
    bounds: list[tuple[float, float]] | None,
) -> tuple[np.ndarray, list[str], np.ndarray, np.ndarray, np.ndarray]:
    R, cols = as_returns_matrix(returns)

    if bounds is None:
        bounds = build_bounds(cols, {})
    if len(bounds) != len(cols):
        raise InputError(f"Got {len(bounds)} bounds for {len(cols)} assets.")
    validate_bounds(bounds)

    lo = np.array([b[0] for b in bounds], dtype=float)
    hi = np.array([b[1] for b in bounds], dtype=float)

    # computed once per call and passed explicitly to the builder
    mu = mean_vector(R)
    return R, cols, mu, lo, hi


def opt_min_mad(
    returns: pd.DataFrame,
    bounds: list[tuple[float, float]] | None = None,
    leverage: float = 1.0,
    solver_options: SolverOptions | None = None,
) -> PortfolioResult:
    """
    Minimise the sum of absolute deviations subject to sum(w) = leverage and bounds.
    """
    R, cols, mu, lo, hi = _prepare(returns, bounds)

    spec = build_min_mad(R, mu, leverage, lo, hi)
    raw = solve(spec, solver_options)
    result = extract_weights(raw, cols, variant=spec.name, n_scenarios=R.shape[0], params=spec.params)

    logger.info("%s: risk=%.6g, net=%.4f (%.3fs)", spec.name, result.risk, result.weights.sum(), raw.elapsed)
    return result


def opt_min_mad_cardinality(
    returns: pd.DataFrame,
    bounds: list[tuple[float, float]] | None = None,
    leverage: float = 1.0,
    max_positions: int = 15,
    tolerance: float = 0.005,
    solver_options: SolverOptions | None = None,
) -> PortfolioResult:
    """
    Minimum MAD where at most max_positions assets may hold more than +-tolerance.
    """
    R, cols, mu, lo, hi = _prepare(returns, bounds)

    spec = build_min_mad_cardinality(
        R, mu, leverage, lo, hi, max_positions=max_positions, tolerance=tolerance
    )
    raw = solve(spec, solver_options)
    result = extract_weights(raw, cols, variant=spec.name, n_scenarios=R.shape[0], params=spec.params)

    n_active = int((result.weights.abs() > tolerance).sum())
    logger.info(
        "%s: risk=%.6g, active=%d/%d (%.3fs)", spec.name, result.risk, n_active, max_positions, raw.elapsed
    )
    return result


def opt_max_return_mad_ratio(
    returns: pd.DataFrame,
    bounds: list[tuple[float, float]] | None = None,
    leverage: float = 1.0,
    shrinkage_eps: float = 1e-10,
    solver_options: SolverOptions | None = None,
) -> PortfolioResult:
    """
    Maximise mu'w / MAD(w) over the leverage/box-feasible portfolios.

    Solved as an LP in scaled variables; the rescale by the shrinkage factor can
    fail with DegenerateRescale even though the LP itself solved.
    """
    R, cols, mu, lo, hi = _prepare(returns, bounds)

    spec = build_max_ratio(R, mu, leverage, lo, hi)
    raw = solve(spec, solver_options)
    result = extract_max_ratio(
        raw,
        cols,
        shrinkage_index=spec.params["shrinkage_index"],
        variant=spec.name,
        n_scenarios=R.shape[0],
        params=spec.params,
        eps=shrinkage_eps,
    )

    logger.info(
        "%s: risk=%.6g, shrinkage=%.6g (%.3fs)", spec.name, result.risk, result.shrinkage, raw.elapsed
    )
    return result
