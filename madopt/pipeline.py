"""
Run one or several MAD variants on the same returns matrix.

The variants share nothing but the (read-only) returns matrix, so they are
submitted to a thread pool side by side.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

import pandas as pd

from madopt.config import CardinalitySpec, MinMadSpec, RatioSpec
from madopt.errors import MadOptError
from madopt.extract import PortfolioResult
from madopt.optimizers import opt_max_return_mad_ratio, opt_min_mad, opt_min_mad_cardinality
from madopt.solver import SolverOptions

logger = logging.getLogger(__name__)


def optimize(
    returns: pd.DataFrame,
    spec: MinMadSpec,
    solver_options: SolverOptions | None = None,
) -> PortfolioResult:
    """Dispatch on the spec type (subclasses first)."""
    if not isinstance(spec, MinMadSpec):
        raise TypeError(f"Unknown spec type: {type(spec).__name__}")

    cols = [str(c) for c in returns.columns]
    bounds = spec.bounds_for(cols)

    if isinstance(spec, CardinalitySpec):
        return opt_min_mad_cardinality(
            returns,
            bounds,
            leverage=spec.leverage,
            max_positions=spec.max_positions,
            tolerance=spec.tolerance,
            solver_options=solver_options,
        )
    if isinstance(spec, RatioSpec):
        return opt_max_return_mad_ratio(
            returns,
            bounds,
            leverage=spec.leverage,
            shrinkage_eps=spec.shrinkage_eps,
            solver_options=solver_options,
        )
    return opt_min_mad(returns, bounds, leverage=spec.leverage, solver_options=solver_options)


def run_variants(
    returns: pd.DataFrame,
    specs: dict[str, MinMadSpec],
    solver_options: SolverOptions | None = None,
    max_workers: int | None = None,
) -> tuple[dict[str, PortfolioResult], dict[str, MadOptError]]:
    """
    Solve every named spec in parallel.

    Returns:
      results:  name -> PortfolioResult for the variants that solved
      failures: name -> the MadOptError raised by the ones that did not
    Any other exception propagates.
    """
    results: dict[str, PortfolioResult] = {}
    failures: dict[str, MadOptError] = {}
    if not specs:
        return results, failures

    workers = max_workers or len(specs)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(optimize, returns, spec, solver_options): name
            for name, spec in specs.items()
        }
        for fut in as_completed(futures):
            name = futures[fut]
            try:
                results[name] = fut.result()
            except MadOptError as exc:
                logger.warning("Variant '%s' failed: %s", name, exc)
                failures[name] = exc

    # keep the caller's ordering
    results = {n: results[n] for n in specs if n in results}
    failures = {n: failures[n] for n in specs if n in failures}
    return results, failures
