"""Reporting helpers (risk contributions, portfolio summary, Excel export)."""

from __future__ import annotations

import numpy as np
import pandas as pd

from madopt.extract import PortfolioResult


def risk_contributions(returns: pd.DataFrame, weights: pd.Series) -> pd.Series:
    """
    Per-scenario |sum_i (r_si - mu_i) * w_i|.

    Sums to the risk reported by the minimum-MAD variants.
    """
    w = weights.reindex(returns.columns).astype(float)
    if w.isna().any():
        missing = list(w.index[w.isna()])
        raise ValueError(f"Weights missing for assets: {missing}")

    centered = returns - returns.mean()
    return (centered @ w).abs().rename("abs_deviation")


def portfolio_summary(
    returns: pd.DataFrame,
    result: PortfolioResult,
    tolerance: float = 1e-6,
) -> pd.Series:
    w = result.weights.reindex(returns.columns).astype(float)
    S = len(returns)

    exp_ret = float(returns.mean() @ w)
    risk = float(result.risk)
    mad = risk / S if S > 0 else np.nan
    ratio = exp_ret / risk if risk > 1e-12 else np.nan

    return pd.Series(
        {
            "expected_return": exp_ret,
            "risk_sum_abs_dev": risk,
            "mad": mad,
            "return_to_mad": ratio,
            "net_exposure": float(w.sum()),
            "gross_exposure": float(w.abs().sum()),
            "active_positions": int((w.abs() > tolerance).sum()),
            "shrinkage": np.nan if result.shrinkage is None else float(result.shrinkage),
            "solve_seconds": float(result.info.get("elapsed", np.nan)),
            "scenarios": S,
        },
        name=result.variant or "portfolio",
    )


def export_excel(
    path: str,
    returns: pd.DataFrame,
    results: dict[str, PortfolioResult],
    extra_sheets: dict[str, pd.DataFrame] | None = None,
) -> None:
    weights = pd.DataFrame({name: r.weights for name, r in results.items()})
    weights.index.name = "asset"

    summary = pd.DataFrame({name: portfolio_summary(returns, r) for name, r in results.items()})
    contrib = pd.DataFrame({name: risk_contributions(returns, r.weights) for name, r in results.items()})

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        weights.to_excel(writer, sheet_name="Weights", index=True)
        summary.to_excel(writer, sheet_name="Summary", index=True)
        contrib.to_excel(writer, sheet_name="Risk_Contributions", index=True)
        returns.to_excel(writer, sheet_name="Returns", index=True)

        if extra_sheets:
            for name, df in extra_sheets.items():
                df.to_excel(writer, sheet_name=str(name)[:31], index=True)
