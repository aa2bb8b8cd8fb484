"""
Data utilities for the MAD optimisation project.

This module provides helpers to load or download prices, convert them to
log returns, clean the scenario matrix, and validate it before a model is built.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import yfinance as yf

from madopt.errors import InputError

logger = logging.getLogger(__name__)


def load_prices_csv(path: str) -> pd.DataFrame:
    """Read a price table whose first column holds the dates."""
    px = pd.read_csv(path, index_col=0, parse_dates=True)
    px = px.sort_index()
    return px.apply(pd.to_numeric, errors="coerce")


def download_prices(
    tickers: dict[str, str],
    start: str,
    end: str | None = None,
) -> pd.DataFrame:
    """
    Download daily adjusted prices from yfinance.

    tickers maps our asset names to Yahoo symbols; columns come back under our names.
    """
    yf_tickers = list(tickers.values())
    data = yf.download(
        yf_tickers,
        start=start,
        end=end,
        auto_adjust=True,
        progress=False,
    )

    if "Close" in data:
        px = data["Close"]
    elif "Adj Close" in data:
        px = data["Adj Close"]
    else:
        raise ValueError("Could not find Close/Adj Close in yfinance output.")

    if isinstance(px, pd.Series):
        px = px.to_frame(name=yf_tickers[0])

    inv_map = {v: k for k, v in tickers.items()}
    px = px.rename(columns=inv_map)
    px = px.reindex(columns=list(tickers.keys()))
    if getattr(px.index, "tz", None) is not None:
        px.index = px.index.tz_localize(None)

    return px.dropna(how="all")


def log_returns(prices: pd.DataFrame) -> pd.DataFrame:
    """Daily log returns, diff(log(prices)). The leading all-NA row is dropped."""
    if (prices <= 0).any().any():
        raise InputError("Prices must be strictly positive to take logs.")
    rets = np.log(prices).diff()
    return rets.iloc[1:]


def prepare_returns(
    rets: pd.DataFrame,
    period: str | None = None,
    min_obs_per_row: int = 6,
    max_assets: int | None = None,
) -> pd.DataFrame:
    """
    Cleans the returns matrix:
    - restricts to a date period (e.g. "2019") if given
    - drops rows with fewer than min_obs_per_row observed assets
    - drops assets with any missing value left
    - keeps the first max_assets columns (if provided)
    """
    if rets.empty:
        raise InputError("Returns DataFrame is empty.")

    out = rets.copy()
    if period is not None:
        out = out.loc[period]

    n_obs = out.notna().sum(axis=1)
    out = out.loc[n_obs >= int(min_obs_per_row)]
    out = out.loc[:, out.notna().all(axis=0)]

    if max_assets is not None:
        out = out.iloc[:, : int(max_assets)]

    if out.empty or out.shape[1] == 0:
        raise InputError("No data left after filtering for period / missing values.")

    logger.info("Prepared returns: %d scenarios x %d assets", out.shape[0], out.shape[1])
    return out


def as_returns_matrix(
    returns: pd.DataFrame | np.ndarray,
    labels: list[str] | None = None,
) -> tuple[np.ndarray, list[str]]:
    """
    Validate a scenario-returns matrix and return (R, labels).

    R is a read-only float copy, S x N. Missing values, empty shapes and
    label mismatches raise InputError.
    """
    try:
        if isinstance(returns, pd.DataFrame):
            if labels is None:
                labels = [str(c) for c in returns.columns]
            R = returns.to_numpy(dtype=float, copy=True)
        else:
            R = np.array(returns, dtype=float, copy=True)
    except (TypeError, ValueError) as exc:
        raise InputError(f"Returns matrix is not numeric: {exc}") from exc

    if R.ndim != 2:
        raise InputError(f"Returns matrix must be 2-D, got shape {R.shape}")

    S, N = R.shape
    if S == 0 or N == 0:
        raise InputError(f"Returns matrix has zero rows or columns: shape {R.shape}")

    if np.isnan(R).any():
        bad = int(np.isnan(R).sum())
        raise InputError(f"Returns matrix has {bad} missing values.")
    if not np.isfinite(R).all():
        raise InputError("Returns matrix has non-finite values.")

    if labels is None:
        labels = [f"asset_{i}" for i in range(N)]
    labels = list(labels)
    if len(labels) != N:
        raise InputError(f"Got {len(labels)} labels for {N} assets.")
    if len(set(labels)) != N:
        raise InputError("Asset labels must be unique.")

    R.setflags(write=False)
    return R, labels


def mean_vector(R: np.ndarray) -> np.ndarray:
    mu = R.mean(axis=0)
    mu.setflags(write=False)
    return mu
