"""
Model builders for the three MAD variants.

Each builder is a pure function of (R, mu, parameters) and returns a fresh
ModelSpec. Column layout:

  min MAD            [w_1..w_N, d_1..d_S]
  min MAD + card.    [w_1..w_N, d_1..d_S, z_1..z_N]
  max return / MAD   [y_1..y_N, e_1..e_S, kappa]

Absolute deviations use the usual two-row encoding: for every scenario s,
  Rc_s'w + d_s >= 0  and  -Rc_s'w + d_s >= 0
so that at the minimum d_s = |Rc_s'w|, where Rc = R - mu.
"""

from __future__ import annotations

import logging

import numpy as np

from madopt.errors import InputError
from madopt.model import (
    ModelSpec,
    Relation,
    Sense,
    VariableKind,
    broadcast_bounds,
    centered_returns,
    diag_block,
    identity_block,
    ones_row,
    stack_rows,
    zero_block,
)

logger = logging.getLogger(__name__)

MIN_MAD = "min_mad"
MIN_MAD_CARDINALITY = "min_mad_cardinality"
MAX_RATIO = "max_ratio"


def _check_inputs(R: np.ndarray, mu: np.ndarray) -> tuple[int, int]:
    R = np.asarray(R)
    mu = np.asarray(mu)
    if R.ndim != 2 or R.shape[0] == 0 or R.shape[1] == 0:
        raise InputError(f"Returns matrix must be non-empty 2-D, got shape {R.shape}")
    S, N = R.shape
    if mu.shape != (N,):
        raise InputError(f"Mean vector has shape {mu.shape}, expected ({N},)")
    return S, N


def _check_leverage(leverage) -> float:
    try:
        lev = float(leverage)
    except (TypeError, ValueError) as exc:
        raise InputError(f"leverage must be a number, got {leverage!r}") from exc
    if not np.isfinite(lev):
        raise InputError(f"leverage must be finite, got {leverage!r}")
    return lev


def _box(lower, upper, n: int) -> tuple[np.ndarray, np.ndarray]:
    try:
        lo = broadcast_bounds(lower, n)
        hi = broadcast_bounds(upper, n)
    except ValueError as exc:
        raise InputError(str(exc)) from exc
    if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))):
        raise InputError("Box bounds must be finite.")
    if np.any(lo > hi):
        raise InputError(f"Invalid box bounds: lower {lo.tolist()} > upper {hi.tolist()}")
    return lo, hi


def _deviation_rows(Rc: np.ndarray, trailing: int = 0) -> np.ndarray:
    """The 2S rows [+Rc | I | 0] and [-Rc | I | 0]; trailing = number of extra zero columns."""
    S = Rc.shape[0]
    upper = np.hstack([Rc, identity_block(S), zero_block(S, trailing)])
    lower = np.hstack([-Rc, identity_block(S), zero_block(S, trailing)])
    return stack_rows(upper, lower)


def build_min_mad(
    R: np.ndarray,
    mu: np.ndarray,
    leverage: float,
    lower=-1.0,
    upper=1.0,
) -> ModelSpec:
    """
    Minimise sum_s d_s subject to sum_i w_i = leverage and lower <= w <= upper.

    The objective is the plain sum of deviations (not divided by S).
    """
    S, N = _check_inputs(R, mu)
    lev = _check_leverage(leverage)
    lo, hi = _box(lower, upper, N)
    Rc = centered_returns(R, mu)

    obj = np.concatenate([np.zeros(N), np.ones(S)])

    A = stack_rows(
        np.hstack([ones_row(N), zero_block(1, S)]),
        _deviation_rows(Rc),
    )
    relations = (Relation.EQ,) + (Relation.GE,) * (2 * S)
    rhs = np.concatenate([[lev], np.zeros(2 * S)])

    spec = ModelSpec(
        objective=obj,
        A=A,
        relations=relations,
        rhs=rhs,
        lower=np.concatenate([lo, np.zeros(S)]),
        upper=np.concatenate([hi, np.full(S, np.inf)]),
        kinds=(VariableKind.CONTINUOUS,) * (N + S),
        sense=Sense.MIN,
        name=MIN_MAD,
        params={"leverage": lev, "lower": lo.tolist(), "upper": hi.tolist()},
    )
    logger.debug("Built %s: %d rows x %d cols", MIN_MAD, spec.n_rows, spec.n_cols)
    return spec


def build_min_mad_cardinality(
    R: np.ndarray,
    mu: np.ndarray,
    leverage: float,
    lower=-1.0,
    upper=1.0,
    max_positions: int = 15,
    tolerance: float = 0.005,
) -> ModelSpec:
    """
    Minimum MAD with a soft cardinality limit.

    Adds binaries z_i with sum(z) <= max_positions and the gating rows
        w_i - lower_i * z_i >= -tolerance
       -w_i + upper_i * z_i >= -tolerance
    z_i = 0 confines w_i to [-tolerance, tolerance]; z_i = 1 leaves the box as is.
    """
    S, N = _check_inputs(R, mu)
    lev = _check_leverage(leverage)
    lo, hi = _box(lower, upper, N)
    try:
        k = float(max_positions)
        tau = float(tolerance)
    except (TypeError, ValueError) as exc:
        raise InputError(f"max_positions and tolerance must be numbers: {exc}") from exc
    if not np.isfinite(k) or int(k) != k or k < 0:
        raise InputError(f"max_positions must be a non-negative integer, got {max_positions!r}")
    if not np.isfinite(tau) or tau < 0:
        raise InputError(f"tolerance must be >= 0, got {tolerance!r}")
    Rc = centered_returns(R, mu)

    obj = np.concatenate([np.zeros(N), np.ones(S), np.zeros(N)])

    A = stack_rows(
        np.hstack([ones_row(N), zero_block(1, S), zero_block(1, N)]),
        np.hstack([zero_block(1, N), zero_block(1, S), ones_row(N)]),
        _deviation_rows(Rc, trailing=N),
        np.hstack([identity_block(N), zero_block(N, S), diag_block(-lo)]),
        np.hstack([identity_block(N, -1.0), zero_block(N, S), diag_block(hi)]),
    )
    relations = (Relation.EQ, Relation.LE) + (Relation.GE,) * (2 * S + 2 * N)
    rhs = np.concatenate([
        [lev, k],
        np.zeros(2 * S),
        np.full(2 * N, -tau),
    ])

    spec = ModelSpec(
        objective=obj,
        A=A,
        relations=relations,
        rhs=rhs,
        lower=np.concatenate([lo, np.zeros(S), np.zeros(N)]),
        upper=np.concatenate([hi, np.full(S, np.inf), np.ones(N)]),
        kinds=(VariableKind.CONTINUOUS,) * (N + S) + (VariableKind.BINARY,) * N,
        sense=Sense.MIN,
        name=MIN_MAD_CARDINALITY,
        params={
            "leverage": lev,
            "lower": lo.tolist(),
            "upper": hi.tolist(),
            "max_positions": int(k),
            "tolerance": tau,
        },
    )
    logger.debug(
        "Built %s: %d rows x %d cols (%d binaries)", MIN_MAD_CARDINALITY, spec.n_rows, spec.n_cols, N
    )
    return spec


def build_max_ratio(
    R: np.ndarray,
    mu: np.ndarray,
    leverage: float,
    lower=-1.0,
    upper=1.0,
) -> ModelSpec:
    """
    Maximum mu'w / MAD(w) as an LP (Charnes-Cooper).

    With y = kappa * w and e = kappa * d, the ratio is maximised by
      min  sum_s e_s
      s.t. sum_i y_i - leverage * kappa = 0
           mu'y = 1
           +-Rc_s'y + e_s >= 0                  for every scenario s
           -y_i + upper_i * kappa >= 0
            y_i - lower_i * kappa >= 0
    y and kappa are free; the box rows keep kappa >= 0 whenever lower < upper.
    With every box pinned (lower == upper) kappa can come back negative, which
    extract_max_ratio rejects.

    Weights are only recovered after dividing by kappa (see extract_max_ratio).
    The kappa column index is N + S and is stored in params["shrinkage_index"].
    """
    S, N = _check_inputs(R, mu)
    lev = _check_leverage(leverage)
    lo, hi = _box(lower, upper, N)
    Rc = centered_returns(R, mu)

    obj = np.concatenate([np.zeros(N), np.ones(S), [0.0]])

    A = stack_rows(
        np.hstack([ones_row(N), zero_block(1, S), [[-lev]]]),
        np.hstack([np.asarray(mu, dtype=float)[None, :], zero_block(1, S), [[0.0]]]),
        _deviation_rows(Rc, trailing=1),
        np.hstack([identity_block(N, -1.0), zero_block(N, S), hi[:, None]]),
        np.hstack([identity_block(N), zero_block(N, S), -lo[:, None]]),
    )
    relations = (Relation.EQ, Relation.EQ) + (Relation.GE,) * (2 * S + 2 * N)
    rhs = np.concatenate([[0.0, 1.0], np.zeros(2 * S + 2 * N)])

    spec = ModelSpec(
        objective=obj,
        A=A,
        relations=relations,
        rhs=rhs,
        lower=np.concatenate([np.full(N, -np.inf), np.zeros(S), [-np.inf]]),
        upper=np.concatenate([np.full(N, np.inf), np.full(S, np.inf), [np.inf]]),
        kinds=(VariableKind.CONTINUOUS,) * (N + S + 1),
        sense=Sense.MIN,
        name=MAX_RATIO,
        params={
            "leverage": lev,
            "lower": lo.tolist(),
            "upper": hi.tolist(),
            "shrinkage_index": N + S,
        },
    )
    logger.debug("Built %s: %d rows x %d cols", MAX_RATIO, spec.n_rows, spec.n_cols)
    return spec
