"""
Solver adapter: ModelSpec -> RawSolution through SciPy's HiGHS interface.

Pure LPs go through linprog(method="highs"); models with binary columns go
through milp. Failures are raised, never approximated or retried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, linprog, milp

from madopt.errors import ModelInfeasible, ModelUnbounded, SolveFailure, SolverError
from madopt.model import ModelSpec, Relation, Sense, VariableKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverOptions:
    time_limit: float | None = None      # seconds; None = no limit
    mip_rel_gap: float | None = None     # None = HiGHS default
    presolve: bool = True
    disp: bool = False

    def highs_options(self, mip: bool) -> dict:
        opts: dict = {"presolve": bool(self.presolve), "disp": bool(self.disp)}
        if self.time_limit is not None:
            opts["time_limit"] = float(self.time_limit)
        if mip and self.mip_rel_gap is not None:
            opts["mip_rel_gap"] = float(self.mip_rel_gap)
        return opts


@dataclass(frozen=True, eq=False)
class RawSolution:
    values: np.ndarray
    objective: float
    status: int = 0
    message: str = ""
    elapsed: float = 0.0

    def __post_init__(self) -> None:
        v = np.array(self.values, dtype=float, copy=True)
        v.setflags(write=False)
        object.__setattr__(self, "values", v)


def _split_rows(spec: ModelSpec):
    """Turn relation-tagged rows into linprog's A_ub x <= b_ub and A_eq x = b_eq."""
    rel = np.array([r.value for r in spec.relations])
    eq = rel == Relation.EQ.value
    ge = rel == Relation.GE.value
    le = rel == Relation.LE.value

    A_ub = np.vstack([spec.A[le], -spec.A[ge]])
    b_ub = np.concatenate([spec.rhs[le], -spec.rhs[ge]])
    A_eq = spec.A[eq]
    b_eq = spec.rhs[eq]

    if A_ub.shape[0] == 0:
        A_ub, b_ub = None, None
    if A_eq.shape[0] == 0:
        A_eq, b_eq = None, None
    return A_ub, b_ub, A_eq, b_eq


def _var_bounds(spec: ModelSpec) -> list[tuple[float | None, float | None]]:
    var_bounds: list[tuple[float | None, float | None]] = []
    for lo, hi in zip(spec.lower, spec.upper):
        var_bounds.append((
            None if np.isneginf(lo) else float(lo),
            None if np.isposinf(hi) else float(hi),
        ))
    return var_bounds


def _row_limits(spec: ModelSpec) -> tuple[np.ndarray, np.ndarray]:
    """Two-sided row limits lb <= A x <= ub for milp's LinearConstraint."""
    lb = np.full(spec.n_rows, -np.inf)
    ub = np.full(spec.n_rows, np.inf)
    for r, (rel, b) in enumerate(zip(spec.relations, spec.rhs)):
        if rel is Relation.EQ:
            lb[r] = ub[r] = b
        elif rel is Relation.GE:
            lb[r] = b
        else:
            ub[r] = b
    return lb, ub


def _raise_for_status(status: int, message: str, spec: ModelSpec) -> None:
    """
    Map a HiGHS status (linprog / milp share the codes) to an exception.

    0 optimal, 1 iteration or time limit, 2 infeasible, 3 unbounded, 4 other.
    """
    if status == 0:
        return
    ctx = {"variant": spec.name, "params": spec.params}
    if status == 2:
        raise ModelInfeasible(f"No feasible portfolio: {message}", **ctx)
    if status == 3:
        raise ModelUnbounded(f"Objective is unbounded: {message}", **ctx)
    if status == 1:
        reason = "timeout" if "time" in message.lower() else "iteration_limit"
        raise SolverError(f"Solver stopped early: {message}", reason=reason, **ctx)
    raise SolverError(f"Solver failed: {message}", reason="numerical", **ctx)


def solve(spec: ModelSpec, options: SolverOptions | None = None) -> RawSolution:
    """
    Solve a ModelSpec with HiGHS and return the decision vector and objective.

    The objective is reported in the spec's own sense (MAX models are negated
    for the backend and negated back).
    """
    options = options or SolverOptions()
    sign = -1.0 if spec.sense is Sense.MAX else 1.0
    c = sign * spec.objective

    logger.debug(
        "Solving %s (%s): %d rows x %d cols, mip=%s",
        spec.name or "model", spec.sense.value, spec.n_rows, spec.n_cols, spec.is_mip,
    )

    t0 = time.perf_counter()
    if spec.is_mip:
        integrality = np.array([1 if k is VariableKind.BINARY else 0 for k in spec.kinds])
        lb, ub = _row_limits(spec)
        constraints = [LinearConstraint(spec.A, lb, ub)] if spec.n_rows else []
        res = milp(
            c=c,
            integrality=integrality,
            bounds=Bounds(spec.lower, spec.upper),
            constraints=constraints,
            options=options.highs_options(mip=True),
        )
    else:
        A_ub, b_ub, A_eq, b_eq = _split_rows(spec)
        res = linprog(
            c=c,
            A_ub=A_ub,
            b_ub=b_ub,
            A_eq=A_eq,
            b_eq=b_eq,
            bounds=_var_bounds(spec),
            method="highs",
            options=options.highs_options(mip=False),
        )
    elapsed = time.perf_counter() - t0

    status = int(res.status)
    message = str(getattr(res, "message", ""))

    # presolve cannot always tell the two apart; without it HiGHS reports which one
    if status == 4 and "unbounded or infeasible" in message.lower() and options.presolve:
        logger.debug("%s: '%s', re-solving without presolve", spec.name or "model", message)
        return solve(spec, replace(options, presolve=False))

    try:
        _raise_for_status(status, message, spec)
        if (res.x is None) or np.any(~np.isfinite(res.x)) or not np.isfinite(res.fun):
            raise SolverError(
                "Solver returned a non-finite solution",
                reason="numerical",
                variant=spec.name,
                params=spec.params,
            )
    except SolveFailure:
        logger.warning("Solve of %s failed after %.3fs: %s", spec.name or "model", elapsed, message)
        raise

    objective = sign * float(res.fun)
    logger.debug("Solved %s in %.3fs, objective=%.6g", spec.name or "model", elapsed, objective)
    return RawSolution(
        values=res.x,
        objective=objective,
        status=status,
        message=message,
        elapsed=elapsed,
    )
