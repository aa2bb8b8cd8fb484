"""
ModelSpec: a solver-neutral description of a linear / mixed-integer program,
plus the block helpers the model builders assemble it from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import numpy as np


class Relation(str, Enum):
    EQ = "=="
    GE = ">="
    LE = "<="


class VariableKind(str, Enum):
    CONTINUOUS = "C"
    BINARY = "B"


class Sense(str, Enum):
    MIN = "min"
    MAX = "max"


def _frozen(a, ndim: int) -> np.ndarray:
    out = np.array(a, dtype=float, copy=True, ndmin=ndim)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class ModelSpec:
    """
    min/max  objective' x
    s.t.     A[r] x  (relations[r])  rhs[r]     for every row r
             lower <= x <= upper
             x[j] binary where kinds[j] is BINARY

    name and params are metadata (variant id, parameters used) carried into
    solver errors.
    """
    objective: np.ndarray
    A: np.ndarray
    relations: tuple[Relation, ...]
    rhs: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    kinds: tuple[VariableKind, ...]
    sense: Sense = Sense.MIN
    name: str = ""
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "objective", _frozen(self.objective, 1))
        object.__setattr__(self, "A", _frozen(self.A, 2))
        object.__setattr__(self, "rhs", _frozen(self.rhs, 1))
        object.__setattr__(self, "lower", _frozen(self.lower, 1))
        object.__setattr__(self, "upper", _frozen(self.upper, 1))
        object.__setattr__(self, "relations", tuple(Relation(r) for r in self.relations))
        object.__setattr__(self, "kinds", tuple(VariableKind(k) for k in self.kinds))
        object.__setattr__(self, "sense", Sense(self.sense))
        object.__setattr__(self, "params", dict(self.params))

        R, C = self.A.shape
        if not (len(self.relations) == R == self.rhs.shape[0]):
            raise ValueError(
                f"Row mismatch: A has {R} rows, {len(self.relations)} relations, {self.rhs.shape[0]} rhs"
            )
        sizes = {
            "objective": self.objective.shape[0],
            "lower": self.lower.shape[0],
            "upper": self.upper.shape[0],
            "kinds": len(self.kinds),
        }
        bad = {k: v for k, v in sizes.items() if v != C}
        if bad:
            raise ValueError(f"Column mismatch: A has {C} columns, got {bad}")

        if np.any(self.lower > self.upper):
            raise ValueError("lower bound above upper bound for some column")

        binary = np.array([k is VariableKind.BINARY for k in self.kinds], dtype=bool)
        if binary.any() and (np.any(self.lower[binary] < 0.0) or np.any(self.upper[binary] > 1.0)):
            raise ValueError("binary columns must have bounds within [0, 1]")

    @property
    def n_rows(self) -> int:
        return int(self.A.shape[0])

    @property
    def n_cols(self) -> int:
        return int(self.A.shape[1])

    @property
    def is_mip(self) -> bool:
        return any(k is VariableKind.BINARY for k in self.kinds)


# =========================================================
# Block helpers
# =========================================================
def centered_returns(R: np.ndarray, mu: np.ndarray) -> np.ndarray:
    """Scenario returns minus the per-asset mean (S x N)."""
    return np.asarray(R, dtype=float) - np.asarray(mu, dtype=float)[None, :]


def identity_block(n: int, scale: float = 1.0) -> np.ndarray:
    return float(scale) * np.eye(n)


def diag_block(values) -> np.ndarray:
    return np.diag(np.asarray(values, dtype=float))


def zero_block(rows: int, cols: int) -> np.ndarray:
    return np.zeros((rows, cols))


def ones_row(n: int) -> np.ndarray:
    return np.ones((1, n))


def stack_rows(*blocks: np.ndarray) -> np.ndarray:
    """Vertically stack row blocks; every block must have the same width."""
    mats = [np.atleast_2d(np.asarray(b, dtype=float)) for b in blocks]
    widths = {m.shape[1] for m in mats}
    if len(widths) != 1:
        raise ValueError(f"Row blocks have different widths: {sorted(widths)}")
    return np.vstack(mats)


def broadcast_bounds(value, n: int) -> np.ndarray:
    """Scalar or length-n vector -> length-n float vector."""
    a = np.asarray(value, dtype=float)
    if a.ndim == 0:
        return np.full(n, float(a))
    if a.shape != (n,):
        raise ValueError(f"Expected scalar or shape ({n},), got {a.shape}")
    return a.copy()
