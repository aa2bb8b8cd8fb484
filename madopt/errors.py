"""Error taxonomy for model construction, solving and rescaling."""

from __future__ import annotations

from typing import Any, Mapping


class MadOptError(Exception):
    """Base class for every failure raised by madopt."""


class InputError(MadOptError, ValueError):
    """Returns matrix or parameters rejected before a model is built."""


class SolveFailure(MadOptError):
    """
    A solve that did not produce a usable point.

    Carries the variant name and the parameters the model was built with,
    so the caller can relax them and resubmit.
    """

    def __init__(
        self,
        message: str,
        variant: str = "",
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self.variant = variant
        self.params = dict(params or {})
        ctx = f" [variant={variant}, params={self.params}]" if variant else ""
        super().__init__(f"{message}{ctx}")


class ModelInfeasible(SolveFailure):
    """No point satisfies all constraints."""


class ModelUnbounded(SolveFailure):
    """The objective can be improved without limit."""


class SolverError(SolveFailure):
    """
    Backend-level failure: time limit, iteration limit or numerical trouble.

    reason is one of "timeout", "iteration_limit", "numerical".
    """

    def __init__(
        self,
        message: str,
        reason: str = "numerical",
        variant: str = "",
        params: Mapping[str, Any] | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(f"{message} (reason={reason})", variant=variant, params=params)


class DegenerateRescale(MadOptError):
    """The ratio LP solved, but its shrinkage factor is not positive so weights cannot be recovered."""

    def __init__(self, shrinkage: float, eps: float) -> None:
        self.shrinkage = shrinkage
        self.eps = eps
        super().__init__(
            f"Shrinkage factor {shrinkage!r} is not above {eps:g}; "
            "the return/MAD ratio is unbounded, the feasible region collapses to the origin, "
            "or no portfolio in the box has a positive expected return."
        )
