"""
Tests for spec dispatch and the parallel variant runner
"""

import numpy as np
import pytest

from madopt.builders import MAX_RATIO, MIN_MAD, MIN_MAD_CARDINALITY
from madopt.config import CardinalitySpec, MinMadSpec, RatioSpec
from madopt.errors import InputError, ModelInfeasible
from madopt.pipeline import optimize, run_variants
from madopt.solver import SolverOptions


class TestOptimize:
    """Dispatch on the spec type"""

    def test_dispatch(self, sample_returns):
        assert optimize(sample_returns, MinMadSpec()).variant == MIN_MAD
        assert optimize(sample_returns, CardinalitySpec(max_positions=3)).variant == MIN_MAD_CARDINALITY
        assert optimize(sample_returns, RatioSpec()).variant == MAX_RATIO

    def test_unknown_spec(self, sample_returns):
        with pytest.raises(TypeError):
            optimize(sample_returns, {"leverage": 1.0})

    def test_per_asset_bounds(self, sample_returns):
        """Spec overrides reach the model"""
        spec = MinMadSpec(leverage=1.0, bounds={"A0": (0.2, 0.2), "A3": (0.0, 0.0)})
        res = optimize(sample_returns, spec)
        assert res.weights["A0"] == pytest.approx(0.2, abs=1e-7)
        assert res.weights["A3"] == pytest.approx(0.0, abs=1e-7)
        assert res.weights.sum() == pytest.approx(1.0, abs=1e-7)

    def test_default_leverage(self, sample_returns):
        res = optimize(sample_returns, MinMadSpec())
        assert res.weights.sum() == pytest.approx(1.5, abs=1e-7)


class TestRunVariants:
    """Parallel runs over several named specs"""

    def test_all_variants(self, sample_returns):
        specs = {
            "min_mad": MinMadSpec(),
            "min_mad_cardinality": CardinalitySpec(max_positions=3),
            "max_ratio": RatioSpec(),
        }
        results, failures = run_variants(sample_returns, specs, SolverOptions(time_limit=60))
        assert failures == {}
        assert list(results) == list(specs)
        for res in results.values():
            assert res.weights.sum() == pytest.approx(1.5, abs=1e-6)

    def test_same_answer_as_sequential(self, sample_returns):
        spec = MinMadSpec(leverage=1.0)
        results, _ = run_variants(sample_returns, {"a": spec, "b": spec})
        single = optimize(sample_returns, spec)
        np.testing.assert_allclose(results["a"].weights, single.weights, atol=1e-9)
        np.testing.assert_allclose(results["b"].weights, single.weights, atol=1e-9)

    def test_failure_is_collected(self, sample_returns):
        """One infeasible variant does not stop the others"""
        specs = {
            "ok": MinMadSpec(leverage=1.0),
            "too_few": CardinalitySpec(leverage=1.0, max_positions=0),
        }
        results, failures = run_variants(sample_returns, specs, max_workers=1)
        assert list(results) == ["ok"]
        assert isinstance(failures["too_few"], ModelInfeasible)
        assert failures["too_few"].params["max_positions"] == 0

    def test_bad_parameters_are_collected(self, sample_returns):
        """A non-finite leverage fails its own variant only"""
        specs = {
            "ok": MinMadSpec(leverage=1.0),
            "nan_leverage": RatioSpec(leverage=float("nan")),
            "nan_positions": CardinalitySpec(leverage=1.0, max_positions=float("nan")),
        }
        results, failures = run_variants(sample_returns, specs)
        assert list(results) == ["ok"]
        assert isinstance(failures["nan_leverage"], InputError)
        assert isinstance(failures["nan_positions"], InputError)

    def test_empty(self, sample_returns):
        assert run_variants(sample_returns, {}) == ({}, {})

    def test_other_errors_propagate(self, sample_returns):
        with pytest.raises(TypeError):
            run_variants(sample_returns, {"bad": object()})
