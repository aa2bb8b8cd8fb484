"""
Pytest configuration and fixtures for madopt tests
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from madopt.solver import SolverOptions


def make_returns(n_scenarios, target_means, vol=0.01, seed=42):
    """Random scenario returns whose column means are exactly target_means."""
    rng = np.random.default_rng(seed)
    target_means = np.asarray(target_means, dtype=float)
    noise = rng.normal(0.0, vol, size=(n_scenarios, len(target_means)))
    X = noise - noise.mean(axis=0) + target_means
    dates = pd.date_range(start="2019-01-01", periods=n_scenarios, freq="B")
    cols = [f"A{i}" for i in range(len(target_means))]
    return pd.DataFrame(X, index=dates, columns=cols)


@pytest.fixture
def toy_returns():
    """
    3 assets x 4 scenarios with a hand-computed minimum-MAD solution.

    Centered columns are 0.01*[1,-1,1,-1], 0.01*[1,1,-1,-1], 0.02*[1,-1,-1,1];
    with leverage 1 and bounds [-1, 1] the unique optimum is w = (0.5, 0.5, 0)
    and the sum of absolute deviations is 0.02.
    """
    data = {
        "A": [0.02, 0.00, 0.02, 0.00],
        "B": [0.015, 0.015, -0.005, -0.005],
        "C": [0.022, -0.018, -0.018, 0.022],
    }
    return pd.DataFrame(data, index=pd.date_range("2019-01-01", periods=4, freq="B"))


@pytest.fixture
def sample_returns():
    """60 scenarios x 5 assets with known means."""
    return make_returns(60, [0.001, 0.0005, 0.002, -0.0005, 0.0015], seed=42)


@pytest.fixture
def wide_returns():
    """40 scenarios x 6 assets, used where cardinality has to bind."""
    return make_returns(40, [0.0008, 0.0012, -0.0003, 0.0005, 0.0020, 0.0001], seed=7)


@pytest.fixture
def exact_mip():
    """Close the MIP gap so the branch-and-bound result matches the LP optimum."""
    return SolverOptions(mip_rel_gap=0.0)
