"""
Tests for reporting, Excel export and weight figures
"""

import numpy as np
import pandas as pd
import pytest

from madopt.extract import PortfolioResult
from madopt.optimizers import opt_max_return_mad_ratio, opt_min_mad
from madopt.plotting import limit_assets, plot_weights, read_weights
from madopt.reporting import export_excel, portfolio_summary, risk_contributions


@pytest.fixture
def toy_results(toy_returns):
    return {
        "min_mad": opt_min_mad(toy_returns, leverage=1.0),
        "max_ratio": opt_max_return_mad_ratio(toy_returns, leverage=1.0),
    }


class TestRiskContributions:

    def test_values(self, toy_returns):
        w = pd.Series({"A": 0.5, "B": 0.5, "C": 0.0})
        out = risk_contributions(toy_returns, w)
        np.testing.assert_allclose(out.to_numpy(), [0.01, 0.0, 0.0, 0.01], atol=1e-12)
        assert out.name == "abs_deviation"

    def test_missing_weight(self, toy_returns):
        with pytest.raises(ValueError, match="missing"):
            risk_contributions(toy_returns, pd.Series({"A": 1.0}))


class TestPortfolioSummary:

    def test_fields(self, toy_returns):
        res = PortfolioResult(
            weights=pd.Series({"A": 0.5, "B": 0.5, "C": 0.0}),
            risk=0.02,
            variant="min_mad",
            n_scenarios=4,
            info={"elapsed": 0.1},
        )
        s = portfolio_summary(toy_returns, res)
        assert s.name == "min_mad"
        assert s["expected_return"] == pytest.approx(0.0075)
        assert s["mad"] == pytest.approx(0.005)
        assert s["return_to_mad"] == pytest.approx(0.375)
        assert s["net_exposure"] == pytest.approx(1.0)
        assert s["gross_exposure"] == pytest.approx(1.0)
        assert s["active_positions"] == 2
        assert np.isnan(s["shrinkage"])
        assert s["scenarios"] == 4

    def test_zero_risk_ratio_is_nan(self, toy_returns):
        res = PortfolioResult(weights=pd.Series({"A": 0.0, "B": 0.0, "C": 0.0}), risk=0.0)
        assert np.isnan(portfolio_summary(toy_returns, res)["return_to_mad"])


class TestExportExcel:

    def test_sheets(self, tmp_path, toy_returns, toy_results):
        path = tmp_path / "out.xlsx"
        failures = pd.DataFrame({"error": ["boom"]}, index=["min_mad_cardinality"])
        export_excel(str(path), toy_returns, toy_results, extra_sheets={"Failures": failures})

        xl = pd.ExcelFile(path)
        assert xl.sheet_names == ["Weights", "Summary", "Risk_Contributions", "Returns", "Failures"]

        W = pd.read_excel(path, sheet_name="Weights", index_col=0)
        assert list(W.columns) == ["min_mad", "max_ratio"]
        assert list(W.index) == ["A", "B", "C"]
        np.testing.assert_allclose(W["min_mad"].to_numpy(), [0.5, 0.5, 0.0], atol=1e-6)


class TestPlotting:

    def test_read_weights(self, tmp_path, toy_returns, toy_results):
        path = tmp_path / "out.xlsx"
        export_excel(str(path), toy_returns, toy_results)
        W, sheet = read_weights(path)
        assert sheet == "Weights"
        assert W.shape == (3, 2)

    def test_read_weights_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_weights(tmp_path / "nope.xlsx")

    def test_read_weights_bad_sheet(self, tmp_path, toy_returns, toy_results):
        path = tmp_path / "out.xlsx"
        export_excel(str(path), toy_returns, toy_results)
        with pytest.raises(ValueError, match="not found"):
            read_weights(path, sheet="Nope")

    def test_limit_assets(self):
        W = pd.DataFrame(
            {"v1": [0.5, 0.01, -0.3, 0.02], "v2": [0.1, 0.0, 0.2, 0.03]},
            index=["a", "b", "c", "d"],
        )
        out = limit_assets(W, top_n=2)
        assert list(out.index) == ["a", "c", "Other"]
        assert out.loc["Other", "v1"] == pytest.approx(0.03)
        assert limit_assets(W, top_n=0) is W

    def test_plot_weights(self, tmp_path):
        W = pd.DataFrame({"min_mad": [0.5, 0.5], "max_ratio": [0.8, 0.2]}, index=["a", "b"])
        png = tmp_path / "figs" / "weights.png"
        plot_weights(W, png, title="test")
        assert png.exists()

    def test_plot_empty(self, tmp_path):
        with pytest.raises(ValueError):
            plot_weights(pd.DataFrame(), tmp_path / "x.png")
