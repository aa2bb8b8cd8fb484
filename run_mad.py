# run_mad.py
# MAD portfolios on daily log returns:
#   1) minimum MAD (leverage + box)
#   2) minimum MAD with a soft cardinality limit
#   3) maximum expected return / MAD ratio
#
# pip install -e .

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import warnings

warnings.filterwarnings("ignore")

import pandas as pd

from madopt.config import CardinalitySpec, MinMadSpec, RatioSpec
from madopt.data import download_prices, load_prices_csv, log_returns, prepare_returns
from madopt.pipeline import run_variants
from madopt.reporting import export_excel, portfolio_summary
from madopt.solver import SolverOptions

# =========================================================
# Settings
# =========================================================
TICKERS = {
    "SP500": "SPY",
    "NASDAQ100": "QQQ",
    "RUSSELL2000": "IWM",
    "UST_7_10Y": "IEF",
    "UST_20Y": "TLT",
    "T_BILLS": "SHY",
    "IG_CREDIT": "LQD",
    "HIGH_YIELD": "HYG",
    "REITS": "VNQ",
    "GOLD": "GLD",
    "CHINA": "FXI",
    "EM": "EEM",
    "EUROPE": "VGK",
    "JAPAN": "EWJ",
    "ENERGY": "XLE",
    "TECH": "XLK",
}

START = "2018-12-01"
END = "2020-01-01"
PERIOD = "2019"           # full-year window used for the scenarios
MIN_OBS_PER_ROW = 6       # drop days with fewer observed assets
MAX_ASSETS = 31

# ---- Constraints ----
LEVERAGE = 1.5            # net exposure, sum(w)
DEFAULT_BOUNDS = (-1.0, 1.0)
BOUNDS: dict[str, tuple[float, float]] = {}

# ---- Cardinality ----
MAX_POSITIONS = 15
TOLERANCE = 0.005

# ---- Solver ----
TIME_LIMIT = 120.0        # seconds per variant

# ---- Output ----
RESULTS_DIR = Path("results")
OUTPUT_XLSX = RESULTS_DIR / "mad_results.xlsx"


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--prices-csv", default=None, help="Price table (date index in first column); default: yfinance")
    ap.add_argument("--period", default=PERIOD, help="Date period kept for the scenarios, e.g. 2019")
    ap.add_argument("--time-limit", type=float, default=TIME_LIMIT, help="Solver time limit per variant (s)")
    ap.add_argument("--output", default=str(OUTPUT_XLSX), help="Excel output path")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    # 1) Data (daily log returns)
    if args.prices_csv:
        prices = load_prices_csv(args.prices_csv)
    else:
        prices = download_prices(TICKERS, start=START, end=END)

    rets = prepare_returns(
        log_returns(prices),
        period=args.period,
        min_obs_per_row=MIN_OBS_PER_ROW,
        max_assets=MAX_ASSETS,
    )

    # 2) The three variants, side by side
    specs = {
        "min_mad": MinMadSpec(leverage=LEVERAGE, default_bounds=DEFAULT_BOUNDS, bounds=BOUNDS),
        "min_mad_cardinality": CardinalitySpec(
            leverage=LEVERAGE,
            default_bounds=DEFAULT_BOUNDS,
            bounds=BOUNDS,
            max_positions=MAX_POSITIONS,
            tolerance=TOLERANCE,
        ),
        "max_ratio": RatioSpec(leverage=LEVERAGE, default_bounds=DEFAULT_BOUNDS, bounds=BOUNDS),
    }
    results, failures = run_variants(rets, specs, solver_options=SolverOptions(time_limit=args.time_limit))

    # 3) Console diagnostics
    print("--------------------------------------------------")
    print(f"MAD portfolios | leverage={LEVERAGE} | bounds={DEFAULT_BOUNDS} | K={MAX_POSITIONS}, tol={TOLERANCE}")
    print("Scenarios x assets:", rets.shape)
    print("Period:", rets.index.min(), "->", rets.index.max())

    for name, res in results.items():
        print(f"---- {name} ----")
        print(portfolio_summary(rets, res))
        print("Top weights:")
        print(res.weights.reindex(res.weights.abs().sort_values(ascending=False).index).head(10).round(4))

    for name, err in failures.items():
        print(f"---- {name} FAILED ({type(err).__name__}) ----")
        print(err)

    print("--------------------------------------------------")

    # 4) Export to Excel
    extra: dict[str, pd.DataFrame] = {}
    if failures:
        extra["Failures"] = pd.DataFrame(
            {"error": [type(e).__name__ for e in failures.values()], "message": [str(e) for e in failures.values()]},
            index=list(failures.keys()),
        )

    if results:
        export_excel(path=str(output), returns=rets, results=results, extra_sheets=extra)
        print(f"Saved: {output.resolve()}")


if __name__ == "__main__":
    main()
