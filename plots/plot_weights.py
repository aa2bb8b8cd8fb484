# plots/plot_weights.py
"""
Figure: MAD portfolio weights (grouped bars, one group per asset)

Reads the weights sheet from one or more result .xlsx files (produced by run_mad.py)
and saves a bar chart per file.

Usage examples:
  python plots/plot_weights.py --files results/mad_results.xlsx
  python plots/plot_weights.py --files results/mad_results.xlsx --top-n 12 --outdir results/figures
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from madopt.plotting import limit_assets, plot_weights, read_weights


def _repo_root() -> Path:
    # plots/plot_weights.py -> repo root is parents[1]
    return Path(__file__).resolve().parents[1]


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--files", nargs="+", required=True, help="Paths to .xlsx result files")
    ap.add_argument("--sheet", default=None, help="Optional explicit weights sheet name")
    ap.add_argument("--outdir", default=None, help="Output directory (default: repo_root/results/figures)")
    ap.add_argument("--top-n", type=int, default=15, help="Keep top N assets by max |weight|; rest -> 'Other'")
    args = ap.parse_args()

    repo = _repo_root()
    outdir = Path(args.outdir) if args.outdir else (repo / "results" / "figures")

    paths: List[Path] = [Path(f) for f in args.files]

    print("\nReading weights and saving figures:")
    for p in paths:
        W, used_sheet = read_weights(p, sheet=args.sheet)
        Wp = limit_assets(W, top_n=int(args.top_n))

        safe = p.stem.replace(" ", "_")
        out_png = outdir / f"figure_weights_{safe}.png"
        out_pdf = outdir / f"figure_weights_{safe}.pdf"

        plot_weights(Wp, out_png=out_png, out_pdf=out_pdf, title=p.stem)

        print(f"  - {p.name}: sheet='{used_sheet}', assets={W.shape[0]}, variants={W.shape[1]} -> saved:")
        print(f"      {out_png}")
        print(f"      {out_pdf}")

    print("\nDone.\n")


if __name__ == "__main__":
    main()
