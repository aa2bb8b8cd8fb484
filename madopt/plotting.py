# madopt/plotting.py
"""
Figure helpers for optimised MAD portfolios.

Reads the "Weights" sheet written by reporting.export_excel (index = assets,
columns = variants) and draws a grouped bar chart of the weights.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt


WEIGHTS_SHEET_CANDIDATES = [
    "Weights",
    "weights",
    "Portfolio_Weights",
]

# Consistent colors per variant
VARIANT_COLORS = {
    "min_mad": "#0B1F3B",              # NAVY
    "min_mad_cardinality": "#7A1E2B",  # BURGUNDY
    "max_ratio": "#DAA520",            # GOLDENROD
}


def read_weights(xlsx_path: Path, sheet: Optional[str] = None) -> tuple[pd.DataFrame, str]:
    if not xlsx_path.exists():
        raise FileNotFoundError(str(xlsx_path))

    xl = pd.ExcelFile(xlsx_path)

    used_sheet = None
    if sheet is not None:
        if sheet not in xl.sheet_names:
            raise ValueError(
                f"Sheet '{sheet}' not found in {xlsx_path.name}. Available: {xl.sheet_names}"
            )
        used_sheet = sheet
    else:
        for cand in WEIGHTS_SHEET_CANDIDATES:
            if cand in xl.sheet_names:
                used_sheet = cand
                break
        if used_sheet is None:
            raise ValueError(
                f"Could not find a weights sheet in {xlsx_path.name}. "
                f"Tried: {WEIGHTS_SHEET_CANDIDATES}. Available: {xl.sheet_names}"
            )

    df = pd.read_excel(xlsx_path, sheet_name=used_sheet, index_col=0)
    df.index = df.index.astype(str)

    # Keep only numeric columns
    for c in df.columns:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    df = df.dropna(axis=1, how="all").fillna(0.0)

    if df.empty or df.shape[1] == 0:
        raise ValueError(f"Weights table empty in {xlsx_path.name}/{used_sheet}.")

    return df, used_sheet


def limit_assets(W: pd.DataFrame, top_n: int) -> pd.DataFrame:
    """Keep the top_n assets by largest |weight| across variants; the rest -> 'Other'."""
    if top_n <= 0 or W.shape[0] <= top_n:
        return W

    peak = W.abs().max(axis=1).sort_values(ascending=False)
    keep = list(peak.index[:top_n])
    out = W.loc[keep].copy()
    dropped = [a for a in W.index if a not in keep]
    if dropped:
        out.loc["Other"] = W.loc[dropped].sum(axis=0)
    return out


def plot_weights(
    W: pd.DataFrame,
    out_png: Path,
    out_pdf: Optional[Path] = None,
    title: Optional[str] = None,
) -> None:
    if W.empty:
        raise ValueError("No weights to plot.")

    X = W.where(np.isfinite(W), 0.0).fillna(0.0)

    n_assets, n_var = X.shape
    x = np.arange(n_assets)
    width = 0.8 / max(n_var, 1)

    fig, ax = plt.subplots(figsize=(max(8, 0.5 * n_assets + 3), 6))
    for k, c in enumerate(X.columns):
        ax.bar(
            x + (k - (n_var - 1) / 2) * width,
            X[c].to_numpy(),
            width=width,
            label=str(c),
            color=VARIANT_COLORS.get(str(c)),
        )
    ax.axhline(0.0, color="black", linewidth=0.8)
    ax.set_xticks(x)
    ax.set_xticklabels(list(X.index), rotation=60, ha="right")
    ax.set_ylabel("Weight")
    if title:
        ax.set_title(title)
    ax.grid(True, axis="y", alpha=0.25)
    ax.legend(loc="center left", bbox_to_anchor=(1.02, 0.5))
    fig.tight_layout()

    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_png, dpi=220)
    if out_pdf is not None:
        fig.savefig(out_pdf)
    plt.close(fig)
