"""
scripts/visualize.py
====================
Draw the library borrowing charts:

    annual_borrowings.png          bar chart, one bar per year 2020–2025
    monthly_borrowings_<year>.png  line chart, Jan–Dec for the selected year

Each chart is first described as a small "chart model" dict (labels +
datasets, same shape a Chart.js front end would consume), then drawn with
matplotlib and saved as an exact-size square PNG.

Usage:
    python scripts/visualize.py                     # current year
    python scripts/visualize.py --year 2023
    python scripts/visualize.py --output-dir /tmp/charts

─────────────────────────────────────────────────────────────────────────────
Key R → matplotlib translation notes
─────────────────────────────────────────────────────────────────────────────
  R / ggplot2                       matplotlib equivalent
  ──────────────────────────────    ──────────────────────────────────────────
  theme_set() / theme()             plt.rcParams.update({...})
  geom_col()                        ax.bar(x, height, ...)
  geom_line() + geom_point()        ax.plot(x, y, marker="o", ...)
  geom_area()                       ax.fill_between(x, 0, y, ...)
  scale_y_continuous(labels=comma)  ax.yaxis.set_major_formatter(FuncFormatter)
  ggsave(filename, dpi=, width=)    fig.savefig(path, dpi=, bbox_inches=)
─────────────────────────────────────────────────────────────────────────────
"""

import io
import sys
import argparse
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from PIL import Image

from dashboard import BorrowingDashboard
from densify import COUNT_COL, KEY_COL, MONTH_LABELS, MONTHS, densify_monthly
from fetch_data import API_BASE_URL

# Use the non-interactive Agg backend: renders to a file without needing
# a display server.
matplotlib.use("Agg")

# ─────────────────────────────────────────────────────────────────────────────
# Paths
# ─────────────────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
OUTPUT_DIR   = PROJECT_ROOT / "output"

ANNUAL_FILE       = "annual_borrowings.png"
MONTHLY_FILE_TMPL = "monthly_borrowings_{year}.png"

# ─────────────────────────────────────────────────────────────────────────────
# Design system
# ─────────────────────────────────────────────────────────────────────────────
# The teal is rgb(75, 192, 192); the data ink uses it at different alphas.
PAL = {
    "bg":         "#FFFFFF",
    "data":       "#4BC0C0",
    "bar_alpha":   0.6,
    "fill_alpha":  0.2,
    "grid":       "#E2E2E2",
    "spine":      "#C8C8C8",
    "text":       "#222222",
    "subtext":    "#666666",
}

CHART_TITLE   = "Book Borrowing Statistics"
DATASET_LABEL = "Books Borrowed"

DPI = 150
PX  = 1080

plt.rcParams.update({
    "font.family":       "sans-serif",
    "font.sans-serif":   ["Helvetica Neue", "Helvetica", "Arial",
                          "Liberation Sans", "DejaVu Sans"],
    "figure.facecolor":  PAL["bg"],
    "axes.facecolor":    PAL["bg"],
    "axes.edgecolor":    PAL["spine"],
    "grid.color":        PAL["grid"],
    "grid.linewidth":    0.6,
    "grid.linestyle":    "--",
    "xtick.color":       PAL["subtext"],
    "ytick.color":       PAL["subtext"],
    "text.color":        PAL["text"],
    "axes.spines.top":   False,
    "axes.spines.right": False,
})


# =============================================================================
# Chart models
# =============================================================================

def annual_chart_model(df: pd.DataFrame) -> dict:
    """Labels are the years; one bar dataset."""
    return {
        "title":  CHART_TITLE,
        "labels": [int(y) for y in df[KEY_COL]],
        "datasets": [{
            "label": DATASET_LABEL,
            "data":  [int(c) for c in df[COUNT_COL]],
            "color": PAL["data"],
            "alpha": PAL["bar_alpha"],
        }],
    }


def monthly_chart_model(df: pd.DataFrame) -> dict:
    """
    Labels are always Jan–Dec.  An empty frame (nothing fetched yet) is
    drawn as twelve zeros rather than a line with no points.
    """
    if len(df) != len(MONTHS):
        df = densify_monthly(df)
    return {
        "title":  CHART_TITLE,
        "labels": list(MONTH_LABELS),
        "datasets": [{
            "label":      DATASET_LABEL,
            "data":       [int(c) for c in df[COUNT_COL]],
            "color":      PAL["data"],
            "fill_alpha": PAL["fill_alpha"],
        }],
    }


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def counts_fmt(x: float, _pos) -> str:
    """Y-axis tick formatter: 1200 → "1,200"."""
    return f"{int(x):,}"


def _style_axes(ax: plt.Axes, values: list[int]) -> None:
    # Keep a visible axis even when every count is zero
    ax.set_ylim(0, max(max(values, default=0) * 1.15, 1))
    ax.yaxis.set_major_locator(mticker.MaxNLocator(integer=True))
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(counts_fmt))
    ax.tick_params(axis="both", labelsize=9)
    ax.grid(axis="y", zorder=0)
    ax.grid(axis="x", visible=False)
    ax.legend(loc="lower center", bbox_to_anchor=(0.5, 1.0),
              frameon=False, fontsize=9)


def _new_figure(subtitle: str) -> tuple[plt.Figure, plt.Axes]:
    fig = plt.figure(figsize=(PX / DPI, PX / DPI), dpi=DPI, facecolor=PAL["bg"])
    ax  = fig.add_axes([0.12, 0.12, 0.82, 0.66])
    fig.text(0.12, 0.95, CHART_TITLE, fontsize=15, fontweight="bold",
             ha="left", va="top", transform=fig.transFigure)
    fig.text(0.12, 0.90, subtitle, fontsize=10, color=PAL["subtext"],
             ha="left", va="top", transform=fig.transFigure)
    return fig, ax


def save_square_png(fig: plt.Figure, path: Path) -> Path:
    """
    Render ``fig`` with a tight bounding box, then pad it to a square with
    Pillow and resize to exactly PX × PX.
    """
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=DPI, bbox_inches="tight",
                facecolor=PAL["bg"], edgecolor="none")
    plt.close(fig)
    buf.seek(0)

    rendered = Image.open(buf)
    w, h     = rendered.size
    side     = max(w, h)

    bg_rgb = tuple(int(PAL["bg"][i:i + 2], 16) for i in (1, 3, 5))
    square = Image.new("RGB", (side, side), bg_rgb)
    square.paste(rendered.convert("RGB"), ((side - w) // 2, (side - h) // 2))

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    square.resize((PX, PX), Image.LANCZOS).save(path, dpi=(DPI, DPI))
    print(f"[done]  Chart saved → {path}")
    return path


# =============================================================================
# Charts
# =============================================================================

def create_annual_chart(df: pd.DataFrame, path: Path) -> Path:
    model   = annual_chart_model(df)
    dataset = model["datasets"][0]
    x       = np.arange(len(model["labels"]))

    fig, ax = _new_figure("Annual Book Borrowings")
    bars = ax.bar(
        x, dataset["data"],
        color=dataset["color"], alpha=dataset["alpha"],
        width=0.65, label=dataset["label"], zorder=3,
    )
    ax.bar_label(bars, labels=[f"{v:,}" for v in dataset["data"]],
                 fontsize=8, color=PAL["subtext"], padding=2)
    ax.set_xticks(x)
    ax.set_xticklabels([str(y) for y in model["labels"]])
    _style_axes(ax, dataset["data"])

    return save_square_png(fig, path)


def create_monthly_chart(df: pd.DataFrame, year: int, path: Path) -> Path:
    model   = monthly_chart_model(df)
    dataset = model["datasets"][0]
    x       = np.arange(len(model["labels"]))
    y       = np.asarray(dataset["data"])

    fig, ax = _new_figure(f"Monthly Book Borrowings for {year}")
    ax.fill_between(x, 0, y, color=dataset["color"],
                    alpha=dataset["fill_alpha"], zorder=1)
    ax.plot(
        x, y,
        color=dataset["color"], linewidth=2.2, marker="o", markersize=4,
        solid_capstyle="round", label=dataset["label"], zorder=3,
    )
    ax.set_xticks(x)
    ax.set_xticklabels(model["labels"])
    _style_axes(ax, dataset["data"])

    return save_square_png(fig, path)


# ─────────────────────────────────────────────────────────────────────────────
# MAIN
# ─────────────────────────────────────────────────────────────────────────────

def main(
    base_url: str = API_BASE_URL,
    year: int | None = None,
    output_dir: Path = OUTPUT_DIR,
) -> None:
    print("=" * 58)
    print("  Library Borrowing Statistics — Visualization")
    print("=" * 58)

    dash = BorrowingDashboard(base_url=base_url, selected_year=year)
    dash.refresh()

    if dash.annual_data.empty:
        print(f"\n[error] Annual counts unavailable from {base_url}.\n"
              f"        Run 'python scripts/fetch_data.py' to diagnose.")
        sys.exit(1)

    options = dash.year_options()
    print(f"[data]  Selectable years: {options}")
    if dash.selected_year not in options:
        print(f"[warn]  {dash.selected_year} is outside the selectable years")

    total = int(dash.annual_data[COUNT_COL].sum())
    print(f"[data]  Total borrowings {options[0]}–{options[-1]}: {total:,}")

    output_dir = Path(output_dir)
    create_annual_chart(dash.annual_data, output_dir / ANNUAL_FILE)

    if dash.monthly_data.empty:
        print(f"[warn]  Monthly counts for {dash.selected_year} unavailable — skipping line chart")
        return
    create_monthly_chart(
        dash.monthly_data, dash.selected_year,
        output_dir / MONTHLY_FILE_TMPL.format(year=dash.selected_year),
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Draw the annual and monthly borrowing charts.",
    )
    parser.add_argument("--base-url", default=API_BASE_URL,
                        help=f"Root URL of the stats server (default: {API_BASE_URL}).")
    parser.add_argument("--year", type=int, default=None,
                        help="Year for the monthly chart (default: current year).")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR,
                        help="Where to write the PNGs (default: output/).")
    args = parser.parse_args()
    main(base_url=args.base_url, year=args.year, output_dir=args.output_dir)
