"""Scatter of adjusted responses with the mixed/linear model line."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from ..analysis.adjusted import AdjustedResponse
from ..analysis.models import RegressionLine

plt.rcParams["font.family"] = ["Times New Roman", "DejaVu Serif", "serif"]
plt.rcParams["font.size"] = 20


def _style_axes(ax) -> None:
    sns.despine(ax=ax)
    ax.tick_params(direction="out", width=2, length=6)
    for spine in ax.spines.values():
        spine.set_linewidth(2)


def _round_limits(ax) -> None:
    x_lo, x_hi = ax.get_xlim()
    ax.set_xlim(np.round(x_lo - 1), np.round(x_hi + 1))
    y_lo, y_hi = ax.get_ylim()
    ax.set_ylim(np.round(y_lo * 10) / 10, np.round(y_hi * 10) / 10)


def plot_adjusted_regression(
    adjusted: AdjustedResponse,
    line: RegressionLine,
    title: str,
    xlabel: str,
    ylabel: str,
    color: Sequence[float],
    output_path: Optional[Path] = None,
    marker_size: float = 192,
    alpha: float = 0.5,
    round_limits: bool = True,
    show_band: bool = True,
):
    """Draw one adjusted-response figure and save it when ``output_path`` is given."""
    fig, ax = plt.subplots(1, 1, figsize=(5.5, 5.5))
    ax.scatter(
        adjusted.x,
        adjusted.y,
        s=marker_size,
        color=color,
        alpha=alpha,
        edgecolors="k",
        zorder=3,
    )
    if show_band:
        ax.fill_between(line.x, line.lower, line.upper, color="0.8", alpha=0.5, linewidth=0)
    ax.plot(line.x, line.mean, color="k", linewidth=1.5)

    ax.set_title(title, fontsize=14)
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    if round_limits:
        _round_limits(ax)
    _style_axes(ax)
    fig.tight_layout()

    if output_path is not None:
        fig.savefig(output_path, dpi=300, bbox_inches="tight", facecolor="white", edgecolor="none")
        plt.close(fig)
        print(f"Saved: {output_path}")
    return fig


def respiration_title(rho: float, p: float, beta: float) -> str:
    return f"ρ:{rho:.4f}; p:{p:.4f}; Beta:{beta:.2f}"


def caffeine_title(beta: float, p: float) -> str:
    return f"{beta:.4f} - {p:.6f}"
