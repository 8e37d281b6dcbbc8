"""Output locations and table writing shared by the analysis scripts."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from ..preprocessing.constants import OUTPUT_FIGURES_DIR, OUTPUT_STATS_DIR

VALID_ANALYSES = {"respiration", "caffeine", "bootstrap"}


def _check_analysis(analysis: str) -> None:
    if analysis not in VALID_ANALYSES:
        raise ValueError(f"Unknown analysis: {analysis}. Valid analyses: {sorted(VALID_ANALYSES)}")


def get_output_dir(analysis: str, base_dir: Optional[Path] = None) -> Path:
    _check_analysis(analysis)
    out_dir = Path(base_dir or OUTPUT_STATS_DIR) / analysis
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def get_figures_dir(analysis: str, base_dir: Optional[Path] = None) -> Path:
    _check_analysis(analysis)
    out_dir = Path(base_dir or OUTPUT_FIGURES_DIR) / analysis
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def save_table(rows: Iterable[dict], path: Path, verbose: bool = True) -> pd.DataFrame:
    table = pd.DataFrame(list(rows))
    table.to_csv(path, index=False, encoding="utf-8-sig")
    if verbose:
        print(f"Saved: {path}")
    return table
