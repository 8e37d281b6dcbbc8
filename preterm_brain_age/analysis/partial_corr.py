"""Partial correlation from a fixed-effect t statistic."""

from __future__ import annotations

import numpy as np


def design_rank(design) -> int:
    arr = np.asarray(design, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    return int(np.linalg.matrix_rank(arr))


def partial_correlation(t_stat: float, n_obs: int, design) -> float:
    """
    rho = sign(t) * sqrt(t^2 / (N - rank(M) + t^2)).

    ``design`` is the predictor column (or matrix) whose rank enters the
    residual degrees of freedom.
    """
    t_stat = float(t_stat)
    if not np.isfinite(t_stat):
        return np.nan
    t2 = t_stat ** 2
    denom = n_obs - design_rank(design) + t2
    if denom <= 0:
        return np.nan
    return float(np.sign(t_stat) * np.sqrt(t2 / denom))
