"""Per-session inter-breath-interval (IBI) outcome files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import numpy as np
from scipy.io import loadmat
from scipy.io.matlab import MatReadError

from .constants import IBI_LENGTH_KEY, get_ibi_path


def _scalar(value: object) -> float:
    arr = np.asarray(value, dtype=float).ravel()
    if arr.size == 0:
        return np.nan
    return float(arr[0])


def load_ibi_outcomes(
    session_id: str,
    outcomes: Iterable[str],
    ibi_dir: Optional[Path] = None,
) -> Optional[dict[str, float]]:
    """
    Read recording length and outcome scalars for one session.

    Returns None when the file is absent, cannot be loaded, lacks a requested
    variable or holds a non-numeric value, so the caller can skip the session.
    """
    path = get_ibi_path(session_id, ibi_dir)
    if not path.exists():
        return None
    try:
        mat = loadmat(path, squeeze_me=True)
    except (OSError, ValueError, NotImplementedError, MatReadError) as exc:
        print(f"[WARN] unreadable IBI file {path.name}: {exc}")
        return None

    keys = [IBI_LENGTH_KEY, *outcomes]
    missing = [key for key in keys if key not in mat]
    if missing:
        print(f"[WARN] {path.name} missing {missing}")
        return None
    try:
        return {key: _scalar(mat[key]) for key in keys}
    except (TypeError, ValueError) as exc:
        print(f"[WARN] non-numeric value in {path.name}: {exc}")
        return None
