"""
Brain age model outputs: loading and per-session combination.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd
from scipy.io import loadmat

from .constants import (
    PREDICTION_FILES,
    PREDICTION_SESSION_KEY,
    PREDICTION_VALUE_KEY,
    get_prediction_path,
)


def _as_strings(values: object) -> list[str]:
    arr = np.atleast_1d(np.asarray(values, dtype=object)).ravel()
    out = []
    for value in arr:
        # cell arrays of char come back as nested 1-element arrays
        while isinstance(value, np.ndarray):
            value = value.ravel()[0] if value.size else ""
        out.append(str(value).strip())
    return out


def read_model_output(path: Path) -> pd.DataFrame:
    """
    Read one model output file into a ``session_id``/``predicted`` frame.

    The file exposes a cell array of session labels and a parallel numeric
    array of predicted ages (NaN allowed).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Brain age model output not found: {path}")

    mat = loadmat(path, squeeze_me=True)
    for key in (PREDICTION_SESSION_KEY, PREDICTION_VALUE_KEY):
        if key not in mat:
            raise ValueError(f"{path.name} missing variable '{key}'")

    sessions = _as_strings(mat[PREDICTION_SESSION_KEY])
    predicted = np.atleast_1d(np.asarray(mat[PREDICTION_VALUE_KEY], dtype=float)).ravel()
    if len(sessions) != len(predicted):
        raise ValueError(
            f"{path.name}: {len(sessions)} session labels but {len(predicted)} predictions"
        )
    return pd.DataFrame({"session_id": sessions, "predicted": predicted})


def load_model_outputs(
    model_dir: Optional[Path] = None,
    models: Optional[Iterable[str]] = None,
) -> dict[str, pd.DataFrame]:
    """Load every configured brain age model output; any missing file aborts."""
    if models is None:
        models = list(PREDICTION_FILES)
    return {model: read_model_output(get_prediction_path(model, model_dir)) for model in models}


def merge_model_predictions(
    session_ids: Iterable[str],
    outputs: Mapping[str, pd.DataFrame],
) -> pd.Series:
    """
    Combine model outputs into one predicted age per session.

    Every value matching a session id (exact string match, any model) enters
    a NaN-aware mean. Sessions without any finite value stay NaN.
    """
    session_ids = [str(s) for s in session_ids]
    frames = [df[["session_id", "predicted"]] for df in outputs.values() if not df.empty]
    if not frames:
        return pd.Series(np.nan, index=session_ids, name="brain_age", dtype=float)

    long = pd.concat(frames, ignore_index=True)
    long["session_id"] = long["session_id"].astype(str)
    long["predicted"] = pd.to_numeric(long["predicted"], errors="coerce")
    means = long.groupby("session_id", sort=False)["predicted"].mean()

    merged = pd.Series(
        [float(means.get(s, np.nan)) for s in session_ids],
        index=session_ids,
        name="brain_age",
        dtype=float,
    )
    return merged
