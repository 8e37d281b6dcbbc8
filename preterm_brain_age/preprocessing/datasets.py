"""
Session dataset with combined, bias-corrected brain age.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .bias import BiasModel, fit_bias_model
from .constants import IBI_DIR, IBI_FILE_PATTERN, PREDICTION_FILES, SHEET_PATH, get_prediction_path
from .predictions import load_model_outputs, merge_model_predictions
from .sheet import SheetLayout, load_session_table


def build_brain_age_dataset(
    sheet_path: Optional[Path] = None,
    model_dir: Optional[Path] = None,
    layout: Optional[SheetLayout] = None,
    models: Optional[Iterable[str]] = None,
    verbose: bool = True,
) -> tuple[pd.DataFrame, BiasModel]:
    """
    Load sessions, combine the model outputs and remove the age bias.

    The bias model is fitted on every session with a PMA and a prediction
    and applied to all of them. Adds ``brain_age_raw`` and ``brain_age``.
    """
    sessions = load_session_table(sheet_path, layout)
    outputs = load_model_outputs(model_dir, models)

    merged = merge_model_predictions(sessions["session_id"], outputs)
    sessions["brain_age_raw"] = merged.to_numpy()

    bias_model = fit_bias_model(sessions["pma"], sessions["brain_age_raw"])
    sessions["brain_age"] = bias_model.correct(sessions["pma"], sessions["brain_age_raw"])

    if verbose:
        n_pred = int(sessions["brain_age_raw"].notna().sum())
        print(f"[INFO] sessions: {len(sessions)}, with brain age: {n_pred}, infants: {sessions['infant_id'].nunique()}")
        print(
            f"[INFO] bias model: predicted = {bias_model.intercept:.3f} + "
            f"{bias_model.slope:.3f} * PMA (n={bias_model.n_pairs})"
        )
    return sessions, bias_model


def get_input_status(
    sheet_path: Optional[Path] = None,
    model_dir: Optional[Path] = None,
    ibi_dir: Optional[Path] = None,
) -> dict[str, dict]:
    """Existence of each input the analyses read."""
    status = {"sheet": {"path": Path(sheet_path or SHEET_PATH)}}
    for model in PREDICTION_FILES:
        status[f"model:{model}"] = {"path": get_prediction_path(model, model_dir)}
    ibi_path = Path(ibi_dir or IBI_DIR)
    n_ibi = len(list(ibi_path.glob(IBI_FILE_PATTERN.format(session="*")))) if ibi_path.is_dir() else 0
    status["ibi"] = {"path": ibi_path, "n_files": n_ibi}
    for info in status.values():
        info["exists"] = info["path"].exists()
    return status


def print_dataset_summary(
    sheet_path: Optional[Path] = None,
    model_dir: Optional[Path] = None,
    ibi_dir: Optional[Path] = None,
) -> None:
    print("=" * 60)
    print("Input summary")
    print("=" * 60)

    status = get_input_status(sheet_path, model_dir, ibi_dir)
    for name, info in status.items():
        flag = "OK" if info["exists"] else "NO"
        extra = f" N={info['n_files']}" if "n_files" in info else ""
        print(f"  [{flag}] {name:16}{extra} ({info['path']})")

    if not status["sheet"]["exists"]:
        return
    sessions = load_session_table(sheet_path)
    print(f"\n  [Sheet] sessions={len(sessions)}, infants={sessions['infant_id'].nunique()}")
    print(f"  [Sheet] PMA range: {sessions['pma'].min():.1f} - {sessions['pma'].max():.1f} weeks")
