from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from scipy.io import savemat

from preterm_brain_age.preprocessing.constants import PREDICTION_FILES

SHEET_COLUMNS = [
    "Study",
    "Infant",
    "Session",
    "PMA_weeks",
    "PMA_days",
    "Caffeine_start_weeks",
    "Caffeine_start_days",
    "Caffeine_stop_weeks",
    "Caffeine_stop_days",
    "Caffeine",
    "Caffeine_stop_uncertain",
    "Infection",
    "Ventilation",
]


def sheet_row(study, infant, session, pma_weeks, pma_days=0, caf_stop=(np.nan, np.nan), note="", infection=0):
    return {
        "Study": study,
        "Infant": infant,
        "Session": session,
        "PMA_weeks": pma_weeks,
        "PMA_days": pma_days,
        "Caffeine_start_weeks": 28,
        "Caffeine_start_days": 0,
        "Caffeine_stop_weeks": caf_stop[0],
        "Caffeine_stop_days": caf_stop[1],
        "Caffeine": 1,
        "Caffeine_stop_uncertain": note,
        "Infection": infection,
        "Ventilation": "none",
    }


def write_sheet(path: Path, rows: list[dict]) -> Path:
    pd.DataFrame(rows, columns=SHEET_COLUMNS).to_csv(path, index=False)
    return path


def write_model_output(path: Path, session_ids, predicted) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    savemat(
        path,
        {
            "ses_labels": np.array(list(session_ids), dtype=object),
            "Y_predict": np.asarray(predicted, dtype=float),
        },
    )
    return path


def write_model_outputs(model_dir: Path, per_model: dict[str, tuple[list[str], list[float]]]) -> Path:
    for model, (session_ids, predicted) in per_model.items():
        write_model_output(model_dir / PREDICTION_FILES[model], session_ids, predicted)
    return model_dir


def write_ibi(ibi_dir: Path, session_id: str, resp_rate: float, apnoea_rate: float, length: float = 3600.0) -> Path:
    ibi_dir.mkdir(parents=True, exist_ok=True)
    path = ibi_dir / f"ibi_stat_{session_id}.mat"
    savemat(
        path,
        {
            "data_length_sec": length,
            "ibi_resp_rate": resp_rate,
            "ibi_rate_15_0_sec": apnoea_rate,
        },
    )
    return path


@pytest.fixture
def five_session_inputs(tmp_path):
    """Two infants, five sessions, both models predicting PMA + 2 weeks."""
    rows = [
        sheet_row("X", "01", "a", 31, 0),
        sheet_row("X", "01", "b", 32, 3),
        sheet_row("X", "01", "c", 34, 1),
        sheet_row("X", "02", "a", 33, 2),
        sheet_row("X", "02", "b", 36, 5),
    ]
    sheet = write_sheet(tmp_path / "overview.csv", rows)
    ids = ["x01a", "x01b", "x01c", "x02a", "x02b"]
    pma = np.array([31.0, 32 + 3 / 7, 34 + 1 / 7, 33 + 2 / 7, 36 + 5 / 7])
    model_dir = write_model_outputs(
        tmp_path / "output",
        {"sensory": (ids, pma + 2.0), "rest": (ids, pma + 2.0)},
    )
    return sheet, model_dir, ids, pma


@pytest.fixture
def mixed_cohort():
    """Synthetic respiration cohort: 10 infants, 4 sessions each."""
    rng = np.random.default_rng(7)
    rows = []
    for infant in range(1, 11):
        infant_shift = rng.normal(0, 0.5)
        for session in range(4):
            pma = 31 + 1.5 * session + rng.uniform(0, 1)
            maturity = rng.normal(0, 1)
            infection = str(int(rng.random() < 0.3))
            length = rng.uniform(1800, 7200)
            rows.append(
                {
                    "infant": infant,
                    "pma": pma,
                    "brain_maturity": maturity,
                    "data_length": length,
                    "infection": infection,
                    "ibi_rate_15_0_sec": 5 - 0.8 * maturity + infant_shift + 0.0002 * length + rng.normal(0, 0.5),
                }
            )
    return pd.DataFrame(rows)
