"""
Clinical spreadsheet loader (one row per recording session).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .constants import SHEET_PATH


@dataclass
class SheetLayout:
    """
    Column names of the clinical overview spreadsheet.

    Attributes
    ----------
    id_columns : tuple of str
        Three identifier columns. The first two identify the infant, all
        three together identify the session.
    pma_weeks, pma_days : str
        Post-menstrual age at recording as completed weeks plus days.
    caffeine_* : str
        Caffeine start/stop PMA (weeks plus days) and the on/off flag.
    caffeine_note : str
        Free-text annotation on the caffeine stop date.
    infection, ventilation : str
        Categorical confound columns.
    """

    id_columns: tuple[str, str, str] = ("Study", "Infant", "Session")
    pma_weeks: str = "PMA_weeks"
    pma_days: str = "PMA_days"
    caffeine_start_weeks: str = "Caffeine_start_weeks"
    caffeine_start_days: str = "Caffeine_start_days"
    caffeine_stop_weeks: str = "Caffeine_stop_weeks"
    caffeine_stop_days: str = "Caffeine_stop_days"
    caffeine_on: str = "Caffeine"
    caffeine_note: str = "Caffeine_stop_uncertain"
    infection: str = "Infection"
    ventilation: str = "Ventilation"

    def required_columns(self) -> list[str]:
        return [*self.id_columns, self.pma_weeks, self.pma_days, self.infection, self.ventilation]


def _read_sheet(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Clinical spreadsheet not found: {path}")
    if path.suffix.lower() in {".xlsx", ".xls"}:
        return pd.read_excel(path, dtype=object)
    return pd.read_csv(path, encoding="utf-8-sig", dtype=object)


def _text(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def _numeric(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(np.nan, index=df.index, dtype=float)
    return pd.to_numeric(df[col], errors="coerce")


def weeks_plus_days(weeks: pd.Series, days: pd.Series) -> pd.Series:
    """Combine completed weeks and remaining days into fractional weeks."""
    return weeks + days / 7


def load_session_table(
    path: Optional[Path] = None,
    layout: Optional[SheetLayout] = None,
) -> pd.DataFrame:
    """
    Load the clinical overview spreadsheet as a session table.

    Returns one row per spreadsheet row, in spreadsheet order, with columns
    ``session_id``, ``infant_id``, ``pma``, ``infection``, ``resp_support``,
    ``caf_start``, ``caf_stop``, ``caf_on`` and ``caf_stop_note``.
    """
    if path is None:
        path = SHEET_PATH
    if layout is None:
        layout = SheetLayout()

    raw = _read_sheet(Path(path))
    missing_cols = [col for col in layout.required_columns() if col not in raw.columns]
    if missing_cols:
        raise ValueError(f"Spreadsheet missing required columns: {missing_cols}")

    first, second, third = (_text(raw[col]) for col in layout.id_columns)
    first = first.str.replace("X", "x", regex=False)
    infant_id = first + second

    sessions = pd.DataFrame(
        {
            "session_id": infant_id + third,
            "infant_id": infant_id,
            "pma": weeks_plus_days(_numeric(raw, layout.pma_weeks), _numeric(raw, layout.pma_days)),
            "infection": _text(raw[layout.infection]),
            "resp_support": _text(raw[layout.ventilation]),
            "caf_start": weeks_plus_days(
                _numeric(raw, layout.caffeine_start_weeks), _numeric(raw, layout.caffeine_start_days)
            ),
            "caf_stop": weeks_plus_days(
                _numeric(raw, layout.caffeine_stop_weeks), _numeric(raw, layout.caffeine_stop_days)
            ),
            "caf_on": _numeric(raw, layout.caffeine_on),
        }
    )
    if layout.caffeine_note in raw.columns:
        sessions["caf_stop_note"] = _text(raw[layout.caffeine_note])
    else:
        sessions["caf_stop_note"] = ""

    sessions = sessions[sessions["session_id"] != ""].reset_index(drop=True)
    return sessions


def build_infant_index(sessions: pd.DataFrame) -> dict[str, int]:
    """Map every infant id to a 1-based index following sorted id order."""
    infant_ids = sorted(set(sessions["infant_id"].astype(str)))
    return {infant_id: idx for idx, infant_id in enumerate(infant_ids, start=1)}
