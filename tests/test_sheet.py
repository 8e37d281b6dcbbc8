import numpy as np
import pandas as pd
import pytest

from preterm_brain_age.preprocessing.sheet import SheetLayout, build_infant_index, load_session_table

from conftest import sheet_row, write_sheet


def test_session_ids_and_pma(tmp_path):
    rows = [
        sheet_row("X", "07", "a", 32, 3, caf_stop=(34, 0)),
        sheet_row("Y", "02", "b", 35, 0, note="medical notes unavailable"),
    ]
    sessions = load_session_table(write_sheet(tmp_path / "sheet.csv", rows))

    assert list(sessions["session_id"]) == ["x07a", "Y02b"]
    assert list(sessions["infant_id"]) == ["x07", "Y02"]
    assert sessions.loc[0, "pma"] == pytest.approx(32 + 3 / 7)
    assert sessions.loc[0, "caf_stop"] == pytest.approx(34.0)
    assert np.isnan(sessions.loc[1, "caf_stop"])
    assert sessions.loc[1, "caf_stop_note"] == "medical notes unavailable"


def test_missing_required_column(tmp_path):
    path = tmp_path / "sheet.csv"
    pd.DataFrame([sheet_row("X", "01", "a", 32)]).drop(columns=["Infection"]).to_csv(path, index=False)
    with pytest.raises(ValueError, match="Infection"):
        load_session_table(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_session_table(tmp_path / "absent.xlsx")


def test_custom_layout(tmp_path):
    path = tmp_path / "sheet.csv"
    row = sheet_row("X", "01", "a", 32)
    row["GA"] = row.pop("PMA_weeks")
    pd.DataFrame([row]).to_csv(path, index=False)
    sessions = load_session_table(path, SheetLayout(pma_weeks="GA"))
    assert sessions.loc[0, "pma"] == pytest.approx(32.0)


def test_infant_index_is_sorted_and_one_based(tmp_path):
    rows = [sheet_row("X", "09", "a", 32), sheet_row("X", "01", "a", 33), sheet_row("X", "09", "b", 34)]
    sessions = load_session_table(write_sheet(tmp_path / "sheet.csv", rows))
    assert build_infant_index(sessions) == {"x01": 1, "x09": 2}
