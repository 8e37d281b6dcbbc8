import numpy as np
import pytest

from preterm_brain_age.preprocessing.cohort import CohortBuilder, assemble_respiration_cohort
from preterm_brain_age.preprocessing.ibi import load_ibi_outcomes
from preterm_brain_age.preprocessing.sheet import load_session_table

from conftest import sheet_row, write_ibi, write_sheet


@pytest.fixture
def sessions(tmp_path):
    rows = [
        sheet_row("X", "02", "a", 32),
        sheet_row("X", "02", "b", 34),
        sheet_row("X", "01", "a", 33, infection=1),
        sheet_row("X", "01", "b", 35),
    ]
    return load_session_table(write_sheet(tmp_path / "sheet.csv", rows))


def test_sessions_without_prediction_or_ibi_are_skipped(tmp_path, sessions, capsys):
    ibi_dir = tmp_path / "ibi"
    write_ibi(ibi_dir, "x02a", 45.0, 3.0, length=1800)
    write_ibi(ibi_dir, "x02b", 40.0, 2.0)
    write_ibi(ibi_dir, "x01a", 50.0, 4.0)

    brain_age = [33.0, np.nan, 34.0, 36.0]
    cohort = assemble_respiration_cohort(sessions, brain_age, ibi_dir=ibi_dir)

    assert [obs.session_id for obs in cohort.observations] == ["x02a", "x01a"]
    assert "no respiration outcomes for x01b" in capsys.readouterr().out

    frame = cohort.to_frame()
    assert list(frame["infant"]) == [2, 1]
    assert frame.loc[0, "data_length"] == pytest.approx(1800.0)
    assert frame.loc[0, "brain_maturity"] == pytest.approx(1.0)
    assert frame.loc[1, "ibi_rate_15_0_sec"] == pytest.approx(4.0)
    assert frame.loc[1, "infection"] == "1"
    assert cohort.n_infants == 2


def test_ibi_file_missing_variable_is_skipped(tmp_path, capsys):
    from scipy.io import savemat

    ibi_dir = tmp_path / "ibi"
    ibi_dir.mkdir()
    savemat(ibi_dir / "ibi_stat_x01a.mat", {"data_length_sec": 100.0})
    assert load_ibi_outcomes("x01a", ["ibi_resp_rate"], ibi_dir) is None
    assert "missing" in capsys.readouterr().out


def test_brain_age_length_must_match(sessions, tmp_path):
    with pytest.raises(ValueError):
        assemble_respiration_cohort(sessions, [33.0], ibi_dir=tmp_path)


def test_builder_rejects_unknown_infant_and_missing_outcome():
    builder = CohortBuilder({"x01": 1}, ["ibi_resp_rate"])
    session = {"session_id": "x02a", "infant_id": "x02", "pma": 32.0, "infection": "0", "resp_support": ""}
    with pytest.raises(KeyError):
        builder.add(session, 33.0, {"ibi_resp_rate": 40.0})
    session.update(session_id="x01a", infant_id="x01")
    with pytest.raises(KeyError):
        builder.add(session, 33.0, {})
    builder.add(session, 33.0, {"ibi_resp_rate": 40.0})
    assert len(builder.build()) == 1


def test_hdf5_ibi_file_is_skipped(tmp_path, capsys):
    # v7.3 files carry the HDF5 version marker in the MAT header
    header = b"MATLAB 7.3 MAT-file".ljust(116, b" ") + b"\x00" * 8 + b"\x00\x02IM"
    (tmp_path / "ibi_stat_x01a.mat").write_bytes(header + b"\x00" * 512)
    assert load_ibi_outcomes("x01a", ["ibi_resp_rate"], tmp_path) is None
    assert "unreadable IBI file" in capsys.readouterr().out


def test_non_numeric_ibi_value_is_skipped(tmp_path, capsys):
    from scipy.io import savemat

    savemat(tmp_path / "ibi_stat_x01a.mat", {"data_length_sec": 100.0, "ibi_resp_rate": "n/a"})
    assert load_ibi_outcomes("x01a", ["ibi_resp_rate"], tmp_path) is None
    assert "non-numeric" in capsys.readouterr().out
