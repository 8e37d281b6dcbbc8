import pytest

from preterm_brain_age.preprocessing import cli
from preterm_brain_age.preprocessing.constants import get_ibi_path, get_prediction_path
from preterm_brain_age.preprocessing.datasets import get_input_status

from conftest import write_ibi


def test_input_status(five_session_inputs, tmp_path):
    sheet, model_dir, ids, _ = five_session_inputs
    write_ibi(tmp_path / "ibi", ids[0], 45.0, 3.0)
    status = get_input_status(sheet, model_dir, tmp_path / "ibi")
    assert status["sheet"]["exists"]
    assert status["model:sensory"]["exists"] and status["model:rest"]["exists"]
    assert status["ibi"]["n_files"] == 1


def test_cli_sessions(five_session_inputs, capsys):
    sheet, model_dir, ids, _ = five_session_inputs
    cli.main(["--sessions", "--sheet", str(sheet), "--model-dir", str(model_dir), "--quiet"])
    out = capsys.readouterr().out
    for session_id in ids:
        assert session_id in out


def test_cli_caffeine_cohort(five_session_inputs, capsys):
    sheet, model_dir, _, _ = five_session_inputs
    cli.main(["--cohort", "caffeine", "--sheet", str(sheet), "--model-dir", str(model_dir), "--quiet"])
    assert "caffeine cohort: 0 sessions" in capsys.readouterr().out


def test_unknown_cohort():
    with pytest.raises(ValueError):
        cli.build_cohort("sleep")


def test_path_helpers(tmp_path):
    assert get_ibi_path("x01a", tmp_path) == tmp_path / "ibi_stat_x01a.mat"
    assert get_prediction_path("rest", tmp_path).name == "brain_age_rest.mat"
    with pytest.raises(ValueError):
        get_ibi_path("")
