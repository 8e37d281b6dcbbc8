import numpy as np
import pytest

from preterm_brain_age.preprocessing.predictions import (
    load_model_outputs,
    merge_model_predictions,
    read_model_output,
)

from conftest import write_model_output, write_model_outputs


def test_read_model_output(tmp_path):
    path = write_model_output(tmp_path / "m.mat", ["x01a", "x01b"], [33.5, np.nan])
    df = read_model_output(path)
    assert list(df["session_id"]) == ["x01a", "x01b"]
    assert df.loc[0, "predicted"] == pytest.approx(33.5)
    assert np.isnan(df.loc[1, "predicted"])


def test_missing_model_output_is_fatal(tmp_path):
    write_model_outputs(tmp_path, {"sensory": (["x01a"], [33.0])})
    with pytest.raises(FileNotFoundError):
        load_model_outputs(tmp_path)


def test_unknown_model_name(tmp_path):
    with pytest.raises(ValueError, match="Unknown brain age model"):
        load_model_outputs(tmp_path, models=["sleep"])


def test_merge_prefers_finite_value(tmp_path):
    model_dir = write_model_outputs(
        tmp_path,
        {
            "sensory": (["x01a", "x01b"], [34.25, np.nan]),
            "rest": (["x01a", "x01b"], [np.nan, 36.0]),
        },
    )
    merged = merge_model_predictions(["x01a", "x01b"], load_model_outputs(model_dir))
    assert merged["x01a"] == 34.25
    assert merged["x01b"] == 36.0


def test_merge_averages_and_keeps_unmatched_nan(tmp_path):
    model_dir = write_model_outputs(
        tmp_path,
        {
            "sensory": (["x01a", "x01a"], [33.0, 35.0]),
            "rest": (["x01a", "x02a"], [34.0, np.nan]),
        },
    )
    merged = merge_model_predictions(["x01a", "x02a", "x03a"], load_model_outputs(model_dir))
    assert merged["x01a"] == pytest.approx(34.0)
    assert np.isnan(merged["x02a"])
    assert np.isnan(merged["x03a"])
