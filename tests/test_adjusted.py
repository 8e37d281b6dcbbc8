import numpy as np
import pandas as pd
import pytest

from preterm_brain_age.analysis.adjusted import adjusted_response
from preterm_brain_age.analysis.association import analyse_association
from preterm_brain_age.analysis.models import ModelSpec, RandomEffect, Term, fit_model


@pytest.fixture
def confounded():
    rng = np.random.default_rng(11)
    n = 60
    x = rng.normal(0, 1, n)
    z = rng.normal(10, 3, n)
    group = np.where(rng.random(n) < 0.5, "a", "b")
    y = 1.0 + 0.7 * x + 0.3 * z + np.where(group == "b", 2.0, 0.0) + rng.normal(0, 0.2, n)
    return pd.DataFrame({"y": y, "x": x, "z": z, "g": group})


def test_no_confounds_gives_observed_response(confounded):
    fit = fit_model(ModelSpec("y", Term("x")), confounded)
    adjusted = adjusted_response(fit)
    np.testing.assert_allclose(adjusted.y, confounded["y"], atol=1e-9)
    np.testing.assert_allclose(adjusted.x, confounded["x"])


def test_adjusted_slope_equals_full_model_slope(confounded):
    spec = ModelSpec("y", Term("x"), (Term("z"), Term("g", categorical=True)))
    fit = fit_model(spec, confounded)
    adjusted = adjusted_response(fit)

    # residuals are orthogonal to the intercept and x
    assert adjusted.y.mean() == pytest.approx(confounded["y"].mean())
    assert np.std(adjusted.y) < np.std(confounded["y"])

    reduced = fit_model(spec.reduced(), adjusted.to_frame(fit))
    assert reduced.predictor_stats().beta == pytest.approx(0.7, abs=0.05)
    assert reduced.predictor_stats().beta == pytest.approx(fit.predictor_stats().beta, rel=1e-8)


def test_adjusted_matches_hand_computation(confounded):
    spec = ModelSpec("y", Term("x"), (Term("z"),))
    fit = fit_model(spec, confounded)
    beta_z = fit.term("z").beta
    expected = confounded["y"] - beta_z * (confounded["z"] - confounded["z"].mean())

    adjusted = adjusted_response(fit)
    np.testing.assert_allclose(adjusted.y, expected, atol=1e-9)
    assert list(adjusted.index) == list(confounded.index)


def test_adjusted_response_unknown_term(confounded):
    fit = fit_model(ModelSpec("y", Term("x"), (Term("z"),)), confounded)
    with pytest.raises(KeyError):
        adjusted_response(fit, "age")


def test_adjusted_response_rejects_mixed(mixed_cohort):
    spec = ModelSpec("ibi_rate_15_0_sec", Term("brain_maturity"), random=RandomEffect("infant"))
    with pytest.raises(ValueError):
        adjusted_response(fit_model(spec, mixed_cohort))


def test_to_frame_carries_group(mixed_cohort):
    spec = ModelSpec("ibi_rate_15_0_sec", Term("brain_maturity"), (Term("data_length"),))
    fit = fit_model(spec, mixed_cohort)
    frame = adjusted_response(fit).to_frame(fit, "infant")
    assert list(frame.columns) == ["ibi_rate_15_0_sec", "brain_maturity", "infant"]
    assert list(frame["infant"]) == list(mixed_cohort["infant"])


def test_analyse_association_fixed_effects(confounded):
    spec = ModelSpec("y", Term("x"), (Term("z"),))
    result = analyse_association(confounded, spec, verbose=False)
    assert result.full_fit is result.linear_fit
    assert 0 < result.rho < 1
    row = result.summary_row()
    assert row["display_model"] == "y ~ x"
    assert row["display_beta"] == pytest.approx(row["beta"], rel=1e-6)
    assert len(result.line.x) == len(confounded)


def test_analyse_association_mixed(mixed_cohort):
    spec = ModelSpec(
        "ibi_rate_15_0_sec",
        Term("brain_maturity"),
        (Term("data_length"), Term("infection", categorical=True)),
        RandomEffect("infant", "brain_maturity"),
    )
    result = analyse_association(mixed_cohort, spec, verbose=False)
    assert result.full_fit.is_mixed
    assert not result.linear_fit.is_mixed
    assert result.reduced_fit.spec.label == "ibi_rate_15_0_sec ~ brain_maturity + (1 + brain_maturity | infant)"
    assert result.rho < 0
