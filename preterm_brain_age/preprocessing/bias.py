"""
Brain age bias correction.

Predicted age regresses towards the cohort mean, so a linear model
``predicted ~ 1 + true`` is fitted on every session with both values and its
signed bias (fitted - true) is subtracted from each prediction.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import statsmodels.api as sm


@dataclass(frozen=True)
class BiasModel:
    intercept: float
    slope: float
    n_pairs: int

    def bias(self, true_age) -> np.ndarray:
        true_age = np.asarray(true_age, dtype=float)
        return self.intercept + self.slope * true_age - true_age

    def correct(self, true_age, predicted_age) -> np.ndarray:
        return np.asarray(predicted_age, dtype=float) - self.bias(true_age)


def fit_bias_model(true_age, predicted_age) -> BiasModel:
    """Fit predicted ~ 1 + true on pairs where both ages are finite."""
    true_age = np.asarray(true_age, dtype=float).ravel()
    predicted_age = np.asarray(predicted_age, dtype=float).ravel()
    if true_age.shape != predicted_age.shape:
        raise ValueError(
            f"true and predicted age differ in length: {true_age.size} vs {predicted_age.size}"
        )

    valid = np.isfinite(true_age) & np.isfinite(predicted_age)
    n_pairs = int(valid.sum())
    if n_pairs < 2:
        raise ValueError(f"Bias correction needs at least 2 valid age pairs, got {n_pairs}")

    X = sm.add_constant(true_age[valid], has_constant="add")
    result = sm.OLS(predicted_age[valid], X).fit()
    intercept, slope = (float(v) for v in result.params)
    return BiasModel(intercept=intercept, slope=slope, n_pairs=n_pairs)


def correct_brain_age(true_age, predicted_age) -> tuple[np.ndarray, BiasModel]:
    """Fit the bias model and return bias-corrected predictions with it."""
    model = fit_bias_model(true_age, predicted_age)
    return model.correct(true_age, predicted_age), model
