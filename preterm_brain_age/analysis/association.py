"""
One predictor-outcome association: inference on the full model, display line
on the confound-adjusted data.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from .adjusted import AdjustedResponse, adjusted_response
from .models import ModelFit, ModelSpec, RegressionLine, fit_model, regression_line
from .partial_corr import partial_correlation


@dataclass
class AssociationResult:
    full_fit: ModelFit
    linear_fit: ModelFit
    adjusted: AdjustedResponse
    reduced_fit: ModelFit
    line: RegressionLine
    rho: float

    def summary_row(self) -> dict[str, object]:
        row = self.full_fit.summary_row()
        row["rho"] = self.rho
        row["display_model"] = self.reduced_fit.spec.label
        row["display_beta"] = self.reduced_fit.predictor_stats().beta
        return row


def analyse_association(data: pd.DataFrame, spec: ModelSpec, verbose: bool = True) -> AssociationResult:
    """
    Fit ``spec`` for inference and its reduced form for display.

    The fixed-effects version of ``spec`` provides the adjusted responses;
    the predictor-only model with the same random part is refitted on them.
    """
    linear_fit = fit_model(spec.without_random(), data)
    full_fit = fit_model(spec, data) if spec.random is not None else linear_fit
    if verbose and not full_fit.converged:
        print(f"[WARN] '{spec.label}' did not converge ({full_fit.method})")

    t_stat = full_fit.predictor_stats().t
    rho = partial_correlation(t_stat, full_fit.n_obs, full_fit.data[spec.predictor.name])

    adjusted = adjusted_response(linear_fit)
    group = spec.random.group if spec.random is not None else None
    reduced_fit = fit_model(spec.reduced(), adjusted.to_frame(linear_fit, group))
    line = regression_line(reduced_fit, adjusted.x)

    return AssociationResult(
        full_fit=full_fit,
        linear_fit=linear_fit,
        adjusted=adjusted,
        reduced_fit=reduced_fit,
        line=line,
        rho=rho,
    )
