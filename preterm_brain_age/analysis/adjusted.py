"""
Adjusted-response coordinates for a predictor of a fixed-effects model.

Confound columns of the design matrix are held at their sample mean, the
fitted value is recomputed and the model residual added back, so each point
shows the response with the average confound effect instead of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .models import INTERCEPT, ModelFit, fixed_design


@dataclass(frozen=True)
class AdjustedResponse:
    x: np.ndarray
    y: np.ndarray
    index: pd.Index

    def to_frame(self, fit: ModelFit, group: Optional[str] = None) -> pd.DataFrame:
        """Frame with the outcome/predictor names of ``fit`` (plus ``group``)."""
        df = pd.DataFrame(
            {fit.spec.outcome: self.y, fit.spec.predictor.name: self.x},
            index=self.index,
        )
        if group is not None:
            df[group] = fit.data.loc[self.index, group].to_numpy()
        return df


def adjusted_response(fit: ModelFit, predictor: Optional[str] = None) -> AdjustedResponse:
    """Adjusted (x, y) of ``predictor`` (default: the model predictor) in fit row order."""
    if fit.is_mixed:
        raise ValueError("Adjusted response is defined on the fixed-effects model.")

    design = fixed_design(fit.spec, fit.data)
    term_slices = design.design_info.term_name_slices
    predictor_term = fit.spec.predictor.formula if predictor is None else predictor
    if predictor_term not in term_slices:
        raise KeyError(f"Term '{predictor_term}' not in model: {list(term_slices)}")

    exog = np.asarray(design, dtype=float)
    y = fit.data[fit.spec.outcome].to_numpy(dtype=float)
    params = np.linalg.lstsq(exog, y, rcond=None)[0]
    resid = y - exog @ params

    averaged = exog.copy()
    for term_name, cols in term_slices.items():
        if term_name in (INTERCEPT, predictor_term):
            continue
        averaged[:, cols] = exog[:, cols].mean(axis=0)

    adjusted_y = averaged @ params + resid
    x = exog[:, term_slices[predictor_term]].ravel()
    return AdjustedResponse(x=x, y=adjusted_y, index=fit.data.index)
