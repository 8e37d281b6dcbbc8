"""Regression models, adjusted responses, partial correlation and bootstrap."""

from .adjusted import AdjustedResponse, adjusted_response
from .association import AssociationResult, analyse_association
from .bootstrap import BootstrapResult, bootstrap_p_value, bootstrap_partial_correlation, run_rho_bootstrap
from .models import (
    DegenerateModelError,
    ModelFit,
    ModelSpec,
    RandomEffect,
    Term,
    TermStats,
    fit_model,
    regression_line,
)
from .partial_corr import partial_correlation

__all__ = [
    "AdjustedResponse",
    "adjusted_response",
    "AssociationResult",
    "analyse_association",
    "BootstrapResult",
    "bootstrap_p_value",
    "bootstrap_partial_correlation",
    "run_rho_bootstrap",
    "DegenerateModelError",
    "ModelFit",
    "ModelSpec",
    "RandomEffect",
    "Term",
    "TermStats",
    "fit_model",
    "regression_line",
    "partial_correlation",
]
