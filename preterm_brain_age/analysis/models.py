"""
Linear and linear mixed-effects models for the brain age analyses.

Models are described by a typed ``ModelSpec`` (outcome, primary predictor,
confounds, optional by-infant random intercept/slope) and fitted with
statsmodels: OLS when there is no random part, MixedLM (ML) otherwise.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field, replace
from typing import Optional

import numpy as np
import pandas as pd
import patsy
import statsmodels.formula.api as smf
from scipy import stats
from statsmodels.tools.sm_exceptions import ConvergenceWarning

FIT_METHODS = ("lbfgs", "powell")
INTERCEPT = "Intercept"
CONSTANT_TOL = 1e-8


class DegenerateModelError(ValueError):
    """Raised when a model cannot be identified from the data."""


@dataclass(frozen=True)
class Term:
    name: str
    categorical: bool = False

    @property
    def formula(self) -> str:
        return f"C({self.name})" if self.categorical else self.name


@dataclass(frozen=True)
class RandomEffect:
    group: str = "infant"
    slope: Optional[str] = None

    @property
    def re_formula(self) -> str:
        return f"1 + {self.slope}" if self.slope else "1"

    @property
    def n_terms(self) -> int:
        return 2 if self.slope else 1

    @property
    def label(self) -> str:
        return f"({self.re_formula} | {self.group})"


@dataclass(frozen=True)
class ModelSpec:
    outcome: str
    predictor: Term
    confounds: tuple[Term, ...] = ()
    random: Optional[RandomEffect] = None

    def __post_init__(self):
        if self.predictor.categorical:
            raise ValueError(f"Primary predictor must be numeric: {self.predictor.name}")

    @property
    def fixed_terms(self) -> tuple[Term, ...]:
        return (self.predictor, *self.confounds)

    @property
    def formula(self) -> str:
        return f"{self.outcome} ~ " + " + ".join(term.formula for term in self.fixed_terms)

    @property
    def label(self) -> str:
        text = f"{self.outcome} ~ " + " + ".join(term.name for term in self.fixed_terms)
        if self.random is not None:
            text += f" + {self.random.label}"
        return text

    @property
    def columns(self) -> list[str]:
        cols = [self.outcome, *(term.name for term in self.fixed_terms)]
        if self.random is not None:
            cols.append(self.random.group)
            if self.random.slope and self.random.slope not in cols:
                cols.append(self.random.slope)
        return cols

    def reduced(self) -> "ModelSpec":
        """Predictor-only model with the same random part."""
        return replace(self, confounds=())

    def without_random(self) -> "ModelSpec":
        return replace(self, random=None)

    def with_predictor(self, name: str) -> "ModelSpec":
        """Swap the primary predictor (random slope follows it)."""
        random = self.random
        if random is not None and random.slope == self.predictor.name:
            random = replace(random, slope=name)
        return replace(self, predictor=Term(name), random=random)

    def with_confounds(self, *terms: Term) -> "ModelSpec":
        return replace(self, confounds=(*self.confounds, *terms))


@dataclass(frozen=True)
class TermStats:
    beta: float
    se: float
    t: float
    p: float
    df: float


@dataclass
class ModelFit:
    spec: ModelSpec
    result: object
    data: pd.DataFrame
    method: str = "ols"
    converged: bool = True
    warning_msgs: list[str] = field(default_factory=list)

    @property
    def is_mixed(self) -> bool:
        return self.spec.random is not None

    @property
    def n_obs(self) -> int:
        return int(len(self.data))

    @property
    def n_groups(self) -> int:
        if self.spec.random is None:
            return 0
        return int(self.data[self.spec.random.group].nunique())

    @property
    def fe_params(self) -> pd.Series:
        if self.is_mixed:
            return self.result.fe_params
        return self.result.params

    @property
    def df_resid(self) -> float:
        return float(self.n_obs - len(self.fe_params))

    def fe_cov(self) -> pd.DataFrame:
        # fixed effects lead the parameter vector for both OLS and MixedLM
        names = list(self.fe_params.index)
        k_fe = len(names)
        cov = np.asarray(self.result.cov_params(), dtype=float)[:k_fe, :k_fe]
        return pd.DataFrame(cov, index=names, columns=names)

    def term(self, name: str) -> TermStats:
        params = self.fe_params
        if name not in params.index:
            raise KeyError(f"Term '{name}' not in model: {list(params.index)}")
        beta = float(params[name])
        var = float(self.fe_cov().loc[name, name])
        if not np.isfinite(var) or var <= 0:
            raise DegenerateModelError(f"Variance of '{name}' is {var} in '{self.spec.label}'")
        se = float(np.sqrt(var))
        t_stat = beta / se
        df = self.df_resid
        p = float(2 * stats.t.sf(abs(t_stat), df))
        return TermStats(beta=beta, se=se, t=float(t_stat), p=p, df=df)

    def predictor_stats(self) -> TermStats:
        """Statistics of the primary predictor coefficient."""
        return self.term(self.spec.predictor.name)

    def summary_row(self) -> dict[str, object]:
        stats_ = self.predictor_stats()
        return {
            "outcome": self.spec.outcome,
            "predictor": self.spec.predictor.name,
            "model": self.spec.label,
            "n": self.n_obs,
            "n_infants": self.n_groups,
            "beta": stats_.beta,
            "se": stats_.se,
            "t": stats_.t,
            "p": stats_.p,
            "df": stats_.df,
            "method": self.method,
            "converged": self.converged,
            "warning_msg": " | ".join(self.warning_msgs),
        }


def _prepare_data(spec: ModelSpec, data: pd.DataFrame) -> pd.DataFrame:
    missing_cols = [col for col in spec.columns if col not in data.columns]
    if missing_cols:
        raise KeyError(f"Model columns missing from data: {missing_cols}")
    return data.dropna(subset=spec.columns)


def fixed_design(spec: ModelSpec, data: pd.DataFrame) -> patsy.DesignMatrix:
    """Patsy design matrix of the fixed part of ``spec`` (intercept first)."""
    rhs = " + ".join(term.formula for term in spec.fixed_terms)
    return patsy.dmatrix(rhs, data, return_type="matrix")


def _check_identifiable(spec: ModelSpec, data: pd.DataFrame) -> None:
    design = fixed_design(spec, data)
    X = np.asarray(design, dtype=float)
    n_obs, k_fe = X.shape
    if n_obs <= k_fe:
        raise DegenerateModelError(f"{n_obs} observations for {k_fe} fixed effects in '{spec.label}'")

    # rank on centred, unit-spread columns so round-off noise is not a regressor
    scaled = X.copy()
    for j, name in enumerate(design.design_info.column_names):
        if name == INTERCEPT:
            continue
        col = X[:, j]
        spread = col.std()
        if spread <= CONSTANT_TOL * max(1.0, abs(col.mean())):
            raise DegenerateModelError(f"Column '{name}' is constant in '{spec.label}'")
        scaled[:, j] = (col - col.mean()) / spread
    rank = np.linalg.matrix_rank(scaled)
    if rank < k_fe:
        raise DegenerateModelError(f"Rank-deficient design ({rank} < {k_fe}) in '{spec.label}'")
    if spec.random is not None:
        n_groups = data[spec.random.group].nunique()
        if n_groups < spec.random.n_terms:
            raise DegenerateModelError(
                f"{n_groups} groups for {spec.random.n_terms} random-effect terms in '{spec.label}'"
            )


def _has_valid_variances(fit: ModelFit) -> bool:
    variances = np.diag(fit.fe_cov().to_numpy())
    return bool(np.all(np.isfinite(variances)) and np.all(variances > 0))


def _fit_mixedlm_with_warnings(
    spec: ModelSpec,
    data: pd.DataFrame,
    method: str,
) -> tuple[object, list[str]]:
    warning_msgs: list[str] = []
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        model = smf.mixedlm(
            spec.formula,
            data=data,
            groups=data[spec.random.group].to_numpy(),
            re_formula=spec.random.re_formula,
        )
        result = model.fit(reml=False, method=method, maxiter=200)
    for warn in caught:
        if issubclass(warn.category, ConvergenceWarning):
            warning_msgs.append(str(warn.message))
    return result, warning_msgs


def _fit_mixed_with_fallback(spec: ModelSpec, data: pd.DataFrame) -> ModelFit:
    last_error = None
    last_fit = None

    for method in FIT_METHODS:
        try:
            result, warning_msgs = _fit_mixedlm_with_warnings(spec, data, method)
        except (np.linalg.LinAlgError, ValueError) as exc:
            last_error = str(exc)
            continue
        candidate = ModelFit(
            spec=spec,
            result=result,
            data=data,
            method=method,
            converged=bool(getattr(result, "converged", False)),
            warning_msgs=warning_msgs,
        )
        if not _has_valid_variances(candidate):
            last_error = f"non-finite or zero fixed-effect variance ({method})"
            continue
        last_fit = candidate
        if last_fit.converged:
            return last_fit

    if last_fit is None:
        raise DegenerateModelError(f"MixedLM failed for '{spec.label}': {last_error}")
    return last_fit


def fit_model(spec: ModelSpec, data: pd.DataFrame) -> ModelFit:
    """
    Fit ``spec`` to ``data`` (rows with missing model columns are dropped).

    Raises
    ------
    DegenerateModelError
        Rank-deficient or constant fixed design, too few observations, fewer
        groups than random-effect terms, or a fit whose fixed-effect variances
        are not finite and positive.
    """
    used = _prepare_data(spec, data)
    _check_identifiable(spec, used)

    if spec.random is None:
        fit = ModelFit(spec=spec, result=smf.ols(spec.formula, data=used).fit(), data=used)
        if not _has_valid_variances(fit):
            raise DegenerateModelError(f"Non-finite or zero fixed-effect variance in '{spec.label}'")
        return fit
    return _fit_mixed_with_fallback(spec, used)


@dataclass(frozen=True)
class RegressionLine:
    x: np.ndarray
    mean: np.ndarray
    lower: np.ndarray
    upper: np.ndarray


def regression_line(fit: ModelFit, x, alpha: float = 0.05) -> RegressionLine:
    """Mean fixed-effects line of a predictor-only fit and its confidence band."""
    if fit.spec.confounds:
        raise ValueError("Regression line needs a predictor-only model; use spec.reduced().")
    x = np.sort(np.asarray(x, dtype=float).ravel())
    names = [INTERCEPT, fit.spec.predictor.name]
    beta = fit.fe_params.loc[names].to_numpy(dtype=float)
    cov = fit.fe_cov().loc[names, names].to_numpy(dtype=float)

    X = np.column_stack([np.ones_like(x), x])
    mean = X @ beta
    se = np.sqrt(np.einsum("ij,jk,ik->i", X, cov, X))
    crit = stats.t.ppf(1 - alpha / 2, fit.df_resid)
    return RegressionLine(x=x, mean=mean, lower=mean - crit * se, upper=mean + crit * se)
