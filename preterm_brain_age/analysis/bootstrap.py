"""
Bootstrap test of an observed partial correlation against a substitute
predictor.

Each draw resamples observation rows with replacement (rows, not infants),
refits the substitute model and keeps the partial correlation of its
predictor. Every draw gets its own child seed of one ``SeedSequence``, so the
distribution does not depend on evaluation order. Draws whose refit is
degenerate or does not converge are NaN and are left out of the p-value.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..preprocessing.constants import BOOT_SEED, N_BOOT
from .models import DegenerateModelError, ModelSpec, fit_model
from .partial_corr import partial_correlation


@dataclass(frozen=True)
class BootstrapResult:
    rho_true: float
    rho_boot: np.ndarray
    p_value: float
    n_boot: int
    n_failed: int
    seed: int

    def summary_row(self) -> dict[str, object]:
        finite = self.rho_boot[np.isfinite(self.rho_boot)]
        return {
            "rho_true": self.rho_true,
            "p_value": self.p_value,
            "n_boot": self.n_boot,
            "n_failed": self.n_failed,
            "seed": self.seed,
            "rho_boot_mean": float(finite.mean()) if finite.size else np.nan,
            "rho_boot_ci_low": float(np.percentile(finite, 2.5)) if finite.size else np.nan,
            "rho_boot_ci_high": float(np.percentile(finite, 97.5)) if finite.size else np.nan,
        }


def fit_partial_correlation(spec: ModelSpec, data: pd.DataFrame) -> float:
    """Fit ``spec`` and return the partial correlation of its predictor."""
    fit = fit_model(spec, data)
    t_stat = fit.predictor_stats().t
    return partial_correlation(t_stat, fit.n_obs, fit.data[spec.predictor.name])


def _draw(spec: ModelSpec, data: pd.DataFrame, rng: np.random.Generator) -> float:
    idx = rng.integers(0, len(data), size=len(data))
    sample = data.iloc[idx].reset_index(drop=True)
    try:
        fit = fit_model(spec, sample)
        t_stat = fit.predictor_stats().t
    except DegenerateModelError:
        return np.nan
    if not fit.converged:
        return np.nan
    return partial_correlation(t_stat, fit.n_obs, fit.data[spec.predictor.name])


def bootstrap_partial_correlation(
    data: pd.DataFrame,
    spec: ModelSpec,
    n_boot: int = N_BOOT,
    seed: int = BOOT_SEED,
    verbose: bool = False,
) -> np.ndarray:
    """Partial correlations of ``spec.predictor`` over ``n_boot`` row resamples."""
    data = data.dropna(subset=spec.columns).reset_index(drop=True)
    if data.empty:
        raise RuntimeError("No rows available for bootstrap.")

    children = np.random.SeedSequence(seed).spawn(n_boot)
    rho = np.full(n_boot, np.nan)
    for i, child in enumerate(children):
        rho[i] = _draw(spec, data, np.random.default_rng(child))
        if verbose and (i + 1) % 1000 == 0:
            print(f"  [BOOT] {i + 1}/{n_boot} (failed: {int(np.isnan(rho[: i + 1]).sum())})")
    return rho


def bootstrap_p_value(rho_true: float, rho_boot) -> float:
    """Share of finite bootstrap draws not exceeding the observed rho."""
    rho_boot = np.asarray(rho_boot, dtype=float)
    finite = rho_boot[np.isfinite(rho_boot)]
    if finite.size == 0:
        raise ValueError("No finite bootstrap draws.")
    return float(np.sum(rho_true >= finite) / finite.size)


def run_rho_bootstrap(
    data: pd.DataFrame,
    true_spec: ModelSpec,
    substitute_spec: ModelSpec,
    n_boot: int = N_BOOT,
    seed: int = BOOT_SEED,
    verbose: bool = True,
) -> BootstrapResult:
    """Observed rho of ``true_spec`` tested against the ``substitute_spec`` bootstrap."""
    rho_true = fit_partial_correlation(true_spec, data)
    rho_boot = bootstrap_partial_correlation(data, substitute_spec, n_boot=n_boot, seed=seed, verbose=verbose)
    n_failed = int(np.isnan(rho_boot).sum())
    if verbose and n_failed:
        print(f"[WARN] {n_failed}/{n_boot} bootstrap refits failed or did not converge")
    return BootstrapResult(
        rho_true=rho_true,
        rho_boot=rho_boot,
        p_value=bootstrap_p_value(rho_true, rho_boot),
        n_boot=n_boot,
        n_failed=n_failed,
        seed=seed,
    )
