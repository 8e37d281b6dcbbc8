"""
Brain maturity / PMA versus IBI respiration outcomes.

For each outcome (respiration rate, apnoea rate) and predictor (brain
maturity, PMA): mixed model with confounds and a by-infant random intercept
and slope for inference, adjusted responses from the matching linear model,
and a predictor-only mixed model on the adjusted values for the figure.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from preterm_brain_age.analysis.association import analyse_association
from preterm_brain_age.analysis.models import ModelSpec, RandomEffect, Term
from preterm_brain_age.analysis.utils import get_figures_dir, get_output_dir, save_table
from preterm_brain_age.figures_tables.plot_regression import plot_adjusted_regression, respiration_title
from preterm_brain_age.preprocessing.cohort import assemble_respiration_cohort
from preterm_brain_age.preprocessing.constants import (
    CATEGORICAL_COLUMNS,
    IBI_OUTCOMES,
    PREDICTOR_COLORS,
    RESPIRATION_CONFOUNDS,
    RESPIRATION_PREDICTORS,
    STUDY_LABEL,
)
from preterm_brain_age.preprocessing.datasets import build_brain_age_dataset
from preterm_brain_age.preprocessing.sheet import build_infant_index


def build_respiration_spec(outcome: str, predictor: str, with_ventilation: bool = False) -> ModelSpec:
    confounds = [Term(name, categorical=name in CATEGORICAL_COLUMNS) for name in RESPIRATION_CONFOUNDS[outcome]]
    if with_ventilation:
        confounds.append(Term("resp_support", categorical=True))
    return ModelSpec(
        outcome=outcome,
        predictor=Term(predictor),
        confounds=tuple(confounds),
        random=RandomEffect(group="infant", slope=predictor),
    )


def load_respiration_cohort(
    sheet_path: Path | None = None,
    model_dir: Path | None = None,
    ibi_dir: Path | None = None,
    outcomes: list[str] | None = None,
    verbose: bool = True,
) -> pd.DataFrame:
    sessions, _ = build_brain_age_dataset(sheet_path, model_dir, verbose=verbose)
    cohort = assemble_respiration_cohort(
        sessions,
        sessions["brain_age"].to_numpy(),
        ibi_dir=ibi_dir,
        outcomes=IBI_OUTCOMES if outcomes is None else outcomes,
        infant_index=build_infant_index(sessions),
        verbose=verbose,
    )
    if len(cohort) == 0:
        raise RuntimeError("No sessions with brain age and respiration outcomes available.")
    if verbose:
        print(f"[INFO] respiration cohort: {len(cohort)} sessions, {cohort.n_infants} infants")
    return cohort.to_frame()


def main(
    sheet_path: Path | None = None,
    model_dir: Path | None = None,
    ibi_dir: Path | None = None,
    with_ventilation: bool = False,
    make_plots: bool = True,
    verbose: bool = True,
) -> pd.DataFrame:
    data = load_respiration_cohort(sheet_path, model_dir, ibi_dir, verbose=verbose)

    rows = []
    for outcome in IBI_OUTCOMES:
        for predictor in RESPIRATION_PREDICTORS:
            spec = build_respiration_spec(outcome, predictor, with_ventilation)
            if verbose:
                print("=" * 60)
                print(spec.label)
                print("=" * 60)

            result = analyse_association(data, spec, verbose=verbose)
            row = result.summary_row()
            rows.append(row)
            if verbose:
                print(f"  beta={row['beta']:.4f}, t={row['t']:.3f}, p={row['p']:.4f}, rho={row['rho']:.4f}")

            if make_plots:
                name = f"resp_{outcome}_{predictor}_{STUDY_LABEL}"
                plot_adjusted_regression(
                    result.adjusted,
                    result.line,
                    title=respiration_title(result.rho, row["p"], row["beta"]),
                    xlabel=f"{predictor} [weeks]",
                    ylabel=outcome,
                    color=PREDICTOR_COLORS[predictor],
                    output_path=get_figures_dir("respiration") / f"{name}.png",
                )

    out_path = get_output_dir("respiration") / f"brain_age_respiration_{STUDY_LABEL}.csv"
    return save_table(rows, out_path, verbose=verbose)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Brain maturity and PMA versus IBI respiration outcomes.")
    parser.add_argument("--sheet", type=Path, default=None, help="Clinical overview spreadsheet")
    parser.add_argument("--model-dir", type=Path, default=None, help="Directory with brain age model outputs")
    parser.add_argument("--ibi-dir", type=Path, default=None, help="Directory with ibi_stat_<session>.mat files")
    parser.add_argument("--with-ventilation", action="store_true", help="Add ventilation support as a confound")
    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args()
    main(
        sheet_path=args.sheet,
        model_dir=args.model_dir,
        ibi_dir=args.ibi_dir,
        with_ventilation=args.with_ventilation,
        make_plots=not args.no_plots,
        verbose=not args.quiet,
    )
