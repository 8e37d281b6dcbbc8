"""
Brain maturity versus PMA at caffeine discontinuation.

One session per infant (the last one recorded while still on caffeine, at
most two weeks before the stop). Linear model with infection as confound;
the figure shows the infection-adjusted stop PMA against brain maturity.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from preterm_brain_age.analysis.association import AssociationResult, analyse_association
from preterm_brain_age.analysis.models import ModelSpec, Term
from preterm_brain_age.analysis.utils import get_figures_dir, get_output_dir, save_table
from preterm_brain_age.figures_tables.plot_regression import caffeine_title, plot_adjusted_regression
from preterm_brain_age.preprocessing.caffeine import (
    CAFFEINE_OUTCOME,
    CaffeineCohortCriteria,
    assemble_caffeine_cohort,
)
from preterm_brain_age.preprocessing.constants import CAFFEINE_COLOR
from preterm_brain_age.preprocessing.datasets import build_brain_age_dataset
from preterm_brain_age.preprocessing.sheet import build_infant_index


def build_caffeine_spec() -> ModelSpec:
    return ModelSpec(
        outcome=CAFFEINE_OUTCOME,
        predictor=Term("brain_maturity"),
        confounds=(Term("infection", categorical=True),),
    )


def load_caffeine_cohort(
    sheet_path: Path | None = None,
    model_dir: Path | None = None,
    criteria: CaffeineCohortCriteria | None = None,
    verbose: bool = True,
) -> pd.DataFrame:
    sessions, _ = build_brain_age_dataset(sheet_path, model_dir, verbose=verbose)
    cohort = assemble_caffeine_cohort(
        sessions,
        sessions["brain_age"].to_numpy(),
        criteria=criteria,
        infant_index=build_infant_index(sessions),
        verbose=verbose,
    )
    if len(cohort) == 0:
        raise RuntimeError("No sessions qualify for the caffeine discontinuation analysis.")
    if verbose:
        print(f"[INFO] caffeine cohort: {len(cohort)} sessions, {cohort.n_infants} infants")
    return cohort.to_frame()


def main(
    sheet_path: Path | None = None,
    model_dir: Path | None = None,
    lookback_weeks: float | None = None,
    make_plots: bool = True,
    verbose: bool = True,
) -> AssociationResult:
    criteria = CaffeineCohortCriteria() if lookback_weeks is None else CaffeineCohortCriteria(lookback_weeks)
    data = load_caffeine_cohort(sheet_path, model_dir, criteria, verbose=verbose)

    spec = build_caffeine_spec()
    if verbose:
        print("=" * 60)
        print(spec.label)
        print("=" * 60)

    result = analyse_association(data, spec, verbose=verbose)
    row = result.summary_row()
    print(f"  beta={row['beta']:.4f}, t={row['t']:.3f}, p={row['p']:.6f}, n={row['n']}")

    if make_plots:
        plot_adjusted_regression(
            result.adjusted,
            result.line,
            title=caffeine_title(row["beta"], row["p"]),
            xlabel="brain maturity [weeks]",
            ylabel="PMA at caffeine stop [weeks]",
            color=CAFFEINE_COLOR,
            output_path=get_figures_dir("caffeine") / "brain_maturity_vs_caf_stop.png",
            marker_size=64,
            alpha=1.0,
        )

    save_table([row], get_output_dir("caffeine") / "brain_maturity_vs_caf_stop.csv", verbose=verbose)
    return result


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Brain maturity versus PMA at caffeine discontinuation.")
    parser.add_argument("--sheet", type=Path, default=None, help="Clinical overview spreadsheet")
    parser.add_argument("--model-dir", type=Path, default=None, help="Directory with brain age model outputs")
    parser.add_argument("--lookback-weeks", type=float, default=None, help="Maximum gap between session and stop")
    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args()
    main(
        sheet_path=args.sheet,
        model_dir=args.model_dir,
        lookback_weeks=args.lookback_weeks,
        make_plots=not args.no_plots,
        verbose=not args.quiet,
    )
