"""
Preprocessing CLI for inspecting inputs and analysis cohorts.

Usage:
    python -m preterm_brain_age.preprocessing --summary
    python -m preterm_brain_age.preprocessing --sessions
    python -m preterm_brain_age.preprocessing --cohort respiration
    python -m preterm_brain_age.preprocessing --cohort caffeine --save
"""

import argparse
import sys
from pathlib import Path

import pandas as pd

from .caffeine import assemble_caffeine_cohort
from .cohort import Cohort, assemble_respiration_cohort
from .constants import OUTPUT_STATS_DIR
from .datasets import build_brain_age_dataset, print_dataset_summary
from .sheet import build_infant_index

VALID_COHORTS = ("respiration", "caffeine")

if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")


def _report_cohort(name: str, cohort: Cohort) -> pd.DataFrame:
    frame = cohort.to_frame()
    print(f"[INFO] {name} cohort: {len(cohort)} sessions, {cohort.n_infants} infants")
    if frame.empty:
        return frame
    cols = ["pma", "brain_age", "brain_maturity", *cohort.outcome_names]
    print(frame[cols].describe().loc[["mean", "std", "min", "max"]].round(3).to_string())
    return frame


def build_cohort(
    name: str,
    sheet_path: Path | None = None,
    model_dir: Path | None = None,
    ibi_dir: Path | None = None,
    verbose: bool = True,
) -> Cohort:
    if name not in VALID_COHORTS:
        raise ValueError(f"Unknown cohort: {name}. Valid cohorts: {list(VALID_COHORTS)}")
    sessions, _ = build_brain_age_dataset(sheet_path, model_dir, verbose=verbose)
    infant_index = build_infant_index(sessions)
    brain_age = sessions["brain_age"].to_numpy()
    if name == "respiration":
        return assemble_respiration_cohort(
            sessions, brain_age, ibi_dir=ibi_dir, infant_index=infant_index, verbose=verbose
        )
    return assemble_caffeine_cohort(sessions, brain_age, infant_index=infant_index, verbose=verbose)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Inspect brain age inputs and analysis cohorts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m preterm_brain_age.preprocessing --summary
    python -m preterm_brain_age.preprocessing --sessions
    python -m preterm_brain_age.preprocessing --cohort respiration
        """,
    )

    parser.add_argument("--summary", action="store_true", help="List inputs and their status")
    parser.add_argument(
        "--sessions",
        action="store_true",
        help="Print the session table with raw and bias-corrected brain age",
    )
    parser.add_argument("--cohort", choices=list(VALID_COHORTS), help="Assemble and describe an analysis cohort")
    parser.add_argument("--sheet", type=Path, default=None, help="Clinical overview spreadsheet")
    parser.add_argument("--model-dir", type=Path, default=None, help="Directory with brain age model outputs")
    parser.add_argument("--ibi-dir", type=Path, default=None, help="Directory with IBI outcome files")
    parser.add_argument("--save", action="store_true", help="Write the table to outputs/stats/cohorts")
    parser.add_argument("--quiet", action="store_true", help="Suppress verbose output")

    args = parser.parse_args(argv)
    verbose = not args.quiet

    if not any([args.summary, args.sessions, args.cohort]):
        print_dataset_summary(args.sheet, args.model_dir, args.ibi_dir)
        return

    if args.summary:
        print_dataset_summary(args.sheet, args.model_dir, args.ibi_dir)

    table = None
    name = None
    if args.sessions:
        sessions, _ = build_brain_age_dataset(args.sheet, args.model_dir, verbose=verbose)
        cols = ["session_id", "infant_id", "pma", "brain_age_raw", "brain_age"]
        print(sessions[cols].to_string(index=False))
        table, name = sessions, "sessions"

    if args.cohort:
        cohort = build_cohort(args.cohort, args.sheet, args.model_dir, args.ibi_dir, verbose=verbose)
        table, name = _report_cohort(args.cohort, cohort), f"{args.cohort}_cohort"

    if args.save and table is not None:
        out_dir = OUTPUT_STATS_DIR / "cohorts"
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / f"{name}.csv"
        table.to_csv(out_path, index=False, encoding="utf-8-sig")
        print(f"Saved: {out_path}")


if __name__ == "__main__":
    main()
