"""Run the respiration, rho bootstrap and caffeine analyses in sequence."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from preterm_brain_age.caffeine import run_brain_age_caffeine
from preterm_brain_age.preprocessing.constants import BOOT_SEED, N_BOOT
from preterm_brain_age.respiration import run_brain_age_respiration, run_rho_bootstrap


def _safe_run(step: str, func, *args, **kwargs) -> bool:
    try:
        func(*args, **kwargs)
    except Exception as exc:
        print(f"[WARN] {step} failed: {exc}")
        return False
    return True


def main(
    sheet_path: Path | None = None,
    model_dir: Path | None = None,
    ibi_dir: Path | None = None,
    n_boot: int = N_BOOT,
    seed: int = BOOT_SEED,
    skip_bootstrap: bool = False,
    make_plots: bool = True,
    verbose: bool = True,
) -> dict[str, bool]:
    status = {}
    status["respiration"] = _safe_run(
        "respiration",
        run_brain_age_respiration.main,
        sheet_path=sheet_path,
        model_dir=model_dir,
        ibi_dir=ibi_dir,
        make_plots=make_plots,
        verbose=verbose,
    )
    if not skip_bootstrap:
        status["bootstrap"] = _safe_run(
            "rho bootstrap",
            run_rho_bootstrap.main,
            sheet_path=sheet_path,
            model_dir=model_dir,
            ibi_dir=ibi_dir,
            n_boot=n_boot,
            seed=seed,
            verbose=verbose,
        )
    status["caffeine"] = _safe_run(
        "caffeine",
        run_brain_age_caffeine.main,
        sheet_path=sheet_path,
        model_dir=model_dir,
        make_plots=make_plots,
        verbose=verbose,
    )

    print("\n[DONE] " + ", ".join(f"{name}: {'ok' if ok else 'failed'}" for name, ok in status.items()))
    return status


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run all brain age analyses.")
    parser.add_argument("--sheet", type=Path, default=None)
    parser.add_argument("--model-dir", type=Path, default=None)
    parser.add_argument("--ibi-dir", type=Path, default=None)
    parser.add_argument("--n-boot", type=int, default=N_BOOT)
    parser.add_argument("--seed", type=int, default=BOOT_SEED)
    parser.add_argument("--skip-bootstrap", action="store_true", help="Skip the (slow) rho bootstrap")
    parser.add_argument("--no-plots", action="store_true")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args()
    status = main(
        sheet_path=args.sheet,
        model_dir=args.model_dir,
        ibi_dir=args.ibi_dir,
        n_boot=args.n_boot,
        seed=args.seed,
        skip_bootstrap=args.skip_bootstrap,
        make_plots=not args.no_plots,
        verbose=not args.quiet,
    )
    sys.exit(0 if all(status.values()) else 1)
