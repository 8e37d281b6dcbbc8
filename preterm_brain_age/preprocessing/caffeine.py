"""
Caffeine discontinuation cohort.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .cohort import Cohort, CohortBuilder
from .constants import CAFFEINE_LOOKBACK_WEEKS, UNVERIFIABLE_STOP_NOTE
from .sheet import build_infant_index

CAFFEINE_OUTCOME = "caf_stop"


@dataclass
class CaffeineCohortCriteria:
    lookback_weeks: float = CAFFEINE_LOOKBACK_WEEKS
    unverifiable_note: str = UNVERIFIABLE_STOP_NOTE


def mark_last_session_on_caffeine(sessions: pd.DataFrame) -> pd.Series:
    """
    Flag, per infant, the latest session recorded at or before caffeine stop.

    Latest means greatest PMA; equal PMAs resolve to the later table row.
    Infants without a stop PMA get no flagged session.
    """
    flags = pd.Series(False, index=sessions.index)
    on_caffeine = sessions["pma"] - sessions["caf_stop"] <= 0
    for _, grp in sessions[on_caffeine].groupby("infant_id", sort=False):
        pma = grp["pma"].to_numpy(dtype=float)
        last = np.flatnonzero(pma == pma.max())[-1]
        flags.loc[grp.index[last]] = True
    return flags


def select_caffeine_sessions(
    sessions: pd.DataFrame,
    criteria: Optional[CaffeineCohortCriteria] = None,
    verbose: bool = False,
) -> pd.DataFrame:
    """Return the sessions entering the caffeine discontinuation analysis."""
    if criteria is None:
        criteria = CaffeineCohortCriteria()

    last_with_caf = mark_last_session_on_caffeine(sessions)
    within_window = (sessions["caf_stop"] - sessions["pma"]) < criteria.lookback_weeks
    selected = sessions[last_with_caf & within_window]

    unsure = selected["caf_stop_note"].astype(str) == criteria.unverifiable_note
    if verbose:
        print(
            f"  [INFO] last on caffeine: {int(last_with_caf.sum())}, "
            f"within {criteria.lookback_weeks:g} weeks: {len(selected)}, "
            f"excluded for unverifiable stop date: {int(unsure.sum())}"
        )
    return selected[~unsure].copy()


def assemble_caffeine_cohort(
    sessions: pd.DataFrame,
    brain_age: Sequence[float],
    criteria: Optional[CaffeineCohortCriteria] = None,
    infant_index: Optional[Mapping[str, int]] = None,
    verbose: bool = True,
) -> Cohort:
    """Build the caffeine cohort; ``brain_age`` is aligned with ``sessions`` rows."""
    brain_age = pd.Series(np.asarray(brain_age, dtype=float), index=sessions.index)
    if infant_index is None:
        infant_index = build_infant_index(sessions)

    selected = select_caffeine_sessions(sessions, criteria, verbose=verbose)
    builder = CohortBuilder(infant_index, [CAFFEINE_OUTCOME])
    for idx, session in selected.iterrows():
        if not np.isfinite(brain_age.loc[idx]):
            continue
        builder.add(session, brain_age.loc[idx], {CAFFEINE_OUTCOME: session["caf_stop"]})
        if verbose:
            print(f"{session['session_id']}: {len(builder)}")
    return builder.build()
