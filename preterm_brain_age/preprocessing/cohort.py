"""
Cohort assembly: session table + corrected brain age -> analysis rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .constants import IBI_LENGTH_KEY, IBI_OUTCOMES
from .ibi import load_ibi_outcomes
from .sheet import build_infant_index

COHORT_COLUMNS = [
    "session_id",
    "infant_id",
    "infant",
    "pma",
    "brain_age",
    "brain_maturity",
    "data_length",
    "infection",
    "resp_support",
]


@dataclass(frozen=True)
class SubjectObservation:
    session_id: str
    infant_id: str
    infant_index: int
    pma: float
    brain_age: float
    data_length: float
    infection: str
    resp_support: str
    outcomes: Mapping[str, float] = field(default_factory=dict)

    @property
    def brain_maturity(self) -> float:
        return self.brain_age - self.pma


@dataclass(frozen=True)
class Cohort:
    observations: tuple[SubjectObservation, ...]
    outcome_names: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.observations)

    @property
    def n_infants(self) -> int:
        return len({obs.infant_index for obs in self.observations})

    def to_frame(self) -> pd.DataFrame:
        """Materialise the cohort as typed columns, one row per observation."""
        rows = []
        for obs in self.observations:
            row = {
                "session_id": obs.session_id,
                "infant_id": obs.infant_id,
                "infant": obs.infant_index,
                "pma": obs.pma,
                "brain_age": obs.brain_age,
                "brain_maturity": obs.brain_maturity,
                "data_length": obs.data_length,
                "infection": obs.infection,
                "resp_support": obs.resp_support,
            }
            for name in self.outcome_names:
                row[name] = obs.outcomes.get(name, np.nan)
            rows.append(row)

        df = pd.DataFrame(rows, columns=COHORT_COLUMNS + list(self.outcome_names))
        df["infant"] = df["infant"].astype(int)
        float_cols = ["pma", "brain_age", "brain_maturity", "data_length", *self.outcome_names]
        df[float_cols] = df[float_cols].astype(float)
        return df


class CohortBuilder:
    """Accumulate observations with a fixed schema, then build a Cohort once."""

    def __init__(self, infant_index: Mapping[str, int], outcome_names: Sequence[str]):
        self._infant_index = dict(infant_index)
        self._outcome_names = tuple(outcome_names)
        self._observations: list[SubjectObservation] = []

    def __len__(self) -> int:
        return len(self._observations)

    def add(
        self,
        session: Mapping[str, object],
        brain_age: float,
        outcomes: Mapping[str, float],
        data_length: float = np.nan,
    ) -> SubjectObservation:
        infant_id = str(session["infant_id"])
        if infant_id not in self._infant_index:
            raise KeyError(f"Infant {infant_id} missing from infant index")
        missing = [name for name in self._outcome_names if name not in outcomes]
        if missing:
            raise KeyError(f"Session {session['session_id']} missing outcomes {missing}")

        obs = SubjectObservation(
            session_id=str(session["session_id"]),
            infant_id=infant_id,
            infant_index=self._infant_index[infant_id],
            pma=float(session["pma"]),
            brain_age=float(brain_age),
            data_length=float(data_length),
            infection=str(session["infection"]),
            resp_support=str(session["resp_support"]),
            outcomes=MappingProxyType({name: float(outcomes[name]) for name in self._outcome_names}),
        )
        self._observations.append(obs)
        return obs

    def build(self) -> Cohort:
        return Cohort(observations=tuple(self._observations), outcome_names=self._outcome_names)


def assemble_respiration_cohort(
    sessions: pd.DataFrame,
    brain_age: Sequence[float],
    ibi_dir: Optional[Path] = None,
    outcomes: Optional[Iterable[str]] = None,
    infant_index: Optional[Mapping[str, int]] = None,
    verbose: bool = True,
) -> Cohort:
    """
    Build the respiration cohort from sessions in spreadsheet order.

    ``brain_age`` holds the bias-corrected prediction of every session row.
    Sessions without a prediction are skipped silently; sessions without a
    readable IBI outcome file are skipped with a warning.
    """
    outcomes = list(IBI_OUTCOMES if outcomes is None else outcomes)
    brain_age = np.asarray(brain_age, dtype=float)
    if len(brain_age) != len(sessions):
        raise ValueError(f"{len(brain_age)} brain age values for {len(sessions)} sessions")
    if infant_index is None:
        infant_index = build_infant_index(sessions)

    builder = CohortBuilder(infant_index, outcomes)
    for pos, session in enumerate(sessions.to_dict("records")):
        if not np.isfinite(brain_age[pos]):
            continue

        ibi = load_ibi_outcomes(session["session_id"], outcomes, ibi_dir)
        if ibi is None:
            if verbose:
                print(f"[WARN] no respiration outcomes for {session['session_id']}")
            continue

        builder.add(session, brain_age[pos], ibi, data_length=ibi[IBI_LENGTH_KEY])
        if verbose:
            print(f"{session['session_id']}: {len(builder)}")

    return builder.build()
