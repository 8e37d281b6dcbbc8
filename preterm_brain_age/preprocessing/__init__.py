"""Loading, bias correction and cohort assembly."""

from .bias import BiasModel, correct_brain_age, fit_bias_model
from .caffeine import CaffeineCohortCriteria, assemble_caffeine_cohort, select_caffeine_sessions
from .cohort import Cohort, CohortBuilder, SubjectObservation, assemble_respiration_cohort
from .datasets import build_brain_age_dataset, get_input_status, print_dataset_summary
from .predictions import load_model_outputs, merge_model_predictions, read_model_output
from .sheet import SheetLayout, build_infant_index, load_session_table

__all__ = [
    "BiasModel",
    "correct_brain_age",
    "fit_bias_model",
    "CaffeineCohortCriteria",
    "assemble_caffeine_cohort",
    "select_caffeine_sessions",
    "Cohort",
    "CohortBuilder",
    "SubjectObservation",
    "assemble_respiration_cohort",
    "build_brain_age_dataset",
    "get_input_status",
    "print_dataset_summary",
    "load_model_outputs",
    "merge_model_predictions",
    "read_model_output",
    "SheetLayout",
    "build_infant_index",
    "load_session_table",
]
