"""Shared constants for loading, cohort selection and analysis."""

from pathlib import Path

# Directory paths
REPO_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = REPO_DIR / "data"
SHEET_PATH = DATA_DIR / "data_overview.xlsx"
MODEL_OUTPUT_DIR = DATA_DIR / "output"
IBI_DIR = MODEL_OUTPUT_DIR / "ibi_outcomes"

OUTPUTS_DIR = REPO_DIR / "outputs"
OUTPUT_STATS_DIR = OUTPUTS_DIR / "stats"
OUTPUT_FIGURES_DIR = OUTPUTS_DIR / "figures"

# Brain age model outputs (one .mat per model, combined by NaN-aware mean)
PREDICTION_FILES = {
    "sensory": "brain_age_sensory/brain_age_sensory.mat",
    "rest": "brain_age_rest/brain_age_rest.mat",
}
PREDICTION_SESSION_KEY = "ses_labels"
PREDICTION_VALUE_KEY = "Y_predict"

# Per-session inter-breath-interval outcomes
IBI_FILE_PATTERN = "ibi_stat_{session}.mat"
IBI_LENGTH_KEY = "data_length_sec"
IBI_OUTCOMES = ["ibi_resp_rate", "ibi_rate_15_0_sec"]
APNOEA_OUTCOME = "ibi_rate_15_0_sec"

# Confounds added to the full model, per respiration outcome
RESPIRATION_CONFOUNDS = {
    "ibi_resp_rate": ["infection"],
    "ibi_rate_15_0_sec": ["infection", "data_length"],
}
CATEGORICAL_COLUMNS = {"infection", "resp_support"}
RESPIRATION_PREDICTORS = ["brain_maturity", "pma"]

# Caffeine discontinuation cohort
UNVERIFIABLE_STOP_NOTE = "medical notes unavailable"
CAFFEINE_LOOKBACK_WEEKS = 2.0

# Bootstrap
N_BOOT = 10000
BOOT_SEED = 1

# Figures
STUDY_LABEL = "PMA_31_to_37_weeks"
PREDICTOR_COLORS = {
    "brain_maturity": (0.0, 0.5, 1.0),
    "pma": (1.0, 0.25, 0.0),
    "age": (0.2, 0.7, 0.3),
}
CAFFEINE_COLOR = (0.9, 0.1, 0.1)


def get_prediction_path(model: str, model_dir: Path | None = None) -> Path:
    """Return the .mat path of one brain age model output."""
    if model not in PREDICTION_FILES:
        raise ValueError(f"Unknown brain age model: {model}. Valid models: {sorted(PREDICTION_FILES)}")
    if model_dir is None:
        model_dir = MODEL_OUTPUT_DIR
    return Path(model_dir) / PREDICTION_FILES[model]


def get_ibi_path(session_id: str, ibi_dir: Path | None = None) -> Path:
    """Return the IBI outcome file path for a session."""
    if not session_id:
        raise ValueError("Empty session id.")
    if ibi_dir is None:
        ibi_dir = IBI_DIR
    return Path(ibi_dir) / IBI_FILE_PATTERN.format(session=session_id)
