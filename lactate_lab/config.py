import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


def _float_list(name: str, default: str):
    return tuple(float(v) for v in os.getenv(name, default).split(",") if v.strip())


class Config:
    # --- Threshold Detection ---
    MIN_THRESHOLD_POINTS = int(os.getenv("MIN_THRESHOLD_POINTS", "3"))
    DEFAULT_BASE_LACTATE = float(os.getenv("DEFAULT_BASE_LACTATE", "1.0"))

    # Outlier filter: a lactate drop larger than this at a small intensity step is noise
    OUTLIER_LACTATE_DROP = float(os.getenv("OUTLIER_LACTATE_DROP", "0.5"))
    OUTLIER_INTENSITY_CHANGE = float(os.getenv("OUTLIER_INTENSITY_CHANGE", "0.1"))

    # LTP1 search
    LTP1_BASE_FRACTION = float(os.getenv("LTP1_BASE_FRACTION", "0.9"))
    LTP1_STABILITY_DROP = float(os.getenv("LTP1_STABILITY_DROP", "0.3"))
    LTP1_STABILITY_WINDOW = int(os.getenv("LTP1_STABILITY_WINDOW", "2"))
    SECOND_DERIVATIVE_TRIGGER = float(os.getenv("SECOND_DERIVATIVE_TRIGGER", "0.0005"))

    # OBLA
    OBLA_TARGETS = _float_list("OBLA_TARGETS", "2.0,2.5,3.0,3.5")
    BASELINE_OFFSETS = _float_list("BASELINE_OFFSETS", "0.5,1.0,1.5")

    # --- Kinetics ---
    FALLBACK_CLEARANCE_RATE = float(os.getenv("FALLBACK_CLEARANCE_RATE", "0.5"))
    FALLBACK_T_HALF_S = float(os.getenv("FALLBACK_T_HALF_S", "90"))
    RESTING_LACTATE_FLOOR = float(os.getenv("RESTING_LACTATE_FLOOR", "1.0"))
    CRUDE_ESTIMATE_CAP = float(os.getenv("CRUDE_ESTIMATE_CAP", "8.0"))
    LACTATE_CEILING = float(os.getenv("LACTATE_CEILING", "20.0"))

    # --- Recommendations ---
    HIGH_DLADT = float(os.getenv("HIGH_DLADT", "0.8"))
    SHORT_T_HALF_S = float(os.getenv("SHORT_T_HALF_S", "60"))
    HIGH_END_WORK_LACTATE = float(os.getenv("HIGH_END_WORK_LACTATE", "8.0"))
    PREDICTION_CLEARANCE_RATE = float(os.getenv("PREDICTION_CLEARANCE_RATE", "0.1"))

    # --- ML Settings ---
    ML_LEARNING_RATE = float(os.getenv("ML_LEARNING_RATE", "0.01"))
    ML_REGULARIZATION = float(os.getenv("ML_REGULARIZATION", "0.01"))
    ML_ITERATIONS = int(os.getenv("ML_ITERATIONS", "100"))
    ML_EARLY_STOP_MSE = float(os.getenv("ML_EARLY_STOP_MSE", "0.1"))
    ML_MIN_TRAINING_EXAMPLES = int(os.getenv("ML_MIN_TRAINING_EXAMPLES", "5"))
    ML_FEATURE_WINDOW = int(os.getenv("ML_FEATURE_WINDOW", "30"))
    ML_RECENCY_MINUTES = float(os.getenv("ML_RECENCY_MINUTES", "5"))
    ML_HISTORY_SATURATION = int(os.getenv("ML_HISTORY_SATURATION", "10"))
    ML_SEED = int(os.getenv("ML_SEED", "42"))
