"""
Lactate prediction from power, heart rate and timing features.

A small linear model (bias + 5 weights) fitted by stochastic gradient descent
with L2 regularization, plus an online single-sample update.

Instances are not synchronized. Keep one LactatePredictor per athlete and
serialize train/predict/update calls on it in the calling layer.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from lactate_lab.config import Config
from lactate_lab.calculations.common import StepLike, ensure_step
from lactate_lab.models.results import LactateSample

logger = logging.getLogger("LactateLab.Predictor")

FEATURE_NAMES = (
    "power_avg_30s",
    "hr_avg_30s",
    "time_in_interval_s",
    "interval_id",
    "previous_lactate_1",
)

FALLBACK_COEFFICIENTS = (1.5, 0.001, 0.01, 0.0, 0.0, 0.0)
FALLBACK_MSE = 1.0
FALLBACK_R_SQUARED = 0.1


@dataclass
class CurrentTrainingData:
    """Live state of the athlete at prediction time."""
    power_data: Sequence[float] = field(default_factory=list)
    hr_data: Sequence[float] = field(default_factory=list)
    time_in_interval_s: float = 0.0
    interval_id: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CurrentTrainingData":
        return cls(
            power_data=list(data.get("powerData") or []),
            hr_data=list(data.get("hrData") or []),
            time_in_interval_s=float(data.get("timeInIntervalS") or 0),
            interval_id=int(data.get("intervalId") or 0),
        )


@dataclass
class TrainingExample:
    """Feature vector in FEATURE_NAMES order and the measured lactate."""
    features: Tuple[float, ...]
    lactate: float


@dataclass
class LactatePrediction:
    """Prediction result; `error` is set when no prediction could be made."""
    predicted_lactate: float
    confidence: float
    features: Dict[str, float] = field(default_factory=dict)
    timestamp: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {"predictedLactate": self.predicted_lactate, "confidence": self.confidence}
        if self.error:
            out["error"] = self.error
        else:
            out["features"] = dict(self.features)
            out["timestamp"] = self.timestamp
        return out


def _trailing_mean(values: Optional[Sequence[float]], window: int) -> float:
    if values is None or len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values[-window:], dtype=float)))


def build_training_examples(results: Iterable[StepLike], interval_s: float = 180) -> List[TrainingExample]:
    """
    Turn the ordered stages of a step test (or a training log) into examples.

    Stage i gets interval id i+1, time in interval i*interval_s and the
    previous stage's lactate (0 for the first).
    """
    steps = [ensure_step(r) for r in results or []]
    examples = []
    for i, step in enumerate(steps):
        if step.lactate is None:
            continue
        previous = steps[i - 1].lactate if i > 0 and steps[i - 1].lactate is not None else 0.0
        examples.append(TrainingExample(
            features=(
                step.power or 0.0,
                step.heart_rate or 0.0,
                i * interval_s,
                float(i + 1),
                previous,
            ),
            lactate=step.lactate,
        ))
    return examples


def _as_example(item: Union[TrainingExample, Mapping[str, Any], Tuple]) -> TrainingExample:
    if isinstance(item, TrainingExample):
        return item
    if isinstance(item, Mapping):
        return TrainingExample(features=tuple(item["features"]), lactate=float(item["lactate"]))
    features, lactate = item
    return TrainingExample(features=tuple(features), lactate=float(lactate))


class LactatePredictor:
    """Linear lactate predictor with an Untrained -> Trained lifecycle."""

    def __init__(self, seed: Optional[int] = None):
        self.coefficients: Optional[np.ndarray] = None
        self.mean_squared_error: Optional[float] = None
        self.r_squared: Optional[float] = None
        self.is_trained = False
        self._rng = np.random.default_rng(Config.ML_SEED if seed is None else seed)

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def extract_features(
        self,
        current: Union[CurrentTrainingData, Mapping[str, Any]],
        history: Optional[Sequence[LactateSample]] = None,
    ) -> np.ndarray:
        """Feature vector in FEATURE_NAMES order."""
        if isinstance(current, Mapping):
            current = CurrentTrainingData.from_dict(current)
        history = history or []
        previous = history[-1].value_mmol_l if history else 0.0
        return np.array([
            _trailing_mean(current.power_data, Config.ML_FEATURE_WINDOW),
            _trailing_mean(current.hr_data, Config.ML_FEATURE_WINDOW),
            current.time_in_interval_s or 0.0,
            current.interval_id or 0,
            previous or 0.0,
        ], dtype=float)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def _fit(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        coef = self._rng.random(X.shape[1] + 1) * 0.1
        lr = Config.ML_LEARNING_RATE
        reg = Config.ML_REGULARIZATION

        with np.errstate(over="raise", invalid="raise"):
            for _ in range(Config.ML_ITERATIONS):
                total_error = 0.0
                for xi, yi in zip(X, y):
                    error = coef[0] + coef[1:] @ xi - yi
                    total_error += error * error
                    coef[0] -= lr * error
                    coef[1:] -= lr * (error * xi + reg * coef[1:])
                if total_error / len(y) < Config.ML_EARLY_STOP_MSE:
                    break

        if not np.all(np.isfinite(coef)):
            raise FloatingPointError("non-finite coefficients")
        return coef

    @staticmethod
    def _scores(X: np.ndarray, y: np.ndarray, coef: np.ndarray) -> Tuple[float, float]:
        predictions = coef[0] + X @ coef[1:]
        mse = float(np.mean((predictions - y) ** 2))
        ss_tot = float(np.sum((y - y.mean()) ** 2))
        r2 = 0.0 if ss_tot == 0 else 1 - float(np.sum((predictions - y) ** 2)) / ss_tot
        return mse, r2

    def train(self, data: Iterable[Union[TrainingExample, Mapping[str, Any], Tuple]]) -> bool:
        """
        Full refit on a batch of examples.

        Batches smaller than ML_MIN_TRAINING_EXAMPLES leave the model untouched.
        Numeric failures install FALLBACK_COEFFICIENTS.

        Returns:
            True when the model was (re)fitted.
        """
        examples = [_as_example(item) for item in data or []]
        if len(examples) < Config.ML_MIN_TRAINING_EXAMPLES:
            logger.warning(f"Not enough training data for reliable model: {len(examples)} examples")
            return False

        logger.info(f"Training lactate model with {len(examples)} examples")
        try:
            X = np.array([e.features for e in examples], dtype=float)
            y = np.array([e.lactate for e in examples], dtype=float)
            if X.ndim != 2 or X.shape[1] != len(FEATURE_NAMES):
                raise ValueError(f"expected {len(FEATURE_NAMES)} features, got shape {X.shape}")
            coef = self._fit(X, y)
            with np.errstate(over="raise", invalid="raise"):
                mse, r2 = self._scores(X, y, coef)
            if not (np.isfinite(mse) and np.isfinite(r2)):
                raise FloatingPointError("non-finite fit scores")
            self.coefficients = coef
            self.mean_squared_error = mse
            self.r_squared = r2
        except (FloatingPointError, ValueError) as e:
            logger.error(f"Lactate model training failed, using fallback coefficients: {e}")
            self.coefficients = np.array(FALLBACK_COEFFICIENTS, dtype=float)
            self.mean_squared_error = FALLBACK_MSE
            self.r_squared = FALLBACK_R_SQUARED

        self.is_trained = True
        logger.info(f"Lactate model trained: mse={self.mean_squared_error:.3f}, r2={self.r_squared:.3f}")
        return True

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def _linear(self, features: np.ndarray) -> float:
        return float(self.coefficients[0] + self.coefficients[1:] @ features)

    def _confidence(self, features: np.ndarray, history: Sequence[LactateSample], now: datetime) -> float:
        if history and history[-1].timestamp is not None:
            last = history[-1].timestamp
            if last.tzinfo is None and now.tzinfo is not None:
                last = last.replace(tzinfo=now.tzinfo)
            elif last.tzinfo is not None and now.tzinfo is None:
                now = now.replace(tzinfo=last.tzinfo)
            recency_min = (now - last).total_seconds() / 60.0
        else:
            recency_min = float("inf")

        feature_quality = np.count_nonzero(features) / len(features)
        data_amount = min(1.0, len(history) / Config.ML_HISTORY_SATURATION)
        recent = 0.3 if recency_min < Config.ML_RECENCY_MINUTES else 0.0

        score = (feature_quality * 0.4 + data_amount * 0.3 + recent) * self.r_squared
        return float(min(1.0, max(0.0, score)))

    def predict(
        self,
        current: Union[CurrentTrainingData, Mapping[str, Any]],
        history: Optional[Sequence[LactateSample]] = None,
        now: Optional[datetime] = None,
    ) -> LactatePrediction:
        """Predict lactate (clamped to 0..LACTATE_CEILING) with a 0..1 confidence."""
        if not self.is_trained:
            logger.warning("Prediction requested from an untrained model")
            return LactatePrediction(predicted_lactate=0.0, confidence=0.0, error="Model not trained")

        history = list(history or [])
        now = now or datetime.now(timezone.utc)
        features = self.extract_features(current, history)
        predicted = min(Config.LACTATE_CEILING, max(0.0, self._linear(features)))

        return LactatePrediction(
            predicted_lactate=predicted,
            confidence=self._confidence(features, history, now),
            features=dict(zip(FEATURE_NAMES, features.tolist())),
            timestamp=now,
        )

    def update_model(
        self,
        current: Union[CurrentTrainingData, Mapping[str, Any]],
        actual_lactate: float,
        history: Optional[Sequence[LactateSample]] = None,
    ) -> Optional[float]:
        """
        Single online gradient step towards a measured lactate.

        MSE and R² are not recomputed.

        A step that would overflow or leave non-finite coefficients is
        rejected and the previous coefficients are kept.

        Returns:
            The prediction error before the update, or None if untrained.
        """
        if not self.is_trained:
            logger.warning("Cannot update an untrained lactate model")
            return None

        features = self.extract_features(current, history)
        lr = Config.ML_LEARNING_RATE
        error = actual_lactate - self._linear(features)
        try:
            if not np.isfinite(error):
                raise FloatingPointError("non-finite prediction error")
            with np.errstate(over="raise", invalid="raise"):
                updated = self.coefficients.copy()
                updated[0] += lr * error
                updated[1:] += lr * error * features
            if not np.all(np.isfinite(updated)):
                raise FloatingPointError("non-finite coefficients")
        except FloatingPointError as e:
            logger.warning(f"Online update rejected, keeping previous coefficients: {e}")
            return error

        self.coefficients = updated
        logger.debug(f"Model updated: actual={actual_lactate}, error={error:.3f}")
        return error
