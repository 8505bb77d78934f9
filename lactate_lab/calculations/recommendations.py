"""
Rule-based training recommendations from interval lactate metrics.
"""
import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from lactate_lab.config import Config
from lactate_lab.models.results import IntervalMetric
from .threshold_types import finite_or_none

logger = logging.getLogger("LactateLab.Recommendations")

NO_DATA_MESSAGE = "No interval data available for recommendations"

MetricLike = Union[IntervalMetric, Mapping[str, Any]]

# attribute name -> wire key
_FIELDS = {
    "d_la_dt_mmol_per_min": "dLaDtMmolPerMin",
    "t_half_s": "tHalfS",
    "lactate_end_work": "lactateEndWork",
}


def _value(metric: Optional[MetricLike], attr: str) -> Optional[float]:
    """Metric value as a finite float; anything non-numeric reads as missing."""
    if metric is None:
        return None
    if isinstance(metric, Mapping):
        return finite_or_none(metric.get(_FIELDS[attr], metric.get(attr)))
    return finite_or_none(getattr(metric, attr, None))


def _count(metrics: List[MetricLike], attr: str, predicate) -> int:
    count = 0
    for metric in metrics:
        value = _value(metric, attr)
        # zero and missing values never count
        if value and predicate(value):
            count += 1
    return count


def generate_recommendations(metrics: Optional[Iterable[MetricLike]], unit: str = "W") -> List[str]:
    """
    Turn interval metrics into ordered recommendation strings.

    Rules:
        - more than half of the intervals with dLa/dt above HIGH_DLADT
          -> reduce target intensity by 10-20 units
        - more than 30% with t1/2 below SHORT_T_HALF_S -> add one interval
        - two or more with end-of-work lactate above HIGH_END_WORK_LACTATE
          -> reduce intensity or extend rest

    Args:
        metrics: IntervalMetric objects or their wire dicts
        unit: Intensity unit used in the wording (W for bike, s/km for run)

    Returns:
        List of strings; a single informational string for empty or invalid input.
    """
    if metrics is None or isinstance(metrics, (str, bytes, Mapping)):
        return [NO_DATA_MESSAGE]
    try:
        metrics = list(metrics)
    except TypeError:
        return [NO_DATA_MESSAGE]
    if not metrics:
        return [NO_DATA_MESSAGE]

    n = len(metrics)
    recommendations = []

    if _count(metrics, "d_la_dt_mmol_per_min", lambda v: v > Config.HIGH_DLADT) > n * 0.5:
        recommendations.append(
            f"Reduce power by 10-20{unit} for next session - high lactate production rate"
        )

    if _count(metrics, "t_half_s", lambda v: v < Config.SHORT_T_HALF_S) > n * 0.3:
        recommendations.append("Consider adding 1 interval - good lactate clearance")

    if _count(metrics, "lactate_end_work", lambda v: v > Config.HIGH_END_WORK_LACTATE) >= 2:
        recommendations.append("Reduce intensity or extend rest periods to L<3.0 mmol/L")

    logger.debug(f"{len(recommendations)} recommendations from {n} intervals")
    return recommendations


def prediction_recommendations(
    predicted_lactate: float,
    confidence: float,
    target_min: float,
    target_max: float,
) -> List[str]:
    """Compare a point prediction against a target lactate band."""
    recommendations = []

    if confidence < 0.5:
        recommendations.append("Low confidence prediction - measure lactate soon")

    if predicted_lactate > target_max:
        recommendations.append(
            f"Predicted lactate {predicted_lactate:.1f} > target {target_max} - reduce intensity"
        )
        seconds = (predicted_lactate - target_max) / Config.PREDICTION_CLEARANCE_RATE * 60
        recommendations.append(f"Estimated {seconds:.0f}s to reach target zone")
    elif predicted_lactate < target_min:
        recommendations.append(
            f"Predicted lactate {predicted_lactate:.1f} < target {target_min} - can increase intensity"
        )
    else:
        recommendations.append(
            f"Predicted lactate {predicted_lactate:.1f} in target zone - maintain intensity"
        )

    return recommendations
