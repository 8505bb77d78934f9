"""
Session Analysis Service

Computes per-interval lactate metrics for a structured work/rest session and
the session level aggregates:
- work: end lactate, dLa/dt, AUC
- rest: end lactate, clearance rate, half-life
- overall: mean dLa/dt, mean half-life, total AUC, recommendations

Each interval always gets values, taken from the first available source:
measured samples, the athlete's latest step-test curve, or a crude estimate.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import numpy as np

from lactate_lab.config import Config
from lactate_lab.calculations.common import DEFAULT_BASE_LACTATE, StepLike
from lactate_lab.calculations.kinetics import (
    calculate_auc,
    calculate_clearance_rate,
    calculate_dladt,
    calculate_t_half,
    estimate_lactate_crude,
    evaluate_lactate_zone,
    fit_exponential_decay,
    predict_lactate_from_curve,
)
from lactate_lab.calculations.recommendations import generate_recommendations
from lactate_lab.models.results import (
    Interval,
    IntervalKind,
    IntervalMetric,
    LactateSample,
    MetricSource,
    OverallMetrics,
    SessionAnalysis,
)

logger = logging.getLogger("LactateLab.SessionAnalysis")

FALLBACK_RECOMMENDATION = "Analysis completed - check individual interval metrics"


def _samples_by_interval(samples: Iterable[LactateSample]) -> Dict[str, List[LactateSample]]:
    grouped: Dict[str, List[LactateSample]] = {}
    for sample in samples or []:
        if sample.interval_id is None:
            continue
        grouped.setdefault(str(sample.interval_id), []).append(sample)
    for group in grouped.values():
        group.sort(key=lambda s: s.timestamp)
    return grouped


def _base_metric(interval: Interval) -> IntervalMetric:
    return IntervalMetric(
        interval_id=interval.id,
        seq=interval.seq,
        kind=interval.kind,
        duration_s=interval.duration_s,
        start_offset_s=interval.start_offset_s,
        target_power_w=interval.target_power_w,
        target_pace_s_per_km=interval.target_pace_s_per_km,
        target_lactate_min=interval.target_lactate_min,
        target_lactate_max=interval.target_lactate_max,
    )


def analyze_work_interval(
    interval: Interval,
    samples: List[LactateSample],
    session_start: datetime,
    previous_lactate: float,
    test_curve: Optional[List[StepLike]],
    base_lactate: float,
) -> IntervalMetric:
    """Metrics for one work interval. `samples` must be time sorted."""
    metric = _base_metric(interval)

    if len(samples) >= 2:
        start, end = samples[0].value_mmol_l, samples[-1].value_mmol_l
        metric.lactate_end_work = end
        metric.d_la_dt_mmol_per_min = calculate_dladt(start, end, interval.duration_s)
        metric.auc_mmol_min = calculate_auc([
            {"t_s": (s.timestamp - session_start).total_seconds(), "L": s.value_mmol_l}
            for s in samples
        ])
        metric.source = MetricSource.SAMPLES
    else:
        if test_curve:
            end = predict_lactate_from_curve(
                interval.target_power_w, interval.target_pace_s_per_km, test_curve, base_lactate
            )
            metric.source = MetricSource.TEST_CURVE
        else:
            target = interval.target_power_w or interval.target_pace_s_per_km
            end = estimate_lactate_crude(target, base_lactate)
            metric.source = MetricSource.ESTIMATE
        metric.lactate_end_work = end
        metric.d_la_dt_mmol_per_min = calculate_dladt(previous_lactate, end, interval.duration_s)
        metric.auc_mmol_min = (previous_lactate + end) / 2 * interval.duration_s / 60

    if interval.target_lactate_min and interval.target_lactate_max:
        metric.zone = evaluate_lactate_zone(
            metric.lactate_end_work, interval.target_lactate_min, interval.target_lactate_max
        )
    else:
        metric.zone = "N/A"
    return metric


def analyze_rest_interval(
    interval: Interval,
    samples: List[LactateSample],
    session_start: datetime,
    previous_lactate: float,
) -> IntervalMetric:
    """Metrics for one rest interval. `samples` must be time sorted."""
    metric = _base_metric(interval)

    if len(samples) >= 2:
        start, end = samples[0].value_mmol_l, samples[-1].value_mmol_l
        fit = fit_exponential_decay([
            {"t_s": (s.timestamp - session_start).total_seconds(), "L": s.value_mmol_l}
            for s in samples
        ])
        metric.lactate_end_rest = end
        metric.tau_s = fit["tau"]
        metric.fit_r_squared = fit["r_squared"]
        metric.t_half_s = calculate_t_half(fit["tau"])
        metric.clearance_rate_mmol_per_min = calculate_clearance_rate(start, end, interval.duration_s)
        metric.source = MetricSource.SAMPLES
    else:
        rate = Config.FALLBACK_CLEARANCE_RATE
        metric.lactate_end_rest = max(
            Config.RESTING_LACTATE_FLOOR, previous_lactate - rate * interval.duration_s / 60
        )
        metric.clearance_rate_mmol_per_min = rate
        metric.t_half_s = Config.FALLBACK_T_HALF_S
        metric.source = MetricSource.ESTIMATE
    return metric


def calculate_overall_metrics(metrics: List[IntervalMetric]) -> OverallMetrics:
    """Aggregate interval metrics; zero and missing values are ignored."""
    dladt = [m.d_la_dt_mmol_per_min for m in metrics if m.d_la_dt_mmol_per_min]
    t_half = [m.t_half_s for m in metrics if m.t_half_s]
    auc = [m.auc_mmol_min for m in metrics if m.auc_mmol_min]

    try:
        recommendations = generate_recommendations(metrics)
    except (TypeError, ValueError) as e:
        logger.error(f"Recommendation rules failed: {e}")
        recommendations = [FALLBACK_RECOMMENDATION]

    return OverallMetrics(
        avg_d_la_dt=float(np.mean(dladt)) if dladt else 0.0,
        avg_t_half=float(np.mean(t_half)) if t_half else 0.0,
        total_auc=float(np.sum(auc)) if auc else 0.0,
        recommendations=recommendations,
    )


def analyze_session(
    intervals: Iterable[Interval],
    samples: Iterable[LactateSample],
    session_start: datetime,
    test_curve: Optional[Iterable[StepLike]] = None,
    base_lactate: Optional[float] = None,
) -> SessionAnalysis:
    """
    Analyze a structured lactate session.

    Intervals are walked in the given order while carrying the last known
    lactate forward, so fallback estimates chain from one interval to the next.

    Args:
        intervals: Session intervals
        samples: Lactate samples; untagged samples are ignored
        session_start: Time origin for sample offsets
        test_curve: Stages of the athlete's latest step test, if any
        base_lactate: Resting lactate of that test (DEFAULT_BASE_LACTATE if unknown)

    Returns:
        SessionAnalysis with one IntervalMetric per interval
    """
    base = base_lactate or DEFAULT_BASE_LACTATE
    curve = list(test_curve) if test_curve else None
    grouped = _samples_by_interval(samples)

    previous_lactate = base
    metrics: List[IntervalMetric] = []

    for interval in intervals:
        interval_samples = grouped.get(str(interval.id), [])
        if interval.kind is IntervalKind.WORK:
            metric = analyze_work_interval(
                interval, interval_samples, session_start, previous_lactate, curve, base
            )
            previous_lactate = metric.lactate_end_work
        else:
            metric = analyze_rest_interval(interval, interval_samples, session_start, previous_lactate)
            previous_lactate = metric.lactate_end_rest
        logger.debug(f"Interval {interval.seq} ({interval.kind.value}) from {metric.source.value}")
        metrics.append(metric)

    overall = calculate_overall_metrics(metrics)
    logger.info(
        f"Session analyzed: {len(metrics)} intervals, avg dLa/dt {overall.avg_d_la_dt:.2f}, "
        f"total AUC {overall.total_auc:.1f}"
    )
    return SessionAnalysis(interval_metrics=metrics, overall=overall)
