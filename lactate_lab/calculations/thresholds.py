"""
Lactate Threshold Detection for Incremental Step Tests.

Pure functions deriving LTP1/LTP2 (Dmax based), IAT, Log-log breakpoint,
OBLA and baseline+offset thresholds from a list of step results.

Every routine that orders points takes an IntensityAxis, so the bike (watts,
higher = harder) and run/swim (pace seconds, lower = harder) cases share a
single implementation.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from lactate_lab.config import Config
from .common import (
    DEFAULT_BASE_LACTATE,
    LOG_EPSILON,
    MIN_THRESHOLD_POINTS,
    SLOPE_EPSILON,
    StepLike,
    frame_to_steps,
    interpolate,
    sort_steps,
    step_results_to_frame,
)
from .threshold_types import IntensityAxis, StepResult, ThresholdPoint, ThresholdSet

logger = logging.getLogger("LactateLab.Thresholds")

OBLA_KEYS = tuple(f"OBLA {t:.1f}" for t in Config.OBLA_TARGETS)
BASELINE_KEYS = tuple(f"Bsln + {o:.1f}" for o in Config.BASELINE_OFFSETS)


# =============================================================================
# CURVE PREPARATION
# =============================================================================

def filter_outliers(points: List[StepResult], axis: IntensityAxis) -> List[StepResult]:
    """
    Sort points easy -> hard and drop single noisy low readings.

    A point is dropped when its lactate falls more than OUTLIER_LACTATE_DROP
    below the previous kept point while intensity changed by less than
    OUTLIER_INTENSITY_CHANGE (relative). Genuine plateaus are kept.
    """
    if not points or len(points) < 2:
        return list(points or [])

    sorted_points = sort_steps(points, axis)
    filtered = [sorted_points[0]]
    for curr in sorted_points[1:]:
        prev = filtered[-1]
        intensity_diff = axis.relative_change(prev.power, curr.power)
        lactate_diff = curr.lactate - prev.lactate
        if lactate_diff < -Config.OUTLIER_LACTATE_DROP and abs(intensity_diff) < Config.OUTLIER_INTENSITY_CHANGE:
            logger.debug(f"Dropping outlier at {curr.power} ({curr.lactate} mmol/L)")
            continue
        filtered.append(curr)
    return filtered


def calculate_derivatives(points: List[StepResult]) -> Tuple[List[Tuple[float, float]], List[Tuple[float, float]]]:
    """
    Central first differences and forward second differences of lactate.

    Returns:
        (first, second) as lists of (intensity, value); pairs with zero
        intensity span are skipped.
    """
    if not points or len(points) < 3:
        return [], []

    first = []
    for i in range(1, len(points) - 1):
        dp = points[i + 1].power - points[i - 1].power
        if dp == 0:
            continue
        d1 = (points[i + 1].lactate - points[i - 1].lactate) / dp
        first.append((points[i].power, d1))

    second = []
    for i in range(len(first) - 1):
        dp = first[i + 1][0] - first[i][0]
        if dp == 0:
            continue
        second.append((first[i][0], (first[i + 1][1] - first[i][1]) / dp))

    return first, second


# =============================================================================
# INDIVIDUAL METHODS
# =============================================================================

def calculate_dmax(points: List[StepResult], axis: IntensityAxis) -> Optional[StepResult]:
    """
    Dmax: interior point with maximal perpendicular distance to the chord
    joining the first and last point of the (outlier filtered) curve.

    Falls back to the middle point when no interior point lies off the chord.
    Returns None when fewer than 3 points or the chord has zero length in
    intensity.
    """
    if not points or len(points) < MIN_THRESHOLD_POINTS:
        return None

    filtered = filter_outliers(points, axis)
    curve = filtered if len(filtered) >= MIN_THRESHOLD_POINTS else sort_steps(points, axis)

    first, last = curve[0], curve[-1]
    if first.power == last.power:
        return None

    slope = (last.lactate - first.lactate) / (last.power - first.power)
    intercept = first.lactate - slope * first.power

    x = np.array([p.power for p in curve[1:-1]], dtype=float)
    y = np.array([p.lactate for p in curve[1:-1]], dtype=float)
    distances = np.abs(y - (slope * x + intercept)) / np.sqrt(1 + slope ** 2)

    if distances.size and distances.max() > 0:
        return curve[1 + int(np.argmax(distances))]
    return curve[len(curve) // 2]


def calculate_iat(points: List[StepResult]) -> Optional[StepResult]:
    """
    IAT: point reached by the steepest positive local slope dLa/dP.

    Always ranks points by the raw numeric value ascending, i.e. it treats the
    intensity field as watts even for pace sports. Zero intensity steps are
    skipped.
    """
    if not points or len(points) < MIN_THRESHOLD_POINTS:
        return None

    ordered = sort_steps(points, IntensityAxis.HIGHER_IS_HARDER)
    power = np.array([p.power for p in ordered], dtype=float)
    lactate = np.array([p.lactate for p in ordered], dtype=float)

    dp = np.diff(power)
    dl = np.diff(lactate)
    valid = dp != 0
    if not valid.any():
        return None

    slopes = np.full(dp.shape, -np.inf)
    slopes[valid] = dl[valid] / dp[valid]
    best = int(np.argmax(slopes))
    if slopes[best] <= 0:
        return None
    return ordered[best + 1]


def calculate_log_log_threshold(points: List[StepResult]) -> Optional[StepResult]:
    """
    Log-log breakpoint: the point where the log-log slope bends upward most.

    `points` must already be ordered easy -> hard.
    """
    if not points or len(points) < MIN_THRESHOLD_POINTS:
        return None

    log_power = np.log(np.maximum([p.power for p in points], LOG_EPSILON))
    log_lactate = np.log(np.maximum([p.lactate for p in points], LOG_EPSILON))

    d_power = np.diff(log_power)
    d_power[d_power == 0] = SLOPE_EPSILON
    slopes = np.diff(log_lactate) / d_power

    # slope after minus slope before, for every interior index
    delta = slopes[1:] - slopes[:-1]
    return points[int(np.argmax(delta)) + 1]


def _is_stable(points: List[StepResult], idx: int) -> bool:
    ref = points[idx].lactate
    window = points[idx + 1: idx + 1 + Config.LTP1_STABILITY_WINDOW]
    return all(p.lactate >= ref - Config.LTP1_STABILITY_DROP for p in window)


def find_lactate_thresholds(
    points: List[StepResult],
    base_lactate: float,
    axis: IntensityAxis,
) -> Tuple[Optional[ThresholdPoint], Optional[ThresholdPoint], bool]:
    """
    Locate LTP1 and LTP2.

    LTP2 is the Dmax point. LTP1 is the first point after the lactate minimum
    that reaches LTP1_BASE_FRACTION of baseline and holds (the next points do
    not drop more than LTP1_STABILITY_DROP below it). Failing that, the first
    positive second derivative above SECOND_DERIVATIVE_TRIGGER, and failing
    that the easiest point.

    Args:
        points: Usable step results ordered easy -> hard
        base_lactate: Resting lactate (0 means unknown, DEFAULT_BASE_LACTATE used)
        axis: Intensity axis of the sport

    Returns:
        (ltp1, ltp2, swapped) where swapped tells that the detected points
        came out in reversed intensity order and were exchanged.
    """
    if not points or len(points) < MIN_THRESHOLD_POINTS:
        return None, None, False

    effective_base = base_lactate or DEFAULT_BASE_LACTATE

    dmax_point = calculate_dmax(points, axis)
    if dmax_point is None:
        return None, None, False
    ltp2 = ThresholdPoint.from_step(dmax_point)

    ordered = sort_steps(points, axis)
    min_idx = int(np.argmin([p.lactate for p in ordered]))

    ltp1 = None
    for i in range(min_idx + 1, len(ordered)):
        if ordered[i].lactate >= effective_base * Config.LTP1_BASE_FRACTION and _is_stable(ordered, i):
            ltp1 = ThresholdPoint.from_step(ordered[i])
            break

    if ltp1 is None:
        _, second = calculate_derivatives(points)
        candidate = next((d for d in second if d[1] > Config.SECOND_DERIVATIVE_TRIGGER), None)
        if candidate is not None:
            match = next((p for p in points if abs(p.power - candidate[0]) < 0.1), points[0])
            ltp1 = ThresholdPoint(intensity=candidate[0], heart_rate=match.heart_rate, lactate=match.lactate)
            logger.debug(f"LTP1 from second derivative at {candidate[0]}")
        else:
            ltp1 = ThresholdPoint.from_step(points[0])
            logger.debug("LTP1 defaulted to easiest step")

    if not axis.is_harder(ltp2.intensity, ltp1.intensity):
        logger.warning(
            f"LTP1 ({ltp1.intensity}) not easier than LTP2 ({ltp2.intensity}); swapping"
        )
        return ltp2, ltp1, True

    return ltp1, ltp2, False


def calculate_obla_thresholds(
    points: List[StepResult],
    base_lactate: float,
) -> Dict[str, ThresholdPoint]:
    """
    Fixed lactate (OBLA) and baseline + offset thresholds.

    For each target the intensity and heart rate are interpolated linearly on
    a segment pair where lactate rises from <= target to >= target. When the
    curve crosses a target several times the last crossing wins.
    Targets never reached are omitted.
    """
    effective_base = base_lactate or DEFAULT_BASE_LACTATE
    targets = list(zip(OBLA_KEYS, Config.OBLA_TARGETS))
    targets += [(key, effective_base + offset) for key, offset in zip(BASELINE_KEYS, Config.BASELINE_OFFSETS)]

    found: Dict[str, ThresholdPoint] = {}
    for prev, curr in zip(points, points[1:]):
        for key, target in targets:
            if prev.lactate <= target <= curr.lactate:
                intensity = interpolate(prev.power, prev.lactate, curr.power, curr.lactate, target)
                if prev.heart_rate is not None and curr.heart_rate is not None:
                    hr = interpolate(prev.heart_rate, prev.lactate, curr.heart_rate, curr.lactate, target)
                else:
                    hr = None
                found[key] = ThresholdPoint(intensity=intensity, heart_rate=hr, lactate=target)
    return found


def calculate_lt_ratio(ltp1: float, ltp2: float, axis: IntensityAxis) -> Optional[str]:
    """LTP1/LTP2 for pace sports, LTP2/LTP1 for power, as a 2-decimal string."""
    if not ltp1 or not ltp2 or ltp1 <= 0 or ltp2 <= 0:
        return None
    ratio = ltp1 / ltp2 if axis.is_pace else ltp2 / ltp1
    if not np.isfinite(ratio):
        return None
    return f"{ratio:.2f}"


# =============================================================================
# ENTRY POINT
# =============================================================================

def calculate_thresholds(
    results: Optional[Iterable[StepLike]],
    base_lactate: Optional[float] = 0.0,
    sport: str = "bike",
) -> ThresholdSet:
    """
    Compute every threshold for a step test.

    Args:
        results: StepResult objects or wire dicts ({power, heartRate, lactate, ...})
        base_lactate: Resting lactate in mmol/L
        sport: "bike", "run" or "swim"

    Returns:
        ThresholdSet; empty when fewer than MIN_THRESHOLD_POINTS usable points.
    """
    axis = IntensityAxis.for_sport(sport)
    base = float(base_lactate or 0.0)

    points = frame_to_steps(step_results_to_frame(results))
    if len(points) < MIN_THRESHOLD_POINTS:
        logger.warning(f"Insufficient data for thresholds: {len(points)} usable points")
        return ThresholdSet()

    ordered = sort_steps(points, axis)
    found: Dict[str, ThresholdPoint] = {}

    log_log = calculate_log_log_threshold(ordered)
    if log_log is not None:
        found["Log-log"] = ThresholdPoint.from_step(log_log)

    iat = calculate_iat(ordered)
    if iat is not None:
        found["IAT"] = ThresholdPoint.from_step(iat)

    ltp1, ltp2, swapped = find_lactate_thresholds(ordered, base, axis)
    if ltp1 is not None and ltp1.intensity:
        found["LTP1"] = ltp1
    if ltp2 is not None and ltp2.intensity:
        found["LTP2"] = ltp2

    found.update(calculate_obla_thresholds(ordered, base))

    lt_ratio = None
    if ltp1 is not None and ltp2 is not None:
        lt_ratio = calculate_lt_ratio(ltp1.intensity, ltp2.intensity, axis)

    logger.debug(f"Thresholds computed: {sorted(found)}")
    return ThresholdSet(points=found, lt_ratio=lt_ratio, ltp_swapped=swapped)


def calculate_thresholds_from_test(test: dict) -> ThresholdSet:
    """Convenience wrapper for a wire record {sport, baseLactate, results}."""
    test = test or {}
    return calculate_thresholds(
        test.get("results") or [],
        base_lactate=test.get("baseLactate") or 0.0,
        sport=test.get("sport") or "bike",
    )
