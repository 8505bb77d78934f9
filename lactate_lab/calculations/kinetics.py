"""
Lactate Kinetics Module.

Production rate during work (dLa/dt), exponential clearance during rest
(tau, half-life), clearance rate, area under the lactate curve, and the
fallback estimators used when an interval has no measured samples.

Sample points are {t_s, L} dicts or (t_s, L) pairs; t_s in seconds, L in mmol/L.
"""
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats
from scipy.integrate import trapezoid

from lactate_lab.config import Config
from .common import MIN_DURATION_MIN, StepLike, ensure_step

logger = logging.getLogger("LactateLab.Kinetics")

PointLike = Union[Mapping[str, Any], Sequence[float]]


def _points_frame(points: Optional[Iterable[PointLike]]) -> pd.DataFrame:
    """Normalize sample points to a time-sorted DataFrame with t_s and L."""
    rows = []
    for p in points or []:
        if isinstance(p, Mapping):
            rows.append((p.get("t_s"), p.get("L")))
        else:
            rows.append((p[0], p[1]))
    df = pd.DataFrame(rows, columns=["t_s", "L"], dtype=float)
    df = df.dropna()
    return df.sort_values("t_s", kind="mergesort").reset_index(drop=True)


def calculate_dladt(lactate_start: float, lactate_end: float, work_duration_s: float) -> float:
    """Lactate production rate in mmol/L/min."""
    minutes = work_duration_s / 60.0
    return (lactate_end - lactate_start) / max(minutes, MIN_DURATION_MIN)


def calculate_clearance_rate(lactate_start: float, lactate_end: float, rest_duration_s: float) -> float:
    """Lactate clearance in mmol/L/min; positive while lactate falls."""
    minutes = rest_duration_s / 60.0
    return (lactate_start - lactate_end) / max(minutes, MIN_DURATION_MIN)


def fit_exponential_decay(points: Optional[Iterable[PointLike]]) -> dict:
    """
    Fit L(t) = L_end + (L0 - L_end) * exp(-t / tau) to recovery samples.

    The asymptote L_end is the latest sample. ln(L - L_end) is regressed on
    time over the samples strictly above L_end; the slope is -1/tau.

    Args:
        points: At least 3 {t_s, L} samples

    Returns:
        Dict with 'tau' (s, non-negative), 'L_end' and 'r_squared' of the
        log-linear fit. tau and r_squared are 0 when the fit is degenerate.
    """
    df = _points_frame(points)
    if len(df) < 3:
        return {"tau": 0.0, "L_end": 0.0, "r_squared": 0.0}

    l_end = float(df["L"].iloc[-1])
    above = df[df["L"] > l_end]
    if len(above) < 2 or above["t_s"].nunique() < 2:
        return {"tau": 0.0, "L_end": l_end, "r_squared": 0.0}

    t = above["t_s"].values
    log_l = np.log(above["L"].values - l_end)
    slope, intercept, _, _, _ = stats.linregress(t, log_l)

    predicted = intercept + slope * t
    ss_res = np.sum((log_l - predicted) ** 2)
    ss_tot = np.sum((log_l - np.mean(log_l)) ** 2)
    r_squared = 1 - ss_res / ss_tot if ss_tot > 0 else 0.0

    tau = abs(1.0 / slope) if slope != 0 else 0.0
    return {"tau": float(tau), "L_end": l_end, "r_squared": float(r_squared)}


def calculate_t_half(tau: float) -> float:
    """Half-life in seconds from the decay time constant."""
    return tau * np.log(2)


def time_to_target(l0: float, l_end: float, tau: float, l_target: float) -> float:
    """
    Seconds until lactate decays from l0 to l_target under the exponential model.

    Returns 0 when already at/below target, when the target lies at/below the
    asymptote, or when tau is not positive.
    """
    if tau <= 0 or l_target <= l_end or l0 <= l_end or l0 <= l_target:
        return 0.0
    ratio = (l_target - l_end) / max(l0 - l_end, 1e-9)
    return float(tau * np.log(1 / ratio)) if ratio > 0 else 0.0


def calculate_auc(points: Optional[Iterable[PointLike]]) -> float:
    """Trapezoidal area under the lactate curve in mmol*min."""
    df = _points_frame(points)
    if len(df) < 2:
        return 0.0
    return float(trapezoid(df["L"].values, df["t_s"].values / 60.0))


def evaluate_lactate_zone(actual: float, target_min: float, target_max: float) -> str:
    """Classify a lactate reading against a target band: under, ok or over."""
    if actual < target_min:
        return "under"
    if actual > target_max:
        return "over"
    return "ok"


# =============================================================================
# FALLBACK ESTIMATORS
# =============================================================================

def predict_lactate_from_curve(
    target_power: Optional[float],
    target_pace: Optional[float],
    curve: Iterable[StepLike],
    base_lactate: float,
) -> float:
    """
    Read the expected lactate at a target intensity off a previous step test.

    Pace targets (s/km) are converted to a rough km/h intensity when no power
    target is given. Below the curve the base lactate is returned, above it the
    last two points are extrapolated (clamped to [base, LACTATE_CEILING]),
    inside it the neighbours are interpolated (floored at base).
    """
    steps = [ensure_step(p) for p in curve or []]
    steps = sorted((s for s in steps if s.is_usable and s.lactate > 0), key=lambda s: s.power)
    if not steps:
        return base_lactate

    target = target_power
    if not target_power and target_pace:
        target = 1000.0 / target_pace * 3.6
    if target is None:
        return base_lactate

    if target <= steps[0].power:
        logger.debug(f"Target {target} below curve, using base lactate {base_lactate}")
        return base_lactate

    if target >= steps[-1].power:
        last = steps[-1]
        if len(steps) < 2 or last.power == steps[-2].power:
            return max(base_lactate, min(Config.LACTATE_CEILING, last.lactate))
        prev = steps[-2]
        slope = (last.lactate - prev.lactate) / (last.power - prev.power)
        predicted = last.lactate + slope * (target - last.power)
        logger.debug(f"Target {target} above curve, extrapolated {predicted:.2f} mmol/L")
        return max(base_lactate, min(Config.LACTATE_CEILING, predicted))

    for lo, hi in zip(steps, steps[1:]):
        if lo.power <= target <= hi.power and hi.power != lo.power:
            ratio = (target - lo.power) / (hi.power - lo.power)
            return max(base_lactate, lo.lactate + ratio * (hi.lactate - lo.lactate))

    return base_lactate


def estimate_lactate_crude(target: Optional[float], base_lactate: float) -> float:
    """Multiplicative guess when neither samples nor a test curve exist."""
    power_factor = (target or 0) / 200.0
    return max(base_lactate, min(Config.CRUDE_ESTIMATE_CAP, base_lactate * (1 + power_factor * 0.3)))
