"""
Training Zones from a Lactate Test.

Five zones expressed as fixed fractions of LTP1 and LTP2. Cycling zones are
integer watts; running and swimming zones are pace seconds (formatted M:SS),
where dividing by the fraction makes a higher zone faster.
"""
import logging
from typing import Dict, Iterable, Optional, Tuple

from .common import MIN_THRESHOLD_POINTS, StepLike, round_half_up
from .threshold_types import (
    IntensityAxis,
    PaceBand,
    Sport,
    ThresholdSet,
    ZoneBand,
    ZoneSet,
)
from .thresholds import calculate_thresholds

logger = logging.getLogger("LactateLab.Zones")

# (anchor, low fraction, anchor, high fraction); anchor 1 = LTP1, 2 = LTP2
ZONE_FRACTIONS: Dict[str, Tuple[int, float, int, float]] = {
    "zone1": (1, 0.70, 1, 0.90),
    "zone2": (1, 0.90, 1, 1.00),
    "zone3": (1, 1.00, 2, 0.95),
    "zone4": (2, 0.96, 2, 1.04),
    "zone5": (2, 1.05, 2, 1.20),
}


def format_pace(seconds: float) -> str:
    """Format pace seconds as M:SS."""
    s = max(0, round_half_up(float(seconds or 0)))
    return f"{s // 60}:{s % 60:02d}"


def _scaled_bands(lt1: float, lt2: float) -> Dict[str, ZoneBand]:
    anchors = {1: lt1, 2: lt2}
    return {
        name: ZoneBand(
            min=round_half_up(anchors[lo_a] * lo_f),
            max=round_half_up(anchors[hi_a] * hi_f),
        )
        for name, (lo_a, lo_f, hi_a, hi_f) in ZONE_FRACTIONS.items()
    }


def _pace_bands(lt1: float, lt2: float) -> Dict[str, PaceBand]:
    anchors = {1: lt1, 2: lt2}
    bands = {}
    for name, (lo_a, lo_f, hi_a, hi_f) in ZONE_FRACTIONS.items():
        lo = anchors[lo_a] / lo_f
        hi = anchors[hi_a] / hi_f
        bands[name] = PaceBand(min_seconds=lo, max_seconds=hi, min=format_pace(lo), max=format_pace(hi))
    return bands


def calculate_zones_from_thresholds(thresholds: ThresholdSet, sport: str = "bike") -> Optional[ZoneSet]:
    """
    Build zones from an already computed ThresholdSet.

    Returns None when LTP1/LTP2 or their heart rates are missing or zero, or
    when LTP2 is not harder than LTP1.
    """
    sport = Sport(sport)
    axis = IntensityAxis.for_sport(sport)

    lt1 = thresholds.intensity("LTP1") or 0
    lt2 = thresholds.intensity("LTP2") or 0
    hr1 = (thresholds.get("LTP1").heart_rate if "LTP1" in thresholds else 0) or 0
    hr2 = (thresholds.get("LTP2").heart_rate if "LTP2" in thresholds else 0) or 0

    if not lt1 or not lt2 or not hr1 or not hr2:
        logger.warning("Zones unavailable: LTP1/LTP2 or their heart rates missing")
        return None

    if not axis.is_harder(lt2, lt1):
        logger.warning(f"Zones unavailable: LTP2 ({lt2}) not harder than LTP1 ({lt1})")
        return None

    zones = ZoneSet(sport=sport, lt1=lt1, lt2=lt2, heart_rate=_scaled_bands(hr1, hr2))
    if axis.is_pace:
        zones.pace = _pace_bands(lt1, lt2)
    else:
        zones.power = _scaled_bands(lt1, lt2)
    return zones


def calculate_zones(
    results: Optional[Iterable[StepLike]],
    base_lactate: Optional[float] = 0.0,
    sport: str = "bike",
) -> Optional[ZoneSet]:
    """
    Derive the five training zones directly from step results.

    Args:
        results: StepResult objects or wire dicts
        base_lactate: Resting lactate in mmol/L
        sport: "bike", "run" or "swim"

    Returns:
        ZoneSet or None
    """
    results = list(results or [])
    if len(results) < MIN_THRESHOLD_POINTS:
        return None
    thresholds = calculate_thresholds(results, base_lactate=base_lactate, sport=sport)
    return calculate_zones_from_thresholds(thresholds, sport=sport)


def calculate_zones_from_test(test: dict) -> Optional[ZoneSet]:
    """Convenience wrapper for a wire record {sport, baseLactate, results}."""
    test = test or {}
    return calculate_zones(
        test.get("results") or [],
        base_lactate=test.get("baseLactate") or 0.0,
        sport=test.get("sport") or "bike",
    )
