"""
Common types and dataclasses for lactate threshold detection and zones.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class Sport(str, Enum):
    """Sport tag of an incremental test."""
    BIKE = "bike"
    RUN = "run"
    SWIM = "swim"


class IntensityAxis(Enum):
    """Direction in which the intensity number grows harder.

    Cycling records watts (higher = harder), running and swimming record pace
    as seconds per distance unit (lower = faster = harder).
    """
    HIGHER_IS_HARDER = "higher_is_harder"
    LOWER_IS_HARDER = "lower_is_harder"

    @classmethod
    def for_sport(cls, sport) -> "IntensityAxis":
        """Resolve the axis for a sport tag. Raises ValueError for unknown sports."""
        if Sport(sport) is Sport.BIKE:
            return cls.HIGHER_IS_HARDER
        return cls.LOWER_IS_HARDER

    @property
    def is_pace(self) -> bool:
        return self is IntensityAxis.LOWER_IS_HARDER

    @property
    def ascending(self) -> bool:
        """Sort direction of the raw number that orders points easy -> hard."""
        return self is IntensityAxis.HIGHER_IS_HARDER

    def is_harder(self, a: float, b: float) -> bool:
        """True when intensity `a` is strictly harder than `b`."""
        if self.is_pace:
            return a < b
        return a > b

    def relative_change(self, prev: float, curr: float) -> float:
        """Relative intensity increase going from `prev` to `curr`."""
        denom = prev or 1.0
        if self.is_pace:
            return (prev - curr) / denom
        return (curr - prev) / denom


def finite_or_none(value: Any) -> Optional[float]:
    """Convert to float, mapping None/NaN/garbage to None."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class StepResult:
    """One stage of an incremental test."""
    power: Optional[float]                # watts (bike) or s per distance unit (run/swim)
    lactate: Optional[float]              # mmol/L
    heart_rate: Optional[float] = None    # bpm
    glucose: Optional[float] = None
    rpe: Optional[float] = None
    interval: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StepResult":
        """Build from a wire record using camelCase keys (heartRate, RPE)."""
        return cls(
            power=finite_or_none(data.get("power")),
            lactate=finite_or_none(data.get("lactate")),
            heart_rate=finite_or_none(data.get("heartRate", data.get("heart_rate"))),
            glucose=finite_or_none(data.get("glucose")),
            rpe=finite_or_none(data.get("RPE", data.get("rpe"))),
            interval=finite_or_none(data.get("interval")),
        )

    @property
    def is_usable(self) -> bool:
        return self.power is not None and self.lactate is not None


@dataclass(frozen=True)
class ThresholdPoint:
    """Intensity of a threshold plus heart rate and lactate found there."""
    intensity: float
    heart_rate: Optional[float] = None
    lactate: Optional[float] = None

    @classmethod
    def from_step(cls, step: StepResult) -> "ThresholdPoint":
        return cls(intensity=step.power, heart_rate=step.heart_rate, lactate=step.lactate)


@dataclass(frozen=True)
class ThresholdSet:
    """All thresholds detected on one step test. Read-only once built.

    `ltp_swapped` is set when LTP1 and LTP2 were detected in reversed roles
    and had to be swapped to satisfy the intensity ordering.
    """
    points: Mapping[str, ThresholdPoint] = field(default_factory=dict)
    lt_ratio: Optional[str] = None
    ltp_swapped: bool = False

    def __post_init__(self):
        object.__setattr__(self, "points", MappingProxyType(dict(self.points)))

    def __contains__(self, method: str) -> bool:
        return method in self.points

    def __getitem__(self, method: str) -> ThresholdPoint:
        return self.points[method]

    def __len__(self) -> int:
        return len(self.points)

    def get(self, method: str) -> Optional[ThresholdPoint]:
        return self.points.get(method)

    def intensity(self, method: str) -> Optional[float]:
        point = self.points.get(method)
        return point.intensity if point else None

    @property
    def is_empty(self) -> bool:
        return not self.points

    def to_dict(self) -> Dict[str, Any]:
        """Flat wire shape: method -> intensity, plus heartRates/lactates sub-objects."""
        out: Dict[str, Any] = {"heartRates": {}, "lactates": {}}
        for method, point in self.points.items():
            out[method] = point.intensity
            out["heartRates"][method] = point.heart_rate
            out["lactates"][method] = point.lactate
        if self.lt_ratio is not None:
            out["LTRatio"] = self.lt_ratio
        return out


@dataclass(frozen=True)
class ZoneBand:
    """Integer-rounded band (watts or bpm)."""
    min: int
    max: int

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class PaceBand:
    """Pace band kept both as seconds and as M:SS text."""
    min_seconds: float
    max_seconds: float
    min: str
    max: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": self.min,
            "max": self.max,
            "minSeconds": self.min_seconds,
            "maxSeconds": self.max_seconds,
        }


@dataclass
class ZoneSet:
    """Five training zones derived from LTP1/LTP2."""
    sport: Sport
    lt1: float
    lt2: float
    heart_rate: Dict[str, ZoneBand]
    power: Optional[Dict[str, ZoneBand]] = None
    pace: Optional[Dict[str, PaceBand]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sport": self.sport.value,
            "lt1": self.lt1,
            "lt2": self.lt2,
        }
        if self.power is not None:
            out["power"] = {name: band.to_dict() for name, band in self.power.items()}
        if self.pace is not None:
            out["pace"] = {name: band.to_dict() for name, band in self.pace.items()}
        out["heartRate"] = {name: band.to_dict() for name, band in self.heart_rate.items()}
        return out
