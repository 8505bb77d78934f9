"""
Structured Session Objects.

Intervals and lactate samples are authored inputs and never change once a
session is analyzed. IntervalMetric objects are recomputed on every analysis
pass and fully replace earlier ones.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# ENUMS
# ============================================================

class IntervalKind(str, Enum):
    """Segment type of a structured session."""
    WORK = "work"
    REST = "rest"


class MetricSource(str, Enum):
    """Where an interval's lactate values came from."""
    SAMPLES = "samples"           # measured lactate tagged to the interval
    TEST_CURVE = "test_curve"     # interpolated on a previous step test
    ESTIMATE = "estimate"         # multiplicative guess from base lactate / typical clearance


# ============================================================
# SESSION INPUTS
# ============================================================

@dataclass(frozen=True)
class Interval:
    """One work or rest segment of a session."""
    id: str
    kind: IntervalKind
    seq: int
    start_offset_s: float
    duration_s: float
    target_power_w: Optional[float] = None
    target_pace_s_per_km: Optional[float] = None
    target_lactate_min: Optional[float] = None
    target_lactate_max: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Interval":
        return cls(
            id=str(data.get("id", data.get("_id"))),
            kind=IntervalKind(data["kind"]),
            seq=int(data.get("seq", 0)),
            start_offset_s=float(data.get("startOffsetS", 0) or 0),
            duration_s=float(data.get("durationS", 0) or 0),
            target_power_w=data.get("targetPowerW"),
            target_pace_s_per_km=data.get("targetPaceSPerKm"),
            target_lactate_min=data.get("targetLactateMin"),
            target_lactate_max=data.get("targetLactateMax"),
        )


@dataclass(frozen=True)
class LactateSample:
    """A timestamped blood lactate reading, optionally tagged to an interval."""
    value_mmol_l: float
    timestamp: datetime
    interval_id: Optional[str] = None
    interval_type: Optional[str] = None


# ============================================================
# DERIVED METRICS
# ============================================================

@dataclass
class IntervalMetric:
    """
    Metrics of one interval.

    Work intervals fill lactate_end_work, d_la_dt_mmol_per_min and
    auc_mmol_min; rest intervals fill lactate_end_rest,
    clearance_rate_mmol_per_min and t_half_s.
    """
    interval_id: str
    seq: int
    kind: IntervalKind
    duration_s: float
    start_offset_s: float
    target_power_w: Optional[float] = None
    target_pace_s_per_km: Optional[float] = None
    target_lactate_min: Optional[float] = None
    target_lactate_max: Optional[float] = None

    # Work
    lactate_end_work: Optional[float] = None
    d_la_dt_mmol_per_min: Optional[float] = None
    auc_mmol_min: Optional[float] = None
    zone: Optional[str] = None

    # Rest
    lactate_end_rest: Optional[float] = None
    clearance_rate_mmol_per_min: Optional[float] = None
    t_half_s: Optional[float] = None
    tau_s: Optional[float] = None
    fit_r_squared: Optional[float] = None

    source: MetricSource = MetricSource.ESTIMATE

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by the API layer."""
        out = {
            "intervalId": self.interval_id,
            "seq": self.seq,
            "kind": self.kind.value,
            "durationS": self.duration_s,
            "startOffsetS": self.start_offset_s,
            "targetPowerW": self.target_power_w,
            "targetPaceSPerKm": self.target_pace_s_per_km,
            "targetLactateMin": self.target_lactate_min,
            "targetLactateMax": self.target_lactate_max,
            "source": self.source.value,
        }
        if self.kind is IntervalKind.WORK:
            out.update({
                "lactateEndWork": self.lactate_end_work,
                "dLaDtMmolPerMin": self.d_la_dt_mmol_per_min,
                "aucMmolMin": self.auc_mmol_min,
                "zone": self.zone or "N/A",
            })
        else:
            out.update({
                "lactateEndRest": self.lactate_end_rest,
                "clearanceRateMmolPerMin": self.clearance_rate_mmol_per_min,
                "tHalfS": self.t_half_s,
            })
        return out


@dataclass
class OverallMetrics:
    """Session level aggregates."""
    avg_d_la_dt: float = 0.0
    avg_t_half: float = 0.0
    total_auc: float = 0.0
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgDLADt": self.avg_d_la_dt,
            "avgTHalf": self.avg_t_half,
            "totalAUC": self.total_auc,
            "recommendations": list(self.recommendations),
        }


@dataclass
class SessionAnalysis:
    """Complete result of one analysis pass over a structured session."""
    interval_metrics: List[IntervalMetric] = field(default_factory=list)
    overall: OverallMetrics = field(default_factory=OverallMetrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intervalMetrics": [m.to_dict() for m in self.interval_metrics],
            "overallMetrics": self.overall.to_dict(),
        }
