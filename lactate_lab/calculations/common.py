"""
Shared helpers and constants for the calculations package.
"""
import math
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd

from lactate_lab.config import Config
from .threshold_types import IntensityAxis, StepResult

# Constants re-exported from Config so the algorithms read them in one place
MIN_THRESHOLD_POINTS = Config.MIN_THRESHOLD_POINTS
DEFAULT_BASE_LACTATE = Config.DEFAULT_BASE_LACTATE
LOG_EPSILON = 1e-6
SLOPE_EPSILON = 1e-9
MIN_DURATION_MIN = 1e-6

STEP_COLUMNS = ["power", "heart_rate", "lactate", "glucose", "rpe", "interval"]

StepLike = Union[StepResult, Mapping[str, Any]]


def ensure_step(item: StepLike) -> StepResult:
    """Accept a StepResult or a wire dict."""
    if isinstance(item, StepResult):
        return item
    return StepResult.from_dict(item)


def step_results_to_frame(results: Optional[Iterable[StepLike]]) -> pd.DataFrame:
    """
    Convert raw step results to a DataFrame of usable rows only.

    Rows whose power or lactate is missing or non-finite are dropped. The
    input order is preserved.

    Args:
        results: StepResult objects or wire dicts

    Returns:
        DataFrame with STEP_COLUMNS
    """
    steps = [ensure_step(r) for r in (results or [])]
    usable = [s for s in steps if s.is_usable]
    if not usable:
        return pd.DataFrame(columns=STEP_COLUMNS)
    return pd.DataFrame(
        [[s.power, s.heart_rate, s.lactate, s.glucose, s.rpe, s.interval] for s in usable],
        columns=STEP_COLUMNS,
    )


def frame_to_steps(df: pd.DataFrame) -> List[StepResult]:
    """Inverse of step_results_to_frame. NaN cells become None."""
    steps = []
    for row in df.itertuples(index=False):
        values = [None if pd.isna(v) else float(v) for v in row]
        steps.append(StepResult(
            power=values[0],
            heart_rate=values[1],
            lactate=values[2],
            glucose=values[3],
            rpe=values[4],
            interval=values[5],
        ))
    return steps


def sort_steps(steps: Iterable[StepResult], axis: IntensityAxis) -> List[StepResult]:
    """Order steps from easiest to hardest. Stable for equal intensities."""
    return sorted(steps, key=lambda s: s.power, reverse=not axis.ascending)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 always upward."""
    return int(math.floor(value + 0.5))


def interpolate(x0: float, y0: float, x1: float, y1: float, target_y: float) -> float:
    """Linear interpolation of x at target_y on the segment (x0, y0)-(x1, y1)."""
    if y1 == y0:
        return x0
    return x0 + (target_y - y0) * (x1 - x0) / (y1 - y0)
