"""
Lactate curve calculations, grouped by responsibility:
- threshold_types.py: Sport / IntensityAxis enums and result dataclasses
- common.py: step-result normalization, sorting and interpolation helpers
- thresholds.py: Dmax, LTP1/LTP2, IAT, Log-log, OBLA and baseline thresholds
- zones.py: five training zones from LTP1/LTP2
- kinetics.py: dLa/dt, exponential clearance, half-life, AUC
- recommendations.py: rule-based advice from interval metrics

All public functions are re-exported from this package.
"""

from .threshold_types import (
    IntensityAxis,
    PaceBand,
    Sport,
    StepResult,
    ThresholdPoint,
    ThresholdSet,
    ZoneBand,
    ZoneSet,
)

from .common import (
    step_results_to_frame,
    sort_steps,
    interpolate,
)

from .thresholds import (
    calculate_thresholds,
    calculate_thresholds_from_test,
    filter_outliers,
    calculate_dmax,
    calculate_iat,
    calculate_log_log_threshold,
    calculate_derivatives,
    find_lactate_thresholds,
    calculate_obla_thresholds,
    calculate_lt_ratio,
)

from .zones import (
    calculate_zones,
    calculate_zones_from_test,
    calculate_zones_from_thresholds,
    format_pace,
)

from .kinetics import (
    calculate_dladt,
    calculate_clearance_rate,
    fit_exponential_decay,
    calculate_t_half,
    time_to_target,
    calculate_auc,
    evaluate_lactate_zone,
    predict_lactate_from_curve,
    estimate_lactate_crude,
)

from .recommendations import (
    generate_recommendations,
    prediction_recommendations,
)

__all__ = [
    # Types
    'IntensityAxis',
    'PaceBand',
    'Sport',
    'StepResult',
    'ThresholdPoint',
    'ThresholdSet',
    'ZoneBand',
    'ZoneSet',
    # Helpers
    'step_results_to_frame',
    'sort_steps',
    'interpolate',
    # Thresholds
    'calculate_thresholds',
    'calculate_thresholds_from_test',
    'filter_outliers',
    'calculate_dmax',
    'calculate_iat',
    'calculate_log_log_threshold',
    'calculate_derivatives',
    'find_lactate_thresholds',
    'calculate_obla_thresholds',
    'calculate_lt_ratio',
    # Zones
    'calculate_zones',
    'calculate_zones_from_test',
    'calculate_zones_from_thresholds',
    'format_pace',
    # Kinetics
    'calculate_dladt',
    'calculate_clearance_rate',
    'fit_exponential_decay',
    'calculate_t_half',
    'time_to_target',
    'calculate_auc',
    'evaluate_lactate_zone',
    'predict_lactate_from_curve',
    'estimate_lactate_crude',
    # Recommendations
    'generate_recommendations',
    'prediction_recommendations',
]
