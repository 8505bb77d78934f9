"""Services - orchestration over structured lactate sessions."""

from lactate_lab.services.session_analysis import (
    analyze_session,
    analyze_work_interval,
    analyze_rest_interval,
    calculate_overall_metrics,
)

__all__ = [
    "analyze_session",
    "analyze_work_interval",
    "analyze_rest_interval",
    "calculate_overall_metrics",
]
