"""
Models Module - Data Models for Structured Lactate Sessions

Sub-modules:
- results: session inputs (intervals, samples) and derived metric objects
"""

from lactate_lab.models.results import (
    Interval,
    IntervalKind,
    IntervalMetric,
    LactateSample,
    MetricSource,
    OverallMetrics,
    SessionAnalysis,
)

__all__ = [
    "Interval",
    "IntervalKind",
    "IntervalMetric",
    "LactateSample",
    "MetricSource",
    "OverallMetrics",
    "SessionAnalysis",
]
