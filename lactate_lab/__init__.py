"""
Lactate Lab - lactate curve analysis for incremental tests and interval sessions.

Sub-packages:
- calculations: thresholds, zones, kinetics, recommendations (pure functions)
- models: session inputs and interval metric objects
- services: session level analysis
- ml_logic: linear lactate predictor
"""

__version__ = "0.1.0"
