# Tests configuration for lactate_lab
import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lactate_lab.models.results import Interval, IntervalKind, LactateSample


@pytest.fixture
def bike_results():
    """5-stage cycling step test as wire dicts (power W, HR, lactate)."""
    return [
        {"power": 100, "heartRate": 120, "lactate": 1.5, "interval": 1},
        {"power": 150, "heartRate": 135, "lactate": 2.0, "interval": 2},
        {"power": 200, "heartRate": 150, "lactate": 2.8, "interval": 3},
        {"power": 250, "heartRate": 165, "lactate": 4.0, "interval": 4},
        {"power": 300, "heartRate": 180, "lactate": 6.5, "interval": 5},
    ]


@pytest.fixture
def run_results():
    """5-stage running step test, pace in seconds per km (lower = faster)."""
    return [
        {"power": 360, "heartRate": 130, "lactate": 1.5},
        {"power": 330, "heartRate": 140, "lactate": 2.0},
        {"power": 300, "heartRate": 150, "lactate": 2.8},
        {"power": 270, "heartRate": 160, "lactate": 4.0},
        {"power": 240, "heartRate": 170, "lactate": 6.5},
    ]


@pytest.fixture
def session_start():
    return datetime(2024, 5, 1, 8, 0, 0)


@pytest.fixture
def session_intervals():
    """Work/rest/work/rest session at 250 W."""
    return [
        Interval(id="w1", kind=IntervalKind.WORK, seq=1, start_offset_s=0, duration_s=180,
                 target_power_w=250, target_lactate_min=3.0, target_lactate_max=6.0),
        Interval(id="r1", kind=IntervalKind.REST, seq=2, start_offset_s=180, duration_s=120),
        Interval(id="w2", kind=IntervalKind.WORK, seq=3, start_offset_s=300, duration_s=180,
                 target_power_w=250),
        Interval(id="r2", kind=IntervalKind.REST, seq=4, start_offset_s=480, duration_s=120),
    ]


@pytest.fixture
def session_samples(session_start):
    """Measured samples for the first work and first rest interval only."""
    def at(seconds, value, interval_id):
        return LactateSample(
            value_mmol_l=value,
            timestamp=session_start + timedelta(seconds=seconds),
            interval_id=interval_id,
        )

    return [
        at(180, 5.0, "w1"),
        at(0, 2.0, "w1"),
        at(180, 5.0, "r1"),
        at(240, 3.5, "r1"),
        at(300, 3.0, "r1"),
        at(200, 9.9, None),
    ]
