"""Tests for lactate_lab.calculations.kinetics"""
import math

import pytest

from lactate_lab.calculations import (
    calculate_auc,
    calculate_clearance_rate,
    calculate_dladt,
    calculate_t_half,
    estimate_lactate_crude,
    evaluate_lactate_zone,
    fit_exponential_decay,
    predict_lactate_from_curve,
    time_to_target,
)


def decay_points(l_end=2.0, amplitude=6.0, tau=100.0, times=(0, 50, 100, 150)):
    points = [{"t_s": t, "L": l_end + amplitude * math.exp(-t / tau)} for t in times]
    points.append({"t_s": 600, "L": l_end})
    return points


class TestRates:

    def test_dladt(self):
        assert calculate_dladt(2.0, 5.0, 180) == pytest.approx(1.0)

    def test_dladt_zero_duration_is_finite(self):
        assert math.isfinite(calculate_dladt(2.0, 5.0, 0))

    def test_clearance_rate(self):
        assert calculate_clearance_rate(6.0, 3.0, 120) == pytest.approx(1.5)

    def test_clearance_negative_when_rising(self):
        assert calculate_clearance_rate(3.0, 4.0, 60) < 0


class TestExponentialDecay:

    def test_recovers_tau(self):
        fit = fit_exponential_decay(decay_points())
        assert fit["tau"] == pytest.approx(100, rel=1e-6)
        assert fit["L_end"] == 2.0
        assert fit["r_squared"] == pytest.approx(1.0)

    def test_accepts_pairs_in_any_order(self):
        pairs = [(p["t_s"], p["L"]) for p in decay_points()]
        fit = fit_exponential_decay(list(reversed(pairs)))
        assert fit["tau"] == pytest.approx(100, rel=1e-6)

    def test_too_few_points(self):
        fit = fit_exponential_decay([{"t_s": 0, "L": 5.0}, {"t_s": 60, "L": 3.0}])
        assert fit == {"tau": 0.0, "L_end": 0.0, "r_squared": 0.0}

    def test_flat_curve_is_degenerate(self):
        fit = fit_exponential_decay([(0, 3.0), (60, 3.0), (120, 3.0)])
        assert fit["tau"] == 0.0
        assert fit["L_end"] == 3.0

    def test_t_half(self):
        assert calculate_t_half(100) == pytest.approx(100 * math.log(2))
        assert calculate_t_half(0) == 0


class TestTimeToTarget:

    def test_half_way_is_one_half_life(self):
        assert time_to_target(8.0, 2.0, 100.0, 5.0) == pytest.approx(100 * math.log(2))

    @pytest.mark.parametrize("l0,l_end,tau,target", [
        (8.0, 2.0, 0.0, 5.0),     # no decay
        (8.0, 2.0, 100.0, 2.0),   # target on the asymptote
        (4.0, 2.0, 100.0, 5.0),   # already below target
        (2.0, 2.0, 100.0, 1.0),   # start on the asymptote
    ])
    def test_zero_cases(self, l0, l_end, tau, target):
        assert time_to_target(l0, l_end, tau, target) == 0


class TestAUC:

    def test_trapezoid_in_minutes(self):
        points = [{"t_s": 0, "L": 2.0}, {"t_s": 60, "L": 4.0}, {"t_s": 120, "L": 4.0}]
        assert calculate_auc(points) == pytest.approx(7.0)

    def test_rise_and_fall(self):
        assert calculate_auc([(0, 2.0), (60, 4.0), (120, 2.0)]) == pytest.approx(6.0)

    def test_unsorted_input(self):
        assert calculate_auc([(180, 5.0), (0, 2.0)]) == pytest.approx(10.5)

    def test_single_point(self):
        assert calculate_auc([(0, 2.0)]) == 0


class TestLactateZone:

    def test_classification(self):
        assert evaluate_lactate_zone(2.0, 3.0, 6.0) == "under"
        assert evaluate_lactate_zone(3.0, 3.0, 6.0) == "ok"
        assert evaluate_lactate_zone(6.5, 3.0, 6.0) == "over"


class TestCurvePrediction:

    def test_interpolates(self, bike_results):
        assert predict_lactate_from_curve(175, None, bike_results, 1.2) == pytest.approx(2.4)

    def test_below_curve_returns_base(self, bike_results):
        assert predict_lactate_from_curve(90, None, bike_results, 1.2) == 1.2

    def test_above_curve_extrapolates(self, bike_results):
        assert predict_lactate_from_curve(350, None, bike_results, 1.2) == pytest.approx(9.0)

    def test_extrapolation_capped(self, bike_results):
        assert predict_lactate_from_curve(1000, None, bike_results, 1.2) == 20

    def test_pace_target_converted(self, bike_results):
        # 1000 / 18 * 3.6 = 200 intensity units
        assert predict_lactate_from_curve(None, 18, bike_results, 1.2) == pytest.approx(2.8)

    def test_empty_curve(self):
        assert predict_lactate_from_curve(200, None, [], 1.5) == 1.5

    def test_no_target(self, bike_results):
        assert predict_lactate_from_curve(None, None, bike_results, 1.2) == 1.2


class TestCrudeEstimate:

    def test_scales_with_target(self):
        assert estimate_lactate_crude(200, 1.0) == pytest.approx(1.3)

    def test_capped(self):
        assert estimate_lactate_crude(100000, 1.0) == 8.0

    def test_no_target(self):
        assert estimate_lactate_crude(None, 1.4) == 1.4
