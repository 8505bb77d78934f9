"""Tests for lactate_lab.calculations.thresholds"""
import pytest

from lactate_lab.calculations import (
    IntensityAxis,
    StepResult,
    calculate_dmax,
    calculate_iat,
    calculate_log_log_threshold,
    calculate_obla_thresholds,
    calculate_thresholds,
    calculate_thresholds_from_test,
    filter_outliers,
    find_lactate_thresholds,
    interpolate,
    sort_steps,
    step_results_to_frame,
)

BIKE = IntensityAxis.HIGHER_IS_HARDER
PACE = IntensityAxis.LOWER_IS_HARDER


def steps(*rows):
    """(power, lactate[, hr]) tuples -> StepResults."""
    return [StepResult(power=r[0], lactate=r[1], heart_rate=r[2] if len(r) > 2 else None) for r in rows]


class TestIntensityAxis:

    def test_for_sport(self):
        assert IntensityAxis.for_sport("bike") is BIKE
        assert IntensityAxis.for_sport("run") is PACE
        assert IntensityAxis.for_sport("swim") is PACE

    def test_unknown_sport_raises(self):
        with pytest.raises(ValueError):
            IntensityAxis.for_sport("rowing")

    def test_is_harder(self):
        assert BIKE.is_harder(300, 200)
        assert PACE.is_harder(240, 300)
        assert not PACE.is_harder(300, 240)


class TestHelpers:

    def test_frame_drops_unusable_rows(self, bike_results):
        df = step_results_to_frame(bike_results + [{"power": 350, "lactate": float("nan")}])
        assert len(df) == 5
        assert df["heart_rate"].tolist() == [120, 135, 150, 165, 180]

    def test_empty_frame(self):
        assert step_results_to_frame(None).empty

    def test_interpolate_flat_segment(self):
        assert interpolate(100, 2.0, 150, 2.0, 2.0) == 100

    def test_sort_steps_by_axis(self):
        points = steps((300, 2.0), (240, 4.0), (360, 1.0))
        assert [p.power for p in sort_steps(points, BIKE)] == [240, 300, 360]
        assert [p.power for p in sort_steps(points, PACE)] == [360, 300, 240]


class TestFilterOutliers:

    def test_drops_noisy_low_reading(self):
        points = steps((100, 1.0), (150, 2.0), (155, 1.2), (200, 3.0))
        filtered = filter_outliers(points, BIKE)
        assert [p.power for p in filtered] == [100, 150, 200]

    def test_keeps_drop_at_large_intensity_step(self):
        points = steps((100, 3.0), (150, 1.0), (200, 2.0))
        filtered = filter_outliers(points, BIKE)
        assert len(filtered) == 3

    def test_pace_sorted_slow_to_fast(self):
        points = steps((250, 4.0), (300, 2.0), (295, 1.2))
        filtered = filter_outliers(points, PACE)
        assert [p.power for p in filtered] == [300, 250]


class TestDmax:

    def test_max_distance_point(self, bike_results):
        points = [StepResult.from_dict(r) for r in bike_results]
        assert calculate_dmax(points, BIKE).power == 250

    def test_straight_line_falls_back_to_middle(self):
        points = steps((2, 1.0), (4, 2.0), (6, 3.0))
        assert calculate_dmax(points, BIKE).power == 4

    def test_zero_intensity_span(self):
        points = steps((200, 1.0), (200, 2.0), (200, 3.0))
        assert calculate_dmax(points, BIKE) is None

    def test_too_few_points(self):
        assert calculate_dmax(steps((100, 1.0), (200, 2.0)), BIKE) is None


class TestIAT:

    def test_steepest_slope(self, bike_results):
        points = [StepResult.from_dict(r) for r in bike_results]
        assert calculate_iat(points).power == 300

    def test_skips_zero_intensity_span(self):
        points = steps((100, 1.0), (100, 5.0), (200, 2.0), (300, 4.0))
        assert calculate_iat(points).power == 300

    def test_pace_values_ranked_as_raw_numbers(self, run_results):
        # Known asymmetry: IAT does not honour the pace axis, so a falling
        # lactate-vs-seconds curve never yields a positive slope.
        points = [StepResult.from_dict(r) for r in run_results]
        assert calculate_iat(points) is None


class TestLogLog:

    def test_sharpest_bend(self, bike_results):
        points = sort_steps([StepResult.from_dict(r) for r in bike_results], BIKE)
        assert calculate_log_log_threshold(points).power == 250

    def test_zero_lactate_does_not_crash(self):
        points = steps((100, 0.0), (150, 1.0), (200, 3.0), (250, 6.0))
        assert calculate_log_log_threshold(points) is not None


class TestFindLactateThresholds:

    def test_bike_pair(self, bike_results):
        points = sort_steps([StepResult.from_dict(r) for r in bike_results], BIKE)
        ltp1, ltp2, swapped = find_lactate_thresholds(points, 1.2, BIKE)
        assert ltp1.intensity == 150
        assert ltp1.heart_rate == 135
        assert ltp2.intensity == 250
        assert ltp2.lactate == 4.0
        assert swapped is False

    def test_swap_when_reversed(self):
        points = steps((100, 1.0), (150, 4.0), (200, 4.5), (250, 5.0), (300, 5.5))
        ltp1, ltp2, swapped = find_lactate_thresholds(points, 4.5, BIKE)
        assert swapped is True
        assert ltp1.intensity == 150
        assert ltp2.intensity == 200

    def test_second_derivative_fallback(self):
        points = steps((100, 1.0, 120), (150, 1.1, 130), (200, 1.5, 140), (250, 2.5, 150), (300, 7.0, 160))
        ltp1, ltp2, _ = find_lactate_thresholds(points, 10.0, BIKE)
        assert ltp1.intensity == 200
        assert ltp1.heart_rate == 140
        assert ltp2.intensity == 250

    def test_first_point_fallback(self, bike_results):
        points = sort_steps([StepResult.from_dict(r) for r in bike_results], BIKE)
        ltp1, _, _ = find_lactate_thresholds(points, 10.0, BIKE)
        assert ltp1.intensity == 100


class TestOBLA:

    def test_interpolation_exact_midpoint(self):
        points = steps((100, 2.0, 140), (150, 3.0, 160))
        found = calculate_obla_thresholds(points, 1.0)
        assert found["OBLA 2.5"].intensity == 125
        assert found["OBLA 2.5"].heart_rate == 150
        assert found["OBLA 2.5"].lactate == 2.5

    def test_unreached_target_omitted(self):
        points = steps((100, 2.0, 140), (150, 3.0, 160))
        found = calculate_obla_thresholds(points, 1.0)
        assert "OBLA 3.5" not in found
        assert found["OBLA 3.0"].intensity == 150

    def test_baseline_offsets(self, bike_results):
        points = [StepResult.from_dict(r) for r in bike_results]
        found = calculate_obla_thresholds(points, 1.2)
        assert found["Bsln + 0.5"].intensity == pytest.approx(120)
        assert found["Bsln + 1.0"].intensity == pytest.approx(162.5)
        assert found["Bsln + 1.5"].intensity == pytest.approx(193.75)

    def test_missing_heart_rate(self):
        points = steps((100, 2.0), (150, 3.0))
        assert calculate_obla_thresholds(points, 1.0)["OBLA 2.5"].heart_rate is None


class TestCalculateThresholds:

    def test_bike_end_to_end(self, bike_results):
        result = calculate_thresholds(bike_results, base_lactate=1.2, sport="bike")
        ltp1, ltp2 = result.intensity("LTP1"), result.intensity("LTP2")

        assert 150 < ltp2 < 300
        assert ltp1 < ltp2
        assert result.intensity("IAT") == 300
        assert result.intensity("Log-log") == 250
        assert result.intensity("OBLA 2.5") == pytest.approx(181.25)
        assert result["OBLA 2.5"].heart_rate == pytest.approx(144.375)
        assert result.lt_ratio == "1.67"

    def test_run_ordering(self, run_results):
        result = calculate_thresholds(run_results, base_lactate=1.2, sport="run")

        assert result.intensity("LTP1") == 330
        assert result.intensity("LTP2") == 270
        assert result.intensity("LTP1") > result.intensity("LTP2")
        assert result.lt_ratio == "1.22"
        assert result.intensity("OBLA 2.5") == pytest.approx(311.25)
        assert "IAT" not in result

    def test_wire_shape(self, bike_results):
        out = calculate_thresholds(bike_results, base_lactate=1.2).to_dict()
        assert out["LTP2"] == 250
        assert out["heartRates"]["LTP2"] == 165
        assert out["lactates"]["LTP1"] == 2.0
        assert out["LTRatio"] == "1.67"

    def test_insufficient_data_returns_empty(self):
        result = calculate_thresholds([{"power": 100, "lactate": 1.0}, {"power": 200, "lactate": 3.0}])
        assert result.is_empty
        assert result.to_dict() == {"heartRates": {}, "lactates": {}}

    def test_unusable_points_dropped(self, bike_results):
        broken = bike_results[:2] + [{"power": 200, "lactate": None}, {"power": "abc", "lactate": 2.0}]
        assert calculate_thresholds(broken).is_empty

    def test_idempotent(self, bike_results):
        first = calculate_thresholds(bike_results, base_lactate=1.2).to_dict()
        second = calculate_thresholds(bike_results, base_lactate=1.2).to_dict()
        assert first == second

    def test_input_order_irrelevant(self, bike_results):
        shuffled = [bike_results[i] for i in (3, 0, 4, 2, 1)]
        assert (calculate_thresholds(shuffled, 1.2).to_dict()
                == calculate_thresholds(bike_results, 1.2).to_dict())

    def test_swap_flag_exposed(self):
        results = [{"power": p, "lactate": la, "heartRate": 150}
                   for p, la in ((100, 1.0), (150, 4.0), (200, 4.5), (250, 5.0), (300, 5.5))]
        result = calculate_thresholds(results, base_lactate=4.5)
        assert result.ltp_swapped is True
        assert result.intensity("LTP1") < result.intensity("LTP2")

    def test_result_is_read_only(self, bike_results):
        result = calculate_thresholds(bike_results, base_lactate=1.2)
        with pytest.raises(TypeError):
            result.points["LTP2"] = None
        with pytest.raises(AttributeError):
            result.ltp_swapped = True

    def test_from_test_record(self, run_results):
        result = calculate_thresholds_from_test({"sport": "run", "baseLactate": 1.2, "results": run_results})
        assert result.intensity("LTP2") == 270
