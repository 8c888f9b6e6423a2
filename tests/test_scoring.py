"""Tests for recovery score calculation."""

from datetime import date, timedelta

import pytest

from recovery_engine.exceptions import ConfigurationError
from recovery_engine.models import DailyMetric, DeltaDirection, MetricType, TimeOfDay
from recovery_engine.scoring import (
    DEFAULT_WEIGHTS,
    band_score,
    calculate_heart_rate_score,
    calculate_hrv_score,
    calculate_stress_score,
    calculate_training_load_score,
    compute_recovery_score,
    round_half_up,
    score_metric,
)

TARGET = date(2024, 3, 29)


def history(metric_type: MetricType, value: float, days: int):
    """Constant daily values for the ``days`` days before TARGET."""
    return [
        DailyMetric(TARGET - timedelta(days=offset), metric_type, value)
        for offset in range(days, 0, -1)
    ]


def today(metric_type: MetricType, value: float) -> DailyMetric:
    return DailyMetric(TARGET, metric_type, value)


class TestSubScores:
    """Tests for per-metric sub-scores."""

    def test_heart_rate_band(self):
        assert calculate_heart_rate_score(40) == 100.0
        assert calculate_heart_rate_score(65) == pytest.approx(50.0)
        assert calculate_heart_rate_score(90) == 0.0

    def test_heart_rate_clamped(self):
        assert calculate_heart_rate_score(30) == 100.0
        assert calculate_heart_rate_score(120) == 0.0

    def test_hrv_band(self):
        assert calculate_hrv_score(20) == 0.0
        assert calculate_hrv_score(60) == pytest.approx(50.0)
        assert calculate_hrv_score(150) == 100.0

    def test_band_score_inverse(self):
        assert band_score(25, 0, 100, inverse=True) == pytest.approx(75.0)

    def test_training_load_without_baseline(self):
        assert calculate_training_load_score(120, None) == 75.0
        assert calculate_training_load_score(120, 0.0) == 75.0

    @pytest.mark.parametrize("ratio,expected", [
        (1.0, 100.0),
        (0.8, 90.0),
        (1.3, 85.0),
        (0.4, 70.0),
        (0.0, 50.0),
        (1.4, 57.5),
        (1.5, 30.0),
        (2.0, 15.0),
        (3.0, 0.0),
    ])
    def test_training_load_ratio(self, ratio, expected):
        assert calculate_training_load_score(ratio * 100, 100) == pytest.approx(expected)

    @pytest.mark.parametrize("edge", [0.8, 1.3, 1.5])
    def test_training_load_continuous_at_band_edges(self, edge):
        """A tiny change in load never jumps the score."""
        below = calculate_training_load_score((edge - 0.0001) * 100, 100)
        above = calculate_training_load_score((edge + 0.0001) * 100, 100)
        assert abs(above - below) < 0.1

    def test_stress_proxy(self):
        assert calculate_stress_score(60, 60) == pytest.approx(70.0)
        assert calculate_stress_score(90, 60) == pytest.approx(100.0)
        assert calculate_stress_score(30, 60) == pytest.approx(40.0)
        assert calculate_stress_score(5, 60) == pytest.approx(30.0)

    def test_stress_missing_without_baseline(self):
        assert calculate_stress_score(60, None) is None
        assert calculate_stress_score(None, 60) is None

    def test_round_half_up(self):
        assert round_half_up(78.5) == 79
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2


class TestScoreMetric:
    """Tests for score_metric function."""

    def test_metric_score_fields(self):
        metrics = history(MetricType.HEART_RATE, 60, 7) + [today(MetricType.HEART_RATE, 55)]
        score = score_metric(metrics[-1], metrics)

        assert score.title == "Resting Heart Rate"
        assert score.current_value == 55
        assert score.baseline_value == 60.0
        assert score.delta_from_average == -5.0
        assert score.direction is DeltaDirection.POSITIVE
        assert score.is_positive_delta is True
        assert score.score == 70
        assert len(score.daily_data) == 8
        assert score.daily_data[-1].date == TARGET

    def test_neutral_is_not_positive(self):
        metrics = history(MetricType.HRV, 60, 7) + [today(MetricType.HRV, 60.05)]
        score = score_metric(metrics[-1], metrics)

        assert score.direction is DeltaDirection.NEUTRAL
        assert score.is_positive_delta is False


class TestComputeRecoveryScore:
    """Tests for compute_recovery_score function."""

    def full_day(self):
        return (
            history(MetricType.HEART_RATE, 55, 7) + [today(MetricType.HEART_RATE, 50)]
            + history(MetricType.HRV, 60, 7) + [today(MetricType.HRV, 60)]
            + [today(MetricType.SLEEP_DURATION, 8.0)]
            + [today(MetricType.SLEEP_QUALITY, 90.0)]
            + history(MetricType.TRAINING_LOAD, 100, 28) + [today(MetricType.TRAINING_LOAD, 100)]
        )

    def test_all_metrics(self):
        """HR 80, HRV 50, sleep 100/90, load 100, stress 70."""
        score = compute_recovery_score(TARGET, self.full_day())

        assert score.heart_rate_score == 80
        assert score.hrv_score == 50
        assert score.training_load_score == 100
        assert score.stress_score == 70
        assert score.sleep_score == 96
        assert score.overall_value == pytest.approx(78.5)
        assert score.overall_score in (78, 79)
        assert sum(score.applied_weights.values()) == pytest.approx(1.0)
        assert score.applied_weights["heartRate"] == pytest.approx(0.25)

    def test_one_metric_score_per_present_metric(self):
        score = compute_recovery_score(TARGET, self.full_day())
        assert {s.metric_type for s in score.metric_scores} == set(MetricType)
        assert score.metric(MetricType.HRV).baseline_value == 60.0

    def test_missing_hrv_renormalizes(self):
        """Without HRV, neither HRV nor stress weigh in."""
        metrics = [
            today(MetricType.HEART_RATE, 65),
            today(MetricType.SLEEP_DURATION, 8.0),
            today(MetricType.SLEEP_QUALITY, 80.0),
            today(MetricType.TRAINING_LOAD, 0.0),
        ]
        score = compute_recovery_score(TARGET, metrics)

        assert score.hrv_score is None
        assert score.stress_score is None
        assert "hrv" not in score.applied_weights
        assert "stress" not in score.applied_weights
        assert sum(score.applied_weights.values()) == pytest.approx(1.0)
        assert score.applied_weights["heartRate"] == pytest.approx(0.25 / 0.65)
        # (50 * .25 + 100 * .15 + 80 * .10 + 75 * .15) / .65
        assert score.overall_value == pytest.approx(46.75 / 0.65)
        assert score.overall_score == 72

    def test_missing_metric_not_treated_as_zero(self):
        full = compute_recovery_score(TARGET, [today(MetricType.HEART_RATE, 40)])
        assert full.overall_score == 100

    def test_no_metrics(self):
        score = compute_recovery_score(TARGET, [])

        assert score.overall_score == 0
        assert score.overall_value == 0.0
        assert score.applied_weights == {}
        assert score.metric_scores == ()

    def test_target_day_not_in_own_baseline(self):
        score = compute_recovery_score(TARGET, [today(MetricType.HRV, 60)])
        hrv = score.metric(MetricType.HRV)

        assert hrv.baseline_value is None
        assert hrv.delta_from_average == 0.0
        assert score.stress_score is None

    def test_history_only_day_is_ignored(self):
        """Metrics from other days never score as today."""
        score = compute_recovery_score(TARGET, history(MetricType.HEART_RATE, 50, 7))
        assert score.heart_rate_score is None
        assert score.overall_score == 0

    def test_sleep_blend(self):
        metrics = [today(MetricType.SLEEP_DURATION, 4.0), today(MetricType.SLEEP_QUALITY, 100.0)]
        score = compute_recovery_score(TARGET, metrics)
        # (50 * .15 + 100 * .10) / .25
        assert score.sleep_score == 70

    def test_scores_bounded(self):
        metrics = [today(MetricType.HEART_RATE, 10), today(MetricType.HRV, 500)]
        score = compute_recovery_score(TARGET, metrics)
        assert 0 <= score.overall_score <= 100
        assert all(0 <= s.score <= 100 for s in score.metric_scores)

    def test_time_of_day_recorded(self):
        score = compute_recovery_score(TARGET, [], time_of_day=TimeOfDay.EVENING)
        assert score.time_of_day is TimeOfDay.EVENING

    def test_custom_weights(self):
        metrics = [today(MetricType.HEART_RATE, 65), today(MetricType.SLEEP_DURATION, 8.0)]
        score = compute_recovery_score(TARGET, metrics, weights={"heartRate": 1.0})

        assert score.overall_value == pytest.approx(50.0)
        assert score.applied_weights == {"heartRate": 1.0}

    def test_unknown_weight_rejected(self):
        with pytest.raises(ConfigurationError):
            compute_recovery_score(TARGET, [], weights={"steps": 1.0})

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            compute_recovery_score(TARGET, [], weights={"hrv": -0.5})
        assert exc_info.value.details["setting"] == "weights"

    def test_default_weights_sum_to_one(self):
        assert sum(DEFAULT_WEIGHTS.values()) == pytest.approx(1.0)

    def test_deterministic(self):
        assert compute_recovery_score(TARGET, self.full_day()) == compute_recovery_score(TARGET, self.full_day())

    def test_to_dict(self):
        data = compute_recovery_score(TARGET, self.full_day()).to_dict()
        assert data["date"] == "2024-03-29"
        assert data["time_of_day"] == "morning"
        assert len(data["metric_scores"]) == 5
