"""Tests for baseline calculations."""

from datetime import date, timedelta

import pytest

from recovery_engine.baselines import (
    baseline_window,
    calculate_baseline,
    calculate_direction,
    compare_to_baseline,
)
from recovery_engine.models import DailyMetric, DeltaDirection, MetricType

TARGET = date(2024, 3, 29)


def series(metric_type: MetricType, values, end: date = TARGET):
    """Daily metrics ending at ``end``, oldest first."""
    start = end - timedelta(days=len(values) - 1)
    return [DailyMetric(start + timedelta(days=i), metric_type, v) for i, v in enumerate(values)]


class TestBaselineWindow:
    """Tests for baseline_window function."""

    def test_excludes_target_day(self):
        metrics = series(MetricType.HRV, [50, 52, 54])
        window = baseline_window(MetricType.HRV, TARGET, metrics)
        assert [m.value for m in window] == [50, 52]

    def test_seven_day_window(self):
        """HRV looks back exactly seven days."""
        metrics = series(MetricType.HRV, list(range(1, 11)))
        window = baseline_window(MetricType.HRV, TARGET, metrics)

        assert len(window) == 7
        assert window[0].date == TARGET - timedelta(days=7)
        assert window[-1].date == TARGET - timedelta(days=1)

    def test_training_load_window_is_28_days(self):
        metrics = series(MetricType.TRAINING_LOAD, [10.0] * 40)
        window = baseline_window(MetricType.TRAINING_LOAD, TARGET, metrics)
        assert len(window) == 28

    def test_other_metric_types_ignored(self):
        metrics = series(MetricType.HRV, [50, 52]) + series(MetricType.HEART_RATE, [60, 61])
        window = baseline_window(MetricType.HRV, TARGET, metrics)
        assert all(m.metric_type is MetricType.HRV for m in window)

    def test_sorted_oldest_first(self):
        metrics = list(reversed(series(MetricType.HRV, [1, 2, 3, 4])))
        window = baseline_window(MetricType.HRV, TARGET, metrics)
        assert [m.value for m in window] == [1, 2, 3]


class TestCalculateBaseline:
    """Tests for calculate_baseline function."""

    def test_mean(self):
        assert calculate_baseline(series(MetricType.HRV, [40, 50, 60])) == 50.0

    def test_empty_returns_none(self):
        assert calculate_baseline([]) is None


class TestCalculateDirection:
    """Tests for polarity-aware direction."""

    def test_heart_rate_decrease_is_positive(self):
        assert calculate_direction(MetricType.HEART_RATE, 55, 60) is DeltaDirection.POSITIVE
        assert calculate_direction(MetricType.HEART_RATE, 65, 60) is DeltaDirection.NEGATIVE

    def test_hrv_increase_is_positive(self):
        assert calculate_direction(MetricType.HRV, 65, 60) is DeltaDirection.POSITIVE
        assert calculate_direction(MetricType.HRV, 55, 60) is DeltaDirection.NEGATIVE

    @pytest.mark.parametrize("metric_type", [MetricType.SLEEP_DURATION, MetricType.SLEEP_QUALITY])
    def test_sleep_increase_is_positive(self, metric_type):
        assert calculate_direction(metric_type, 8, 7) is DeltaDirection.POSITIVE
        assert calculate_direction(metric_type, 6, 7) is DeltaDirection.NEGATIVE

    def test_small_change_is_neutral(self):
        """|delta| < 0.1 is neither positive nor negative."""
        assert calculate_direction(MetricType.HEART_RATE, 60.05, 60) is DeltaDirection.NEUTRAL
        assert calculate_direction(MetricType.HRV, 59.95, 60) is DeltaDirection.NEUTRAL

    def test_no_baseline_is_neutral(self):
        assert calculate_direction(MetricType.HRV, 60, None) is DeltaDirection.NEUTRAL

    def test_training_load_within_band(self):
        """More load is positive up to 1.3x the baseline mean."""
        assert calculate_direction(MetricType.TRAINING_LOAD, 120, 100) is DeltaDirection.POSITIVE
        assert calculate_direction(MetricType.TRAINING_LOAD, 130, 100) is DeltaDirection.POSITIVE

    def test_training_load_beyond_band(self):
        assert calculate_direction(MetricType.TRAINING_LOAD, 140, 100) is DeltaDirection.NEGATIVE

    def test_training_load_decrease(self):
        assert calculate_direction(MetricType.TRAINING_LOAD, 50, 100) is DeltaDirection.NEGATIVE


class TestCompareToBaseline:
    """Tests for compare_to_baseline function."""

    def test_delta_against_window_mean(self):
        metrics = series(MetricType.HEART_RATE, [60, 62, 58, 55])
        current = metrics[-1]
        comparison = compare_to_baseline(MetricType.HEART_RATE, current, metrics)

        assert comparison.baseline == 60.0
        assert comparison.delta == -5.0
        assert comparison.direction is DeltaDirection.POSITIVE

    def test_empty_baseline_gives_zero_delta(self):
        current = DailyMetric(TARGET, MetricType.HRV, 70)
        comparison = compare_to_baseline(MetricType.HRV, current, [current])

        assert comparison.baseline is None
        assert comparison.delta == 0.0
        assert comparison.direction is DeltaDirection.NEUTRAL
