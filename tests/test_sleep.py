"""Tests for sleep aggregation."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from recovery_engine.models import MetricType, SleepInterval, SleepStage
from recovery_engine.sleep import (
    aggregate_sleep,
    aggregate_sleep_by_day,
    duration_score,
    sleep_daily_metrics,
)

UTC = timezone.utc
NIGHT = date(2024, 3, 2)


def interval(start: datetime, minutes: float, stage: SleepStage) -> SleepInterval:
    return SleepInterval(start, start + timedelta(minutes=minutes), stage)


def example_night(day: date = NIGHT):
    """6h asleep, 1.5h of it deep+REM, 10 minutes awake."""
    t = datetime(day.year, day.month, day.day, 0, 0, tzinfo=UTC)
    return [
        interval(t, 270, SleepStage.CORE),
        interval(t + timedelta(minutes=270), 60, SleepStage.DEEP),
        interval(t + timedelta(minutes=330), 10, SleepStage.AWAKE),
        interval(t + timedelta(minutes=340), 30, SleepStage.REM),
    ]


class TestAggregateSleep:
    """Tests for aggregate_sleep function."""

    def test_quality_example(self):
        """6h with 25% deep+REM and 10 min awake scores about 84.4."""
        summary = aggregate_sleep(example_night(), NIGHT)

        assert summary is not None
        assert summary.sleep_hours == pytest.approx(6.0)
        assert summary.duration_score == pytest.approx(75.0)
        assert summary.deep_rem_score == pytest.approx(100.0)
        assert summary.continuity_score == pytest.approx(100 - 600 / 22200 * 200)
        assert summary.quality_score == pytest.approx(84.4, abs=0.1)

    def test_stage_percentages(self):
        """Stage shares are relative to asleep time only."""
        summary = aggregate_sleep(example_night(), NIGHT)

        assert summary.stages.core_pct == pytest.approx(75.0)
        assert summary.stages.deep_pct == pytest.approx(100 / 6)
        assert summary.stages.rem_pct == pytest.approx(50 / 6)
        assert summary.stages.total_pct == pytest.approx(100.0)
        assert summary.awake_seconds == 600

    def test_below_minimum_is_unavailable(self):
        """1799 seconds of sleep is rejected."""
        start = datetime(2024, 3, 2, 1, 0, tzinfo=UTC)
        intervals = [SleepInterval(start, start + timedelta(seconds=1799), SleepStage.CORE)]
        assert aggregate_sleep(intervals, NIGHT) is None

    def test_just_above_minimum_is_accepted(self):
        """1801 seconds of sleep is accepted."""
        start = datetime(2024, 3, 2, 1, 0, tzinfo=UTC)
        intervals = [SleepInterval(start, start + timedelta(seconds=1801), SleepStage.CORE)]
        summary = aggregate_sleep(intervals, NIGHT)
        assert summary is not None
        assert summary.sleep_hours == pytest.approx(1801 / 3600)

    def test_above_maximum_is_unavailable(self):
        """More than 14 hours of sleep is implausible."""
        start = datetime(2024, 3, 2, 0, 0, tzinfo=UTC)
        intervals = [interval(start, 14 * 60 + 1, SleepStage.UNSPECIFIED)]
        assert aggregate_sleep(intervals, NIGHT) is None

    def test_no_asleep_stage_is_unavailable(self):
        """Only in-bed and awake time gives no sleep data."""
        start = datetime(2024, 3, 2, 0, 0, tzinfo=UTC)
        intervals = [
            interval(start, 300, SleepStage.IN_BED),
            interval(start, 60, SleepStage.AWAKE),
        ]
        assert aggregate_sleep(intervals, NIGHT) is None

    def test_empty_is_unavailable(self):
        assert aggregate_sleep([], NIGHT) is None

    def test_short_intervals_are_noise(self):
        """Intervals under two minutes are discarded."""
        intervals = example_night()
        blip = interval(intervals[0].start, 1.9, SleepStage.DEEP)
        with_blip = aggregate_sleep(intervals + [blip], NIGHT)
        without = aggregate_sleep(intervals, NIGHT)
        assert with_blip == without

    def test_non_positive_intervals_discarded(self):
        """Reversed or empty intervals do not count."""
        start = datetime(2024, 3, 2, 3, 0, tzinfo=UTC)
        broken = [
            SleepInterval(start, start - timedelta(hours=2), SleepStage.CORE),
            SleepInterval(start, start, SleepStage.CORE),
        ]
        assert aggregate_sleep(broken, NIGHT) is None
        assert aggregate_sleep(example_night() + broken, NIGHT) == aggregate_sleep(example_night(), NIGHT)

    def test_long_sleep_duration_capped(self):
        """Duration component never exceeds 100."""
        assert duration_score(10.0) == 100.0
        assert duration_score(4.0) == 50.0

    def test_no_awake_time_full_continuity(self):
        start = datetime(2024, 3, 2, 0, 0, tzinfo=UTC)
        summary = aggregate_sleep([interval(start, 480, SleepStage.CORE)], NIGHT)
        assert summary.continuity_score == 100.0
        assert summary.deep_rem_score == 0.0
        # 0.6 * 100 + 0.3 * 0 + 0.1 * 100
        assert summary.quality_score == pytest.approx(70.0)

    def test_quality_bounded(self):
        summary = aggregate_sleep(example_night(), NIGHT)
        assert 0 <= summary.quality_score <= 100


class TestAggregateSleepByDay:
    """Tests for grouping nights by local calendar day."""

    def test_one_summary_per_night(self):
        nights = example_night(date(2024, 3, 2)) + example_night(date(2024, 3, 3))
        summaries = aggregate_sleep_by_day(nights, UTC)

        assert [s.date for s in summaries] == [date(2024, 3, 2), date(2024, 3, 3)]

    def test_invalid_nights_skipped(self):
        start = datetime(2024, 3, 4, 1, 0, tzinfo=UTC)
        short = [interval(start, 20, SleepStage.CORE)]
        summaries = aggregate_sleep_by_day(example_night() + short, UTC)

        assert [s.date for s in summaries] == [NIGHT]

    def test_grouping_uses_timezone(self):
        """Start at 23:30 UTC falls on the next day in Madrid."""
        start = datetime(2024, 3, 1, 23, 30, tzinfo=UTC)
        intervals = [interval(start, 60, SleepStage.CORE)]

        assert aggregate_sleep_by_day(intervals, UTC)[0].date == date(2024, 3, 1)
        assert aggregate_sleep_by_day(intervals, ZoneInfo("Europe/Madrid"))[0].date == date(2024, 3, 2)

    def test_daily_metrics(self):
        summaries = aggregate_sleep_by_day(example_night(), UTC)
        metrics = sleep_daily_metrics(summaries)

        by_type = {m.metric_type: m for m in metrics}
        assert by_type[MetricType.SLEEP_DURATION].value == pytest.approx(6.0)
        assert by_type[MetricType.SLEEP_QUALITY].value == pytest.approx(summaries[0].quality_score)
        assert all(m.date == NIGHT for m in metrics)
