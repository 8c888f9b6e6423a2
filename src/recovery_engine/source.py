"""Sample sources: where raw biometric data comes from."""

import logging
from datetime import date, timedelta, tzinfo
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from .dates import day_range, local_day
from .load import estimate_activity
from .models import (
    Activity,
    DailyMetric,
    MetricType,
    RawSample,
    SampleKind,
    SleepInterval,
    SleepSummary,
    WorkoutRecord,
)
from .normalizer import normalize_daily, normalize_heart_rate
from .sleep import aggregate_sleep, aggregate_sleep_by_day, sleep_daily_metrics

logger = logging.getLogger(__name__)


@runtime_checkable
class SampleSource(Protocol):
    """Async boundary that delivers per-day metrics, workouts and sleep."""

    async def fetch_daily(self, metric_type: MetricType, day_count: int, end_day: date) -> List[DailyMetric]:
        """Daily metrics for the ``day_count`` days ending at ``end_day``, oldest first."""
        ...

    async def fetch_workouts(self, limit: int, window_days: int, end_day: date) -> List[Activity]:
        """Up to ``limit`` activities from the window ending at ``end_day``, newest first."""
        ...

    async def fetch_sleep(self, day: date) -> Optional[SleepSummary]:
        """Aggregated sleep for the night starting on ``day``."""
        ...


class InMemorySampleSource:
    """Sample source over samples already held in memory."""

    def __init__(
        self,
        tz: tzinfo,
        samples: Iterable[RawSample] = (),
        sleep_intervals: Iterable[SleepInterval] = (),
        workouts: Iterable[WorkoutRecord] = (),
    ):
        self.tz = tz
        self.samples: List[RawSample] = list(samples)
        self.sleep_intervals: List[SleepInterval] = list(sleep_intervals)
        self.workouts: List[WorkoutRecord] = list(workouts)

    def _daily_metrics(self, metric_type: MetricType) -> List[DailyMetric]:
        """
        Daily series of a metric.

        Training load has no series here: it is built from the activity
        ledger so a workout is never counted twice.
        """
        if metric_type is MetricType.HEART_RATE:
            return normalize_heart_rate(self.samples, self.tz)
        if metric_type is MetricType.HRV:
            return normalize_daily(self.samples, SampleKind.HRV, self.tz)
        if metric_type in (MetricType.SLEEP_DURATION, MetricType.SLEEP_QUALITY):
            summaries = aggregate_sleep_by_day(self.sleep_intervals, self.tz)
            return [m for m in sleep_daily_metrics(summaries) if m.metric_type is metric_type]

        return []

    async def fetch_daily(self, metric_type: MetricType, day_count: int, end_day: date) -> List[DailyMetric]:
        days = set(day_range(end_day, day_count))
        return [m for m in self._daily_metrics(metric_type) if m.date in days]

    async def fetch_workouts(self, limit: int, window_days: int, end_day: date) -> List[Activity]:
        first_day = end_day - timedelta(days=window_days - 1)
        activities = [
            estimate_activity(record, self.tz)
            for record in self.workouts
            if first_day <= local_day(record.start, self.tz) <= end_day
        ]
        activities.sort(key=lambda a: (a.start, a.id), reverse=True)
        return activities[:limit]

    async def fetch_sleep(self, day: date) -> Optional[SleepSummary]:
        intervals = [i for i in self.sleep_intervals if local_day(i.start, self.tz) == day]
        return aggregate_sleep(intervals, day)

