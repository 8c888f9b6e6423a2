"""Reduce raw quantity samples to one averaged value per calendar day."""

import logging
from collections import defaultdict
from datetime import date, tzinfo
from typing import Dict, Iterable, List, Optional

from .dates import local_day
from .models import DailyMetric, MetricType, RawSample, SampleKind

logger = logging.getLogger(__name__)


def is_plausible(sample: RawSample) -> bool:
    """Whether a sample lies within the physiological bounds of its kind."""
    low, high = sample.kind.plausible_range
    return low <= sample.value <= high


def normalize_daily(
    samples: Iterable[RawSample],
    kind: SampleKind,
    tz: tzinfo,
    metric_type: Optional[MetricType] = None,
) -> List[DailyMetric]:
    """
    Average the samples of one kind per local calendar day.

    Samples of other kinds and implausible values are ignored. Days without
    samples produce no metric.

    Args:
        samples: Raw samples, in any order
        kind: Sample kind to normalize
        tz: Timezone that defines the calendar day
        metric_type: Metric type of the output, defaults to the kind's own

    Returns:
        DailyMetrics ordered oldest first
    """
    metric_type = metric_type or kind.metric_type
    by_day: Dict[date, List[float]] = defaultdict(list)

    for sample in samples:
        if sample.kind is not kind:
            continue
        if not is_plausible(sample):
            logger.debug("Discarding implausible %s sample %.1f at %s", kind.value, sample.value, sample.timestamp)
            continue
        by_day[local_day(sample.timestamp, tz)].append(sample.value)

    return [
        DailyMetric(day, metric_type, sum(values) / len(values))
        for day, values in sorted(by_day.items())
    ]


def normalize_heart_rate(samples: Iterable[RawSample], tz: tzinfo) -> List[DailyMetric]:
    """
    Daily heart rate, preferring resting heart rate.

    Days with resting heart rate samples use those; other days fall back to
    the average of all-day heart rate samples.
    """
    samples = list(samples)
    resting = {m.date: m for m in normalize_daily(samples, SampleKind.RESTING_HEART_RATE, tz)}
    general = {m.date: m for m in normalize_daily(samples, SampleKind.HEART_RATE, tz)}
    merged = {**general, **resting}
    return [merged[day] for day in sorted(merged)]
