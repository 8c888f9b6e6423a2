"""
Sleep aggregation.

Reduces the sleep analysis intervals of one night into total sleep time,
per-stage percentages and a quality score. Quality blends three components:
- duration against an 8 hour target (60%)
- deep + REM share against a 25% target (30%)
- continuity, penalizing awake time (10%)
"""

import logging
from collections import defaultdict
from datetime import date, tzinfo
from typing import Dict, Iterable, List, Optional

from .dates import local_day
from .models import (
    DailyMetric,
    MetricType,
    SleepInterval,
    SleepStage,
    SleepStageProfile,
    SleepSummary,
)

logger = logging.getLogger(__name__)

# Intervals shorter than this are sensor noise
MIN_INTERVAL_SECONDS = 120

# Plausible total sleep time for one night
MIN_SLEEP_SECONDS = 1800
MAX_SLEEP_SECONDS = 50400

TARGET_SLEEP_HOURS = 8.0
TARGET_DEEP_REM_SHARE = 0.25

DURATION_WEIGHT = 0.6
DEEP_REM_WEIGHT = 0.3
CONTINUITY_WEIGHT = 0.1


def duration_score(sleep_hours: float) -> float:
    """Sleep duration against the 8 hour target, 0-100."""
    return max(0.0, min(100.0, sleep_hours / TARGET_SLEEP_HOURS * 100))


def _stage_totals(intervals: Iterable[SleepInterval]) -> Dict[SleepStage, float]:
    totals: Dict[SleepStage, float] = defaultdict(float)
    for interval in intervals:
        seconds = interval.duration_seconds
        if seconds <= 0 or seconds < MIN_INTERVAL_SECONDS:
            logger.debug("Discarding sleep interval of %.0fs at %s", seconds, interval.start)
            continue
        totals[interval.stage] += seconds
    return totals


def aggregate_sleep(intervals: Iterable[SleepInterval], day: date) -> Optional[SleepSummary]:
    """
    Aggregate the intervals of one night.

    Args:
        intervals: Sleep intervals whose start falls on ``day``
        day: The local calendar day being aggregated

    Returns:
        SleepSummary, or None when the night has no asleep stage or the total
        sleep time is outside 30 minutes to 14 hours
    """
    totals = _stage_totals(intervals)

    asleep_stages = [stage for stage in totals if stage.is_asleep]
    if not asleep_stages:
        return None

    total_sleep = sum(totals[stage] for stage in asleep_stages)
    if total_sleep < MIN_SLEEP_SECONDS or total_sleep > MAX_SLEEP_SECONDS:
        logger.debug("Sleep total %.0fs on %s outside plausible range", total_sleep, day)
        return None

    def pct(stage: SleepStage) -> float:
        if total_sleep == 0:
            return 0.0
        return totals.get(stage, 0.0) / total_sleep * 100

    stages = SleepStageProfile(
        deep_pct=pct(SleepStage.DEEP),
        rem_pct=pct(SleepStage.REM),
        core_pct=pct(SleepStage.CORE),
        unspecified_pct=pct(SleepStage.UNSPECIFIED),
    )

    sleep_hours = total_sleep / 3600
    awake = totals.get(SleepStage.AWAKE, 0.0)

    deep_rem_share = (totals.get(SleepStage.DEEP, 0.0) + totals.get(SleepStage.REM, 0.0)) / total_sleep
    deep_rem = min(100.0, deep_rem_share / TARGET_DEEP_REM_SHARE * 100)
    continuity = 100.0 - min(100.0, awake / (total_sleep + awake) * 200)
    duration = duration_score(sleep_hours)

    quality = (
        duration * DURATION_WEIGHT
        + deep_rem * DEEP_REM_WEIGHT
        + continuity * CONTINUITY_WEIGHT
    )

    return SleepSummary(
        date=day,
        sleep_hours=sleep_hours,
        quality_score=max(0.0, min(100.0, quality)),
        stages=stages,
        duration_score=duration,
        deep_rem_score=deep_rem,
        continuity_score=continuity,
        awake_seconds=awake,
    )


def aggregate_sleep_by_day(intervals: Iterable[SleepInterval], tz: tzinfo) -> List[SleepSummary]:
    """Group intervals by the local day of their start and aggregate each night."""
    by_day: Dict[date, List[SleepInterval]] = defaultdict(list)
    for interval in intervals:
        by_day[local_day(interval.start, tz)].append(interval)

    summaries = []
    for day in sorted(by_day):
        summary = aggregate_sleep(by_day[day], day)
        if summary is not None:
            summaries.append(summary)
    return summaries


def sleep_daily_metrics(summaries: Iterable[SleepSummary]) -> List[DailyMetric]:
    """sleepDuration and sleepQuality daily metrics for each summarized night."""
    metrics = []
    for summary in summaries:
        metrics.append(DailyMetric(summary.date, MetricType.SLEEP_DURATION, summary.sleep_hours))
        metrics.append(DailyMetric(summary.date, MetricType.SLEEP_QUALITY, summary.quality_score))
    return metrics
