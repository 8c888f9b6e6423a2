"""
Scoring pipeline.

One scoring pass fetches every metric, the night's sleep and recent workouts
concurrently, folds new workouts into the activity ledger, scores the day and
applies the post-workout cool-down. A fetch that fails or times out degrades
its metric to missing; it never fails the pass.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .config import Settings
from .cooldown import CooldownState, apply_cooldown, current_cooldown
from .dates import day_range, ensure_aware, local_day
from .db.database import Database
from .ledger import ActivityLedger
from .load import DailyTrainingVolume, collect_new_activities, daily_training_volumes
from .models import (
    Activity,
    DailyMetric,
    MetricType,
    RecoveryScore,
    SleepSummary,
    TimeOfDay,
)
from .recommendations import (
    ACTIVITY_HISTORY_DAYS,
    ActivityRecommendation,
    ReadinessLevel,
    Recommendation,
    classify_readiness,
    generate_recommendations,
    recommend_activities,
)
from .scoring import compute_recovery_score, round_half_up
from .source import SampleSource

logger = logging.getLogger(__name__)

# Metric types fetched as daily series; training load comes from the ledger
DAILY_METRIC_TYPES = (
    MetricType.HEART_RATE,
    MetricType.HRV,
    MetricType.SLEEP_DURATION,
    MetricType.SLEEP_QUALITY,
)


@dataclass
class ScoringContext:
    """Everything a scoring pass needs, passed in explicitly."""
    source: SampleSource
    ledger: ActivityLedger
    settings: Settings = field(default_factory=Settings)
    tz: Optional[tzinfo] = None
    clock: Optional[Callable[[], datetime]] = None
    history: Optional[Database] = None
    weights: Optional[Dict[str, float]] = None

    def __post_init__(self):
        if self.tz is None:
            self.tz = self.settings.get_timezone()
        if self.clock is None:
            self.clock = lambda: datetime.now(self.tz)

    def now(self) -> datetime:
        return ensure_aware(self.clock(), self.tz)


@dataclass
class ScoringResult:
    """Outcome of one scoring pass."""
    score: RecoveryScore
    readiness: ReadinessLevel
    cooldown: CooldownState
    activities: List[Activity] = field(default_factory=list)
    newly_counted: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    sleep: Optional[SleepSummary] = None
    recommendations: List[Recommendation] = field(default_factory=list)
    activity_recommendations: List[ActivityRecommendation] = field(default_factory=list)
    training_volumes: List[DailyTrainingVolume] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score.to_dict(),
            "readiness": self.readiness.value,
            "cooldown_adjustment": self.cooldown.adjustment,
            "activities": [a.to_dict() for a in self.activities],
            "newly_counted": list(self.newly_counted),
            "missing": list(self.missing),
            "sleep": self.sleep.to_dict() if self.sleep else None,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "activity_recommendations": [r.to_dict() for r in self.activity_recommendations],
            "training_volumes": [v.to_dict() for v in self.training_volumes],
        }


async def _guarded_fetch(name: str, fetch: Awaitable[Any], timeout: float) -> Tuple[bool, Any]:
    """Await a fetch with its own timeout. Returns (ok, value)."""
    try:
        return True, await asyncio.wait_for(fetch, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Fetch %s timed out after %.1fs, treating as missing", name, timeout)
    except Exception as e:
        logger.warning("Fetch %s failed, treating as missing: %s", name, e)
    return False, None


def _training_load_metrics(
    ledger: ActivityLedger,
    target_day: date,
) -> List[DailyMetric]:
    """Daily training load over the baseline window, read back from the ledger."""
    days = day_range(target_day, MetricType.TRAINING_LOAD.baseline_days + 1)
    loads = ledger.daily_loads(days[0], target_day)
    return [DailyMetric(day, MetricType.TRAINING_LOAD, loads.get(day, 0.0)) for day in days]


def _previous_snapshots(history: Database, score: RecoveryScore) -> List[RecoveryScore]:
    key = (score.date, score.time_of_day.ordinal)
    return [
        s for s in history.get_scores(end=score.date)
        if (s.date, s.time_of_day.ordinal) < key
    ]


async def run_scoring_pass(context: ScoringContext, target_day: Optional[date] = None) -> ScoringResult:
    """
    Run one scoring pass.

    Args:
        context: Source, ledger, settings, timezone and clock
        target_day: Day to score; defaults to today in the context timezone

    Returns:
        ScoringResult. Running it again with unchanged inputs and ledger
        returns an identical score.
    """
    settings = context.settings
    now = context.now()
    today = local_day(now, context.tz)
    target_day = target_day or today
    timeout = settings.fetch_timeout_seconds
    source = context.source

    fetches = [
        _guarded_fetch(
            metric_type.value,
            source.fetch_daily(metric_type, metric_type.baseline_days + 1, target_day),
            timeout,
        )
        for metric_type in DAILY_METRIC_TYPES
    ]
    fetches.append(_guarded_fetch("sleep", source.fetch_sleep(target_day), timeout))
    fetches.append(_guarded_fetch(
        "workouts",
        source.fetch_workouts(
            settings.workout_fetch_limit,
            MetricType.TRAINING_LOAD.baseline_days + 1,
            target_day,
        ),
        timeout,
    ))

    results = await asyncio.gather(*fetches)
    daily_results = results[:len(DAILY_METRIC_TYPES)]
    sleep_ok, sleep = results[-2]
    workouts_ok, activities = results[-1]

    metrics: List[DailyMetric] = []
    missing: List[str] = []
    for metric_type, (ok, values) in zip(DAILY_METRIC_TYPES, daily_results):
        if not ok:
            missing.append(metric_type.value)
            continue
        metrics.extend(values)
    if not sleep_ok:
        missing.append("sleep")

    newly_counted: List[str] = []
    activities = activities or []
    if workouts_ok:
        batch = collect_new_activities(activities, context.ledger)
        newly_counted = context.ledger.commit(batch.new_entries)
        metrics.extend(_training_load_metrics(context.ledger, target_day))
    else:
        missing.append(MetricType.TRAINING_LOAD.value)

    time_of_day = TimeOfDay.from_datetime(now)
    weights = context.weights if context.weights is not None else settings.weights
    score = compute_recovery_score(target_day, metrics, time_of_day, weights)

    cooldown = CooldownState(adjustment=100)
    if settings.apply_cooldown and target_day == today and activities:
        cooldown = current_cooldown(activities, now)
        if cooldown.is_active:
            adjusted = apply_cooldown(score.overall_value, cooldown.adjustment)
            score = replace(
                score,
                overall_value=adjusted,
                overall_score=round_half_up(adjusted),
                cooldown_adjustment=cooldown.adjustment,
            )

    previous: List[RecoveryScore] = []
    if context.history is not None:
        previous = _previous_snapshots(context.history, score)
        context.history.save_score(score)

    recent_start = target_day - timedelta(days=ACTIVITY_HISTORY_DAYS - 1)
    recent = [a for a in activities if recent_start <= a.date <= target_day]

    logger.info(
        "Scored %s %s: %d (%d new activities, missing: %s)",
        target_day, time_of_day.value, score.overall_score,
        len(newly_counted), ", ".join(missing) or "none",
    )

    return ScoringResult(
        score=score,
        readiness=classify_readiness(score.overall_score),
        cooldown=cooldown,
        activities=list(activities),
        newly_counted=newly_counted,
        missing=missing,
        sleep=sleep,
        recommendations=generate_recommendations(score, previous),
        activity_recommendations=recommend_activities(score.overall_score, recent, target_day),
        training_volumes=daily_training_volumes(activities, target_day),
    )
