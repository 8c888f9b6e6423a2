"""Training load estimation for workouts."""

import hashlib
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional

from .dates import ensure_aware, local_day
from .ledger import ActivityLedger, LedgerEntry
from .models import Activity, Intensity, WorkoutRecord

logger = logging.getLogger(__name__)

# Calories per minute thresholds
HIGH_KCAL_PER_MIN = 10.0
MODERATE_KCAL_PER_MIN = 5.0

# Duration thresholds when energy is unavailable
HIGH_DURATION_SECONDS = 3600
MODERATE_DURATION_SECONDS = 1800


def classify_intensity(duration_seconds: float, energy_burned_kcal: Optional[float] = None) -> Intensity:
    """
    Classify workout intensity.

    Uses calories per minute when energy is available, otherwise duration.

    Args:
        duration_seconds: Workout duration
        energy_burned_kcal: Active energy burned, if known

    Returns:
        Intensity classification
    """
    if energy_burned_kcal is not None and energy_burned_kcal > 0 and duration_seconds > 0:
        kcal_per_min = energy_burned_kcal / (duration_seconds / 60)
        if kcal_per_min > HIGH_KCAL_PER_MIN:
            return Intensity.HIGH
        if kcal_per_min > MODERATE_KCAL_PER_MIN:
            return Intensity.MODERATE
        return Intensity.LOW

    if duration_seconds > HIGH_DURATION_SECONDS:
        return Intensity.HIGH
    if duration_seconds > MODERATE_DURATION_SECONDS:
        return Intensity.MODERATE
    return Intensity.LOW


def calculate_training_load(
    duration_seconds: float,
    intensity: Intensity,
    average_heart_rate: Optional[float] = None,
) -> float:
    """
    Training load of one workout.

    load = duration_minutes * intensity factor (1/2/3) * hr factor, where the
    hr factor is average_heart_rate / 100 when known.
    """
    hr_factor = average_heart_rate / 100 if average_heart_rate else 1.0
    return max(0.0, duration_seconds / 60) * intensity.load_factor * hr_factor


def activity_id(record: WorkoutRecord) -> str:
    """Stable id of a workout: its source id, else a hash of start, end and type."""
    if record.source_id:
        return record.source_id
    key = f"{record.start.isoformat()}|{record.end.isoformat()}|{record.activity_type}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def estimate_activity(record: WorkoutRecord, tz: tzinfo) -> Activity:
    """
    Turn a workout record into an Activity with its training load.

    Naive start and end times are taken as local time in ``tz``, so every
    Activity carries aware timestamps.
    """
    record = replace(record, start=ensure_aware(record.start, tz), end=ensure_aware(record.end, tz))
    duration = max(0.0, record.duration_seconds)
    intensity = classify_intensity(duration, record.energy_burned_kcal)
    return Activity(
        id=activity_id(record),
        date=local_day(record.start, tz),
        start=record.start,
        duration_seconds=duration,
        intensity=intensity,
        training_load_score=calculate_training_load(duration, intensity, record.average_heart_rate),
        activity_type=record.activity_type,
        title=record.title,
        average_heart_rate=record.average_heart_rate,
    )


@dataclass
class LoadBatch:
    """Activities of one scoring pass split by ledger state."""
    activities: List[Activity] = field(default_factory=list)
    new_entries: List[LedgerEntry] = field(default_factory=list)
    already_counted: List[str] = field(default_factory=list)

    @property
    def new_load_by_day(self) -> Dict[date, float]:
        totals: Dict[date, float] = {}
        for entry in self.new_entries:
            totals[entry.date] = totals.get(entry.date, 0.0) + entry.training_load
        return totals


def collect_new_activities(activities: Iterable[Activity], ledger: ActivityLedger) -> LoadBatch:
    """
    Split activities into those still to be folded and those already counted.

    Counted activities contribute nothing new but stay in the batch for
    display. Duplicate ids within the same batch are folded once.
    """
    batch = LoadBatch()
    seen = set()
    for activity in activities:
        batch.activities.append(activity)
        if activity.id in seen or ledger.contains(activity.id):
            batch.already_counted.append(activity.id)
            continue
        seen.add(activity.id)
        batch.new_entries.append(
            LedgerEntry(activity.id, activity.date, activity.training_load_score)
        )

    logger.debug(
        "Training load batch: %d new, %d already counted",
        len(batch.new_entries), len(batch.already_counted),
    )
    return batch


@dataclass(frozen=True)
class DailyTrainingVolume:
    """Training volume of one day."""
    date: date
    total_duration_minutes: float
    average_intensity: float
    activity_count: int

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total_duration_minutes": self.total_duration_minutes,
            "average_intensity": self.average_intensity,
            "activity_count": self.activity_count,
        }


def daily_training_volumes(
    activities: Iterable[Activity],
    end_day: date,
    days: int = 7,
) -> List[DailyTrainingVolume]:
    """
    Duration, intensity and count of activities per day, oldest first.

    Average intensity weighs each activity's intensity (1/2/3) by its
    duration and is 0 on days without activities. Activities sharing an id
    are counted once.
    """
    start_day = end_day - timedelta(days=days - 1)
    by_day: Dict[date, List[Activity]] = {}
    seen = set()
    for activity in activities:
        if activity.id in seen or not start_day <= activity.date <= end_day:
            continue
        seen.add(activity.id)
        by_day.setdefault(activity.date, []).append(activity)

    volumes = []
    for offset in range(days):
        day = start_day + timedelta(days=offset)
        day_activities = by_day.get(day, [])
        total_minutes = sum(a.duration_minutes for a in day_activities)
        weighted = sum(a.intensity.load_factor * a.duration_minutes for a in day_activities)
        volumes.append(DailyTrainingVolume(
            date=day,
            total_duration_minutes=total_minutes,
            average_intensity=weighted / total_minutes if total_minutes > 0 else 0.0,
            activity_count=len(day_activities),
        ))
    return volumes
