"""
Post-activity cool-down.

After a workout the overall score is temporarily reduced and recovers along
a sigmoid over an expected recovery time that grows with intensity and with
the square root of duration. Everything here is a pure function of the
activity, its history and the current time.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from .models import Activity, Intensity

logger = logging.getLogger(__name__)

# Hours of recovery for a one hour session
RECOVERY_HOURS = {
    Intensity.LOW: 8.0,
    Intensity.MODERATE: 24.0,
    Intensity.HIGH: 36.0,
}

# Initial reduction in percent when there is no comparable history
DEFAULT_REDUCTION = {
    Intensity.LOW: 2,
    Intensity.MODERATE: 15,
    Intensity.HIGH: 25,
}

# Initial reduction in percent when scaled against similar past activities
PERSONAL_REDUCTION = {
    Intensity.LOW: 5,
    Intensity.MODERATE: 20,
    Intensity.HIGH: 35,
}

MAX_REDUCTION = 80
MAX_DURATION_FACTOR = 2.5
MIN_DURATION_FACTOR = 0.8

# Only activities this recent can still affect the score
LOOKBACK = timedelta(days=7)


def expected_recovery_time(activity: Activity) -> timedelta:
    """Recovery time: intensity hours scaled by sqrt(duration in hours)."""
    duration_hours = activity.duration_seconds / 3600
    hours = RECOVERY_HOURS[activity.intensity] * math.sqrt(duration_hours)
    return timedelta(hours=hours)


def initial_reduction(activity: Activity, history: Iterable[Activity] = ()) -> int:
    """
    Percentage taken off the score right after an activity.

    Args:
        activity: The activity just finished
        history: Earlier activities; those of the same type and intensity
            personalize the reduction by comparing durations

    Returns:
        Reduction in percent, at most 80
    """
    similar = [
        a for a in history
        if a.id != activity.id
        and a.start < activity.start
        and a.activity_type == activity.activity_type
        and a.intensity is activity.intensity
        and a.duration_seconds > 0
    ]

    if similar:
        average_duration = sum(a.duration_seconds for a in similar) / len(similar)
        ratio = activity.duration_seconds / average_duration
        factor = min(MAX_DURATION_FACTOR, max(MIN_DURATION_FACTOR, ratio))
        return min(MAX_REDUCTION, int(PERSONAL_REDUCTION[activity.intensity] * factor))

    duration_hours = activity.duration_seconds / 3600
    factor = min(MAX_DURATION_FACTOR, 1.0 + duration_hours / 2.0)
    return min(MAX_REDUCTION, int(DEFAULT_REDUCTION[activity.intensity] * factor))


def recovery_curve(progress: float) -> float:
    """Sigmoid of recovery progress: slow start, fast middle, slow finish."""
    return 1.0 / (1.0 + math.exp(-10 * (progress - 0.5)))


@dataclass(frozen=True)
class CooldownState:
    """Cool-down of the score at a moment in time."""
    adjustment: int
    activity_id: Optional[str] = None
    remaining: timedelta = timedelta(0)
    recovery_percentage: int = 100

    @property
    def is_active(self) -> bool:
        return self.adjustment < 100

    def describe(self) -> str:
        if not self.is_active:
            return "Fully recovered"
        seconds = self.remaining.total_seconds()
        if seconds < 3600:
            return f"Recovery in progress: {int(seconds / 60)} min remaining"
        if seconds < 86400:
            return f"Recovery in progress: {int(seconds / 3600)} hr remaining"
        days = int(seconds / 86400)
        hours = int((seconds % 86400) / 3600)
        return f"Recovery in progress: {days}d {hours}h remaining"


def cooldown_state(
    activity: Activity,
    now: datetime,
    history: Iterable[Activity] = (),
) -> CooldownState:
    """Cool-down after ``activity`` as of ``now``."""
    elapsed = now - activity.end
    expected = expected_recovery_time(activity)

    # Not finished yet, or fully recovered
    if elapsed < timedelta(0) or expected <= timedelta(0) or elapsed >= expected:
        return CooldownState(adjustment=100)

    progress = elapsed / expected
    reduction = initial_reduction(activity, history)
    current_reduction = int(reduction * (1.0 - recovery_curve(progress)))

    return CooldownState(
        adjustment=100 - current_reduction,
        activity_id=activity.id,
        remaining=expected - elapsed,
        recovery_percentage=int(progress * 100),
    )


def latest_finished_activity(activities: Sequence[Activity], now: datetime) -> Optional[Activity]:
    """Most recent activity that ended before ``now`` within the lookback."""
    finished = [
        a for a in activities
        if a.end <= now and now - a.end <= LOOKBACK
    ]
    if not finished:
        return None
    return max(finished, key=lambda a: (a.end, a.id))


def current_cooldown(activities: Sequence[Activity], now: datetime) -> CooldownState:
    """Cool-down caused by the most recent finished activity."""
    latest = latest_finished_activity(activities, now)
    if latest is None:
        return CooldownState(adjustment=100)
    state = cooldown_state(latest, now, history=activities)
    if state.is_active:
        logger.debug("Cool-down %d%% after activity %s", state.adjustment, latest.id)
    return state


def apply_cooldown(value: float, adjustment: int) -> float:
    """Scale an overall value by a cool-down adjustment percentage."""
    return min(100.0, max(0.0, value * adjustment / 100))
