"""Personal baseline calculations.

Every metric is judged against *your* trailing average, not a population
norm. Each metric type carries its own canonical window (7 days for heart
rate, HRV and sleep, 28 days for training load). The target day is never part
of its own baseline.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from .models import DailyMetric, DeltaDirection, MetricType, Polarity

# Deltas smaller than this read as "no change"
NEUTRAL_DELTA = 0.1


@dataclass(frozen=True)
class BaselineComparison:
    """Current value compared against its baseline window."""
    current: float
    baseline: Optional[float]
    delta: float
    direction: DeltaDirection


def baseline_window(
    metric_type: MetricType,
    target_day: date,
    metrics: Iterable[DailyMetric],
) -> List[DailyMetric]:
    """Metrics of one type inside the trailing window before ``target_day``, oldest first."""
    first_day = target_day - timedelta(days=metric_type.baseline_days)
    window = [
        m for m in metrics
        if m.metric_type is metric_type and first_day <= m.date < target_day
    ]
    return sorted(window, key=lambda m: m.date)


def calculate_baseline(window: Iterable[DailyMetric]) -> Optional[float]:
    """Mean of a baseline window, or None when the window is empty."""
    values = [m.value for m in window]
    if not values:
        return None
    return sum(values) / len(values)


def calculate_direction(
    metric_type: MetricType,
    current: float,
    baseline: Optional[float],
) -> DeltaDirection:
    """Classify a change from baseline by the metric's polarity.

    Args:
        metric_type: Metric being compared
        current: Today's value
        baseline: Baseline mean, None when there is no history

    Returns:
        DeltaDirection; changes under 0.1 are neutral
    """
    if baseline is None:
        return DeltaDirection.NEUTRAL

    delta = current - baseline
    if abs(delta) < NEUTRAL_DELTA:
        return DeltaDirection.NEUTRAL

    profile = metric_type.profile
    if profile.polarity is Polarity.LOWER_IS_BETTER:
        improved = delta < 0
    elif profile.polarity is Polarity.WITHIN_TARGET_BAND:
        # More load only reads well while it stays inside the target band
        improved = delta > 0 and current <= baseline * profile.target_ratio
    else:
        improved = delta > 0

    return DeltaDirection.POSITIVE if improved else DeltaDirection.NEGATIVE


def compare_to_baseline(
    metric_type: MetricType,
    current: DailyMetric,
    history: Iterable[DailyMetric],
) -> BaselineComparison:
    """Delta and direction of ``current`` against its canonical window."""
    window = baseline_window(metric_type, current.date, history)
    baseline = calculate_baseline(window)
    delta = current.value - baseline if baseline is not None else 0.0
    return BaselineComparison(
        current=current.value,
        baseline=baseline,
        delta=delta,
        direction=calculate_direction(metric_type, current.value, baseline),
    )
