"""
Recovery Score Calculation

Combines the day's normalized metrics into a 0-100 recovery score:
- Resting heart rate and HRV against reference bands
- Sleep duration and sleep quality
- Training load relative to its 28-day baseline
- A stress proxy from HRV relative to its own baseline

Metrics without data for the day are left out and the remaining weights are
renormalized, so one missing sensor never drags the score down.
"""

import logging
import math
from datetime import date
from typing import Dict, Iterable, List, Optional

from .baselines import baseline_window, calculate_baseline, compare_to_baseline
from .descriptions import describe_metric
from .exceptions import ConfigurationError
from .models import (
    STRESS_KEY,
    STRESS_WEIGHT,
    DailyMetric,
    MetricScore,
    MetricType,
    RecoveryScore,
    TimeOfDay,
)
from .sleep import duration_score

logger = logging.getLogger(__name__)


DEFAULT_WEIGHTS: Dict[str, float] = {
    **{metric_type.value: metric_type.profile.weight for metric_type in MetricType},
    STRESS_KEY: STRESS_WEIGHT,
}

# Score given to training load when there is no usable baseline
NO_BASELINE_LOAD_SCORE = 75.0


def clamp_score(value: float) -> float:
    return min(100.0, max(0.0, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def band_score(value: float, low: float, high: float, inverse: bool = False) -> float:
    """Linear map of ``value`` across [low, high] onto 0-100."""
    fraction = (value - low) / (high - low)
    if inverse:
        fraction = 1.0 - fraction
    return clamp_score(fraction * 100)


def calculate_heart_rate_score(resting_hr: float) -> float:
    """
    Resting heart rate score, 0-100.

    40 bpm or lower scores 100, 90 bpm or higher scores 0.
    """
    profile = MetricType.HEART_RATE.profile
    return band_score(resting_hr, profile.band_low, profile.band_high, inverse=True)


def calculate_hrv_score(hrv_ms: float) -> float:
    """
    HRV score, 0-100.

    20 ms or lower scores 0, 100 ms or higher scores 100.
    """
    profile = MetricType.HRV.profile
    return band_score(hrv_ms, profile.band_low, profile.band_high)


def calculate_sleep_duration_score(sleep_hours: float) -> float:
    return duration_score(sleep_hours)


def calculate_sleep_quality_score(quality: float) -> float:
    return clamp_score(quality)


def calculate_training_load_score(today_load: float, baseline_load: Optional[float]) -> float:
    """
    Training load score from the ratio of today's load to its baseline mean.

    Scored like an acute:chronic workload ratio:
    - 0.8-1.3: optimal, peak of 100 at 1.0 (90 at 0.8, 85 at 1.3)
    - below 0.8: detraining, 50 rising to 90
    - 1.3-1.5: caution, 85 down to 30
    - above 1.5: overreaching, 30 down to 0 at 2.5

    Adjacent segments meet at their edges.

    Args:
        today_load: Training load counted for the day
        baseline_load: Mean daily load over the baseline window

    Returns:
        Score 0-100; 75 when there is no usable baseline
    """
    if baseline_load is None or baseline_load <= 0:
        return NO_BASELINE_LOAD_SCORE

    ratio = today_load / baseline_load
    if 0.8 <= ratio <= 1.3:
        score = 100 - abs(ratio - 1.0) * 50
    elif ratio < 0.8:
        score = 50 + (ratio / 0.8) * 40
    elif ratio <= 1.5:
        score = 85 - ((ratio - 1.3) / 0.2) * 55
    else:
        score = max(0.0, 30 - (ratio - 1.5) * 30)
    return clamp_score(score)


def calculate_stress_score(hrv_ms: Optional[float], hrv_baseline: Optional[float]) -> Optional[float]:
    """
    Stress proxy from HRV relative to its own baseline.

    70 at baseline, rising to 100 at +50%, falling to a floor of 30 as HRV
    drops below baseline.
    """
    if hrv_ms is None or hrv_baseline is None or hrv_baseline <= 0:
        return None

    ratio = hrv_ms / hrv_baseline
    if ratio >= 1.0:
        return min(100.0, 70 + 30 * min(1.0, (ratio - 1.0) * 2))
    return max(30.0, 70 - 40 * min(1.0, (1.0 - ratio) * 1.5))


def _sub_score(metric_type: MetricType, current: float, baseline: Optional[float]) -> float:
    if metric_type is MetricType.HEART_RATE:
        return calculate_heart_rate_score(current)
    if metric_type is MetricType.HRV:
        return calculate_hrv_score(current)
    if metric_type is MetricType.SLEEP_DURATION:
        return calculate_sleep_duration_score(current)
    if metric_type is MetricType.SLEEP_QUALITY:
        return calculate_sleep_quality_score(current)
    return calculate_training_load_score(current, baseline)


def score_metric(current: DailyMetric, history: Iterable[DailyMetric]) -> MetricScore:
    """Sub-score and baseline delta for one of today's metrics."""
    history = list(history)
    metric_type = current.metric_type
    comparison = compare_to_baseline(metric_type, current, history)
    raw = _sub_score(metric_type, current.value, comparison.baseline)
    window = baseline_window(metric_type, current.date, history)

    return MetricScore(
        metric_type=metric_type,
        title=metric_type.title,
        score=round_half_up(raw),
        raw_score=raw,
        current_value=current.value,
        delta_from_average=comparison.delta,
        direction=comparison.direction,
        baseline_value=comparison.baseline,
        daily_data=tuple(window) + (current,),
        description=describe_metric(metric_type, current.value, comparison.baseline),
    )


def validate_weights(weights: Dict[str, float]) -> Dict[str, float]:
    """Check a weight map against the known components."""
    unknown = set(weights) - set(DEFAULT_WEIGHTS)
    if unknown:
        raise ConfigurationError(
            f"Unknown score components: {', '.join(sorted(unknown))}",
            setting="weights",
        )
    negative = [key for key, weight in weights.items() if weight < 0]
    if negative:
        raise ConfigurationError(
            f"Negative weights for: {', '.join(sorted(negative))}",
            setting="weights",
        )
    return dict(weights)


def combine_weighted(components: Dict[str, float], weights: Dict[str, float]) -> tuple:
    """
    Weighted average of the available components.

    Returns:
        (overall value, applied weights renormalized to sum to 1); (0.0, {})
        when no weighted component is available
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for key, value in components.items():
        weight = weights.get(key, 0.0)
        if weight > 0:
            weighted_sum += value * weight
            total_weight += weight

    if total_weight <= 0:
        return 0.0, {}

    applied = {
        key: weights[key] / total_weight
        for key in components
        if weights.get(key, 0.0) > 0
    }
    return clamp_score(weighted_sum / total_weight), applied


def _optional_int(value: Optional[float]) -> Optional[int]:
    return round_half_up(value) if value is not None else None


def compute_recovery_score(
    target_day: date,
    metrics: Iterable[DailyMetric],
    time_of_day: TimeOfDay = TimeOfDay.MORNING,
    weights: Optional[Dict[str, float]] = None,
) -> RecoveryScore:
    """
    Calculate the recovery score for a day.

    Args:
        target_day: Day being scored
        metrics: Today's metrics plus history; each type's baseline is taken
            from its own trailing window before ``target_day``
        time_of_day: Snapshot slot
        weights: Component weights keyed by metric type value and "stress";
            defaults to DEFAULT_WEIGHTS

    Returns:
        RecoveryScore with one MetricScore per metric present today
    """
    weights = validate_weights(weights) if weights is not None else DEFAULT_WEIGHTS
    metrics = list(metrics)

    today: Dict[MetricType, DailyMetric] = {}
    for metric in metrics:
        if metric.date == target_day:
            today[metric.metric_type] = metric

    metric_scores: List[MetricScore] = []
    components: Dict[str, float] = {}
    for metric_type in MetricType:
        current = today.get(metric_type)
        if current is None:
            continue
        score = score_metric(current, metrics)
        metric_scores.append(score)
        components[metric_type.value] = score.raw_score

    hrv = today.get(MetricType.HRV)
    hrv_baseline = calculate_baseline(baseline_window(MetricType.HRV, target_day, metrics))
    stress = calculate_stress_score(hrv.value if hrv else None, hrv_baseline)
    if stress is not None:
        components[STRESS_KEY] = stress

    missing = [key for key in DEFAULT_WEIGHTS if key not in components]
    if missing:
        logger.debug("Scoring %s without %s", target_day, ", ".join(missing))

    overall, applied = combine_weighted(components, weights)

    sleep_keys = (MetricType.SLEEP_DURATION.value, MetricType.SLEEP_QUALITY.value)
    sleep_components = {key: components[key] for key in sleep_keys if key in components}
    sleep_value = None
    if sleep_components:
        blended, sleep_weights = combine_weighted(sleep_components, weights)
        if sleep_weights:
            sleep_value = blended

    return RecoveryScore(
        date=target_day,
        time_of_day=time_of_day,
        overall_score=round_half_up(overall),
        overall_value=overall,
        heart_rate_score=_optional_int(components.get(MetricType.HEART_RATE.value)),
        hrv_score=_optional_int(components.get(MetricType.HRV.value)),
        sleep_score=_optional_int(sleep_value),
        training_load_score=_optional_int(components.get(MetricType.TRAINING_LOAD.value)),
        stress_score=_optional_int(stress),
        applied_weights=applied,
        metric_scores=tuple(metric_scores),
    )
