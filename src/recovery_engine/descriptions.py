"""
Plain-language explanations of metric scores.

Each metric reads its current value against the baseline mean. Changes
smaller than the metric's stability threshold are reported as stable; larger
changes are worded by direction and, for HRV, by how large the change is
relative to the baseline.
"""

from typing import Optional

from .models import MetricType, SleepStageProfile

# Changes smaller than these read as "stable"
STABLE_HEART_RATE_BPM = 2.0
STABLE_HRV_MS = 5.0
STABLE_SLEEP_HOURS = 0.3
STABLE_SLEEP_QUALITY = 5.0

# HRV change relative to baseline, in percent
SIGNIFICANT_HRV_RISE_PCT = 15.0
SIGNIFICANT_HRV_DROP_PCT = 30.0

# Sleep duration range considered healthy
RECOMMENDED_SLEEP_MIN_HOURS = 7.0
RECOMMENDED_SLEEP_MAX_HOURS = 9.0

NO_BASELINE = " There is no earlier data yet to compare against."


def describe_heart_rate(current: float, baseline: Optional[float]) -> str:
    base = f"Resting heart rate of {current:.0f} BPM, measured during periods of inactivity."
    if baseline is None:
        return base + NO_BASELINE

    delta = current - baseline
    if abs(delta) < STABLE_HEART_RATE_BPM:
        return base + (
            f" Your RHR is stable compared to your weekly average of {baseline:.0f} BPM,"
            " indicating a consistent balance between cardiovascular load and recovery."
        )
    if delta < 0:
        return base + (
            f" Your RHR is {abs(delta):.0f} BPM lower than your 7-day average of {baseline:.0f} BPM,"
            " suggesting improved cardiovascular efficiency and recovery."
        )
    return base + (
        f" Your RHR is {delta:.0f} BPM higher than your 7-day average of {baseline:.0f} BPM,"
        " which could indicate increased fatigue, stress, or insufficient recovery."
    )


def describe_hrv(current: float, baseline: Optional[float]) -> str:
    base = (
        f"Heart Rate Variability of {current:.0f} ms, representing the average variation"
        " in time intervals between consecutive heartbeats."
    )
    if baseline is None:
        return base + NO_BASELINE

    delta = current - baseline
    if abs(delta) < STABLE_HRV_MS:
        return base + (
            f" Your HRV is stable compared to your weekly average of {baseline:.0f} ms,"
            " indicating consistent levels of fatigue and recovery."
        )

    percent_change = abs(delta) / baseline * 100 if baseline > 0 else 0.0
    if delta > 0:
        degree = "significantly better" if percent_change > SIGNIFICANT_HRV_RISE_PCT else "better"
        return base + (
            f" Your HRV is {delta:.0f} ms higher than your 7-day average of {baseline:.0f} ms,"
            f" suggesting {degree} recovery, reduced stress, and improved readiness."
        )
    severity = "significantly " if percent_change > SIGNIFICANT_HRV_DROP_PCT else ""
    return base + (
        f" Your HRV is {abs(delta):.0f} ms lower than your 7-day average of {baseline:.0f} ms,"
        f" which could indicate {severity}increased stress, fatigue, or accumulated"
        " training load requiring additional recovery."
    )


def describe_sleep_duration(current: float, baseline: Optional[float]) -> str:
    base = (
        f"Sleep duration of {current:.1f} hours. Adequate sleep (7-9 hours) is essential"
        " for physical recovery, cognitive function, and overall health."
    )
    if baseline is None:
        return base + NO_BASELINE

    delta = current - baseline
    if abs(delta) < STABLE_SLEEP_HOURS:
        return base + f" Your sleep duration is consistent with your weekly average of {baseline:.1f} hours."

    comparison = f"{abs(delta):.1f} hours {'more' if delta > 0 else 'less'} than your 7-day average of {baseline:.1f} hours"
    if delta > 0:
        if current <= RECOMMENDED_SLEEP_MAX_HOURS:
            return base + f" You slept {comparison}, which is beneficial for recovery and cognitive function."
        return base + (
            f" You slept {comparison}. While sleep is important, very long sleep periods"
            " (>9 hours) may sometimes indicate fatigue or recovery needs."
        )
    if current < RECOMMENDED_SLEEP_MIN_HOURS:
        return base + f" You slept {comparison}, which may impact your cognitive function and physical recovery."
    return base + f" You slept {comparison}, but still within the recommended range."


def describe_sleep_quality(current: float, baseline: Optional[float]) -> str:
    base = (
        f"Sleep quality score of {current:.0f}/100, calculated from sleep continuity (10%),"
        " deep/REM sleep percentage (30%), and total sleep duration (60%)."
    )
    if baseline is None:
        return base + NO_BASELINE

    delta = current - baseline
    if abs(delta) < STABLE_SLEEP_QUALITY:
        return base + f" Your sleep quality is consistent with your 7-day average of {baseline:.0f}/100."
    if delta > 0:
        return base + (
            f" Your score is {delta:.0f} points higher than your 7-day average of {baseline:.0f}/100,"
            " indicating improved sleep architecture with better continuity and/or more"
            " optimal deep sleep cycles."
        )
    return base + (
        f" Your score is {abs(delta):.0f} points lower than your 7-day average of {baseline:.0f}/100,"
        " suggesting possible disruptions in sleep cycles or reduced deep sleep phases."
    )


def describe_training_load(current: float, baseline: Optional[float]) -> str:
    if current > 600:
        level = "High load - consider recovery"
    elif current > 300:
        level = "Moderate load - balanced training"
    elif current > 100:
        level = "Light load - room for more"
    else:
        level = "Very light load - early recovery"

    base = f"Training load of {current:.0f} today. {level}."
    if baseline is None or baseline <= 0:
        return base + NO_BASELINE
    return base + f" Your 28-day daily average is {baseline:.0f}."


def describe_sleep_stages(stages: SleepStageProfile) -> str:
    """Stage breakdown with a verdict on the deep + REM share."""
    base = (
        f"Sleep stages breakdown: {stages.deep_pct:.0f}% deep sleep, {stages.rem_pct:.0f}% REM sleep,"
        f" {stages.core_pct:.0f}% light sleep"
    )
    deep_rem = stages.deep_pct + stages.rem_pct
    if deep_rem >= 40:
        verdict = "excellent, which is optimal for physical recovery and cognitive function"
    elif deep_rem >= 30:
        verdict = "very good, supporting efficient recovery and mental performance"
    elif deep_rem >= 20:
        verdict = "adequate for basic recovery functions"
    else:
        verdict = "lower than optimal, which may affect recovery and cognitive performance"
    return f"{base}. Your deep and REM sleep percentages are {verdict}."


_DESCRIBERS = {
    MetricType.HEART_RATE: describe_heart_rate,
    MetricType.HRV: describe_hrv,
    MetricType.SLEEP_DURATION: describe_sleep_duration,
    MetricType.SLEEP_QUALITY: describe_sleep_quality,
    MetricType.TRAINING_LOAD: describe_training_load,
}


def describe_metric(metric_type: MetricType, current: float, baseline: Optional[float]) -> str:
    """Explanation of today's value of a metric against its baseline."""
    return _DESCRIBERS[metric_type](current, baseline)
