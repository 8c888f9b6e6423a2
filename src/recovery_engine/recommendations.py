"""Readiness bands and recovery recommendations."""

from collections import Counter
from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from .models import Activity, Intensity, RecoveryScore

# Number of previous snapshots the recovery trend compares against
TREND_WINDOW = 7


class ReadinessLevel(str, Enum):
    """Readiness band of an overall score."""

    HIGHLY_STRESSED = "highly_stressed"
    SOMEWHAT_FATIGUED = "somewhat_fatigued"
    REASONABLY_RECOVERED = "reasonably_recovered"
    WELL_RECOVERED = "well_recovered"

    @property
    def description(self) -> str:
        return _READINESS_DESCRIPTIONS[self]

    @property
    def color(self) -> str:
        return _READINESS_COLORS[self]


_READINESS_DESCRIPTIONS = {
    ReadinessLevel.HIGHLY_STRESSED: "Highly stressed. Focus on recovery today.",
    ReadinessLevel.SOMEWHAT_FATIGUED: "Somewhat fatigued. Consider light activity.",
    ReadinessLevel.REASONABLY_RECOVERED: "Reasonably recovered. Moderate training is fine.",
    ReadinessLevel.WELL_RECOVERED: "Well recovered. Ready for intense training.",
}

_READINESS_COLORS = {
    ReadinessLevel.HIGHLY_STRESSED: "red",
    ReadinessLevel.SOMEWHAT_FATIGUED: "yellow",
    ReadinessLevel.REASONABLY_RECOVERED: "cyan",
    ReadinessLevel.WELL_RECOVERED: "green",
}


def classify_readiness(overall_score: int) -> ReadinessLevel:
    if overall_score < 40:
        return ReadinessLevel.HIGHLY_STRESSED
    if overall_score < 60:
        return ReadinessLevel.SOMEWHAT_FATIGUED
    if overall_score < 80:
        return ReadinessLevel.REASONABLY_RECOVERED
    return ReadinessLevel.WELL_RECOVERED


class RecommendationType(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEEDS_ATTENTION = "needs_attention"


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    type: RecommendationType

    def to_dict(self) -> dict:
        d = asdict(self)
        d["type"] = self.type.value
        return d


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def generate_recommendations(
    score: RecoveryScore,
    previous: Sequence[RecoveryScore] = (),
) -> List[Recommendation]:
    """
    Recommendations for a score given earlier snapshots.

    Args:
        score: Snapshot to explain
        previous: Earlier snapshots, oldest first

    Returns:
        Recommendations in display order: sleep, HRV, stress, trend
    """
    recommendations: List[Recommendation] = []

    if score.sleep_score is not None:
        if score.sleep_score < 60:
            recommendations.append(Recommendation(
                title="Prioritize Sleep",
                description="Your sleep score is lower than usual. Try to get to bed earlier tonight.",
                type=RecommendationType.NEEDS_ATTENTION,
            ))
        elif score.sleep_score > 80:
            recommendations.append(Recommendation(
                title="Great Sleep!",
                description="You're maintaining healthy sleep patterns. Keep it up!",
                type=RecommendationType.POSITIVE,
            ))

    previous_hrv = _mean([s.hrv_score for s in previous if s.hrv_score is not None])
    if score.hrv_score is not None and previous_hrv is not None and score.hrv_score < previous_hrv:
        recommendations.append(Recommendation(
            title="HRV Trending Down",
            description="Consider taking it easier today to help your body recover.",
            type=RecommendationType.NEEDS_ATTENTION,
        ))

    if score.stress_score is not None and score.stress_score < 60:
        recommendations.append(Recommendation(
            title="Manage Stress",
            description="High stress detected. Try some breathing exercises or meditation.",
            type=RecommendationType.NEUTRAL,
        ))

    recent_overall = _mean([s.overall_value for s in list(previous)[-TREND_WINDOW:]])
    if recent_overall is not None and score.overall_value > recent_overall + 10:
        recommendations.append(Recommendation(
            title="Recovery Improving",
            description="Your recovery is trending upward. Great job balancing activity and rest!",
            type=RecommendationType.POSITIVE,
        ))

    return recommendations


# Activities from this many days personalize suggestions
ACTIVITY_HISTORY_DAYS = 14
# Reference session length for duration scaling, in minutes
REFERENCE_DURATION_MINUTES = 45
MIN_DURATION_SCALE = 0.8
MAX_DURATION_SCALE = 1.5
MAX_ACTIVITY_RECOMMENDATIONS = 4


@dataclass(frozen=True)
class ActivityRecommendation:
    """A suggested session for today."""
    title: str
    intensity: Intensity
    duration_minutes: int
    description: str

    def to_dict(self) -> dict:
        d = asdict(self)
        d["intensity"] = self.intensity.value
        return d


LIGHT_WALK = ActivityRecommendation(
    "Light Walk", Intensity.LOW, 20,
    "A gentle stroll to promote recovery without further stress.",
)

AFTER_INTENSE_SESSION = [
    ActivityRecommendation(
        "Recovery Walk", Intensity.LOW, 25,
        "A gentle walk to help your body recover from today's intense activity.",
    ),
    ActivityRecommendation(
        "Light Stretching", Intensity.LOW, 15,
        "Gentle stretching to improve flexibility and aid recovery.",
    ),
    ActivityRecommendation(
        "Easy Recovery Ride", Intensity.LOW, 20,
        "Very easy spinning to increase blood flow without adding stress.",
    ),
]


def _banded_activities(overall_score: int) -> List[ActivityRecommendation]:
    """Suggestions for a score band; a light walk is always included."""
    if overall_score < 40:
        extra = [
            ActivityRecommendation(
                "Gentle Yoga", Intensity.LOW, 15,
                "Easy yoga poses to improve circulation and relaxation.",
            ),
            ActivityRecommendation(
                "Recovery Ride", Intensity.LOW, 25,
                "Very easy cycling to promote blood flow and recovery.",
            ),
        ]
    elif overall_score < 60:
        extra = [
            ActivityRecommendation(
                "Recovery Ride", Intensity.LOW, 30,
                "Easy cycling to promote blood flow and recovery.",
            ),
            ActivityRecommendation(
                "Easy Run", Intensity.LOW, 20,
                "A very light jog to maintain fitness without taxing recovery.",
            ),
        ]
    elif overall_score < 80:
        extra = [
            ActivityRecommendation(
                "Moderate Run", Intensity.MODERATE, 35,
                "A controlled pace run at conversation level.",
            ),
            ActivityRecommendation(
                "Moderate Ride", Intensity.MODERATE, 45,
                "A ride with mixed intensity for fitness maintenance.",
            ),
        ]
    else:
        extra = [
            ActivityRecommendation(
                "Interval Session", Intensity.HIGH, 45,
                "High-intensity intervals to challenge your fitness.",
            ),
            ActivityRecommendation(
                "Long Run", Intensity.HIGH, 60,
                "Extended running session to build endurance.",
            ),
            ActivityRecommendation(
                "Challenging Ride", Intensity.HIGH, 75,
                "A challenging ride with hills and higher intensities.",
            ),
        ]
    return [LIGHT_WALK] + extra


def _personalized_activity(
    overall_score: int,
    activity_type: str,
    scale: float,
) -> Optional[ActivityRecommendation]:
    """One session of the user's favourite activity type, sized to recovery."""
    if activity_type == "run":
        base = 50 if overall_score > 80 else (35 if overall_score > 60 else 25)
        duration = int(base * scale)
        if overall_score > 80:
            return ActivityRecommendation(
                "Personalized Speed Run", Intensity.HIGH, duration,
                "A running session with speed work tailored to your recovery level.",
            )
        if overall_score > 60:
            return ActivityRecommendation(
                "Personalized Run", Intensity.MODERATE, duration,
                "A moderate running session tailored to your current recovery.",
            )
        return ActivityRecommendation(
            "Easy Recovery Run", Intensity.LOW, duration,
            "A very easy run to maintain fitness while prioritizing recovery.",
        )

    if activity_type == "ride":
        base = 60 if overall_score > 80 else (45 if overall_score > 60 else 30)
        duration = int(base * scale)
        if overall_score > 80:
            return ActivityRecommendation(
                "Personalized Power Ride", Intensity.HIGH, duration,
                "A challenging ride with intervals tailored to your high recovery level.",
            )
        if overall_score > 60:
            return ActivityRecommendation(
                "Personalized Ride", Intensity.MODERATE, duration,
                "A cycling session with mixed terrain based on your current recovery.",
            )
        return ActivityRecommendation(
            "Easy Spin Ride", Intensity.LOW, duration,
            "A gentle ride focusing on high cadence and low power to aid recovery.",
        )

    if overall_score <= 60:
        return None

    if activity_type == "swim":
        return ActivityRecommendation(
            "Personalized Swim",
            Intensity.HIGH if overall_score > 80 else Intensity.MODERATE,
            45 if overall_score > 80 else 30,
            "A swimming workout customized for your recovery status.",
        )
    return ActivityRecommendation(
        "Custom Workout",
        Intensity.MODERATE if overall_score > 80 else Intensity.LOW,
        40,
        "A workout based on your fitness preferences and recovery status.",
    )


def recommend_activities(
    overall_score: int,
    recent_activities: Sequence[Activity] = (),
    today: Optional[date] = None,
) -> List[ActivityRecommendation]:
    """
    Suggested sessions for today.

    After a high intensity activity today only recovery sessions are
    suggested. Otherwise the score band decides, and the user's most
    frequent recent activity type adds one session whose length scales with
    their average duration (against 45 minutes, clamped to 0.8-1.5).

    Args:
        overall_score: Today's overall score
        recent_activities: Activities of the last two weeks
        today: Day being scored; activities on it count as "today"

    Returns:
        At most four suggestions
    """
    if today is not None and any(
        a.date == today and a.intensity is Intensity.HIGH for a in recent_activities
    ):
        return list(AFTER_INTENSE_SESSION)

    recommendations = _banded_activities(overall_score)

    if recent_activities:
        counts = Counter(a.activity_type for a in recent_activities)
        favourite = counts.most_common(1)[0][0]
        average_minutes = sum(a.duration_minutes for a in recent_activities) / len(recent_activities)
        scale = max(MIN_DURATION_SCALE, min(MAX_DURATION_SCALE, average_minutes / REFERENCE_DURATION_MINUTES))
        personalized = _personalized_activity(overall_score, favourite, scale)
        if personalized is not None:
            recommendations.append(personalized)

    return recommendations[:MAX_ACTIVITY_RECOMMENDATIONS]
